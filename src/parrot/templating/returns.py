"""Template, InlineTemplate, and Fragment return types.

Frozen dataclasses that handlers return. The content negotiation layer
inspects these to dispatch to the kida renderer. The request's assigns
(scope assigns included) are merged under the handler's context at
render time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Template:
    """Render a full kida template.

    Usage::

        return Template("page.html", title="Home", items=items)
    """

    name: str
    context: dict[str, Any] = field(default_factory=dict)

    def __init__(self, name: str, /, **context: Any) -> None:
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "context", context)

    @staticmethod
    def inline(source: str, /, **context: Any) -> InlineTemplate:
        """Create a template from a string.  For prototyping only.

        Usage::

            return Template.inline("<h1>{{ title }}</h1>", title="Hello")

        """
        return InlineTemplate(source, **context)


@dataclass(frozen=True, slots=True)
class InlineTemplate:
    """A template rendered from a string source.  For prototyping.

    Separate type so the content negotiation layer can render it without
    a configured template directory.
    """

    source: str
    context: dict[str, Any] = field(default_factory=dict)

    def __init__(self, source: str, /, **context: Any) -> None:
        object.__setattr__(self, "source", source)
        object.__setattr__(self, "context", context)


@dataclass(frozen=True, slots=True)
class Fragment:
    """Render a named block from a kida template.

    In SSE streams, *target* becomes the event name (default
    ``"fragment"``); templates use ``sse-swap="{target}"`` to receive it.

    Usage::

        return Fragment("search.html", "results_list", results=results)

        yield Fragment("cart.html", "counter", target="cart-update", count=5)
    """

    template_name: str
    block_name: str
    target: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __init__(
        self,
        template_name: str,
        block_name: str,
        /,
        *,
        target: str | None = None,
        **context: Any,
    ) -> None:
        object.__setattr__(self, "template_name", template_name)
        object.__setattr__(self, "block_name", block_name)
        object.__setattr__(self, "target", target)
        object.__setattr__(self, "context", context)
