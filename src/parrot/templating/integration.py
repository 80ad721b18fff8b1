"""Kida environment setup and rendering.

kida is an optional dependency (``pip install parrot[templates]``). It is
imported when the app freezes with a ``template_dir`` configured, or on
the first inline render; a missing install raises ``ConfigurationError``.

Every render merges the request's assigns under the handler's context,
so templates see the scope assigns (``{{ locale.name }}``) without the
handler passing them. When assigns verification is on, the merged
context is checked against the scope schema before rendering.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from parrot.config import AppConfig
from parrot.context import request_var
from parrot.errors import ConfigurationError
from parrot.scopes.guard import verify_render_assigns
from parrot.scopes.resolve import RESOLVED_SCOPE_KEY
from parrot.templating.returns import Fragment, InlineTemplate, Template

if TYPE_CHECKING:
    from kida import Environment

    from parrot.http.request import Request
    from parrot.scopes.config import ScopeConfig


def _import_kida() -> Any:
    try:
        import kida
    except ImportError:
        msg = (
            "Template rendering requires the 'kida' package. "
            "Install it with: pip install parrot[templates]"
        )
        raise ConfigurationError(msg) from None
    return kida


def create_environment(
    config: AppConfig,
    filters: dict[str, Callable[..., Any]],
    globals_: dict[str, Any],
) -> Environment:
    """Create a kida Environment from app configuration.

    Called once during ``App._freeze()``. The returned environment
    is immutable for the lifetime of the app.
    """
    kida = _import_kida()
    options: dict[str, Any] = {}
    if config.template_dir is not None:
        options["loader"] = kida.FileSystemLoader(str(config.template_dir))
    env = kida.Environment(
        **options,
        autoescape=config.autoescape,
        auto_reload=config.debug,
        trim_blocks=config.trim_blocks,
        lstrip_blocks=config.lstrip_blocks,
    )

    if filters:
        env.update_filters(filters)
    for name, value in globals_.items():
        env.add_global(name, value)

    return env


class Renderer:
    """Renders template return values for one frozen app.

    ``env`` is ``None`` until a template directory is configured; inline
    templates then get a bare environment built on first use.
    """

    __slots__ = ("_config", "_env", "_filters", "_globals", "_scope_config", "verify")

    def __init__(
        self,
        config: AppConfig,
        *,
        env: Environment | None = None,
        filters: dict[str, Callable[..., Any]] | None = None,
        globals_: dict[str, Any] | None = None,
        scope_config: ScopeConfig | None = None,
    ) -> None:
        self._config = config
        self._env = env
        self._filters = filters or {}
        self._globals = globals_ or {}
        self._scope_config = scope_config
        self.verify = config.verifies_assigns and scope_config is not None

    @property
    def env(self) -> Environment | None:
        return self._env

    def context_for(self, request: Request | None, context: dict[str, Any]) -> dict[str, Any]:
        """Merge request assigns under *context* and verify scope assigns."""
        merged = {**request.assigns, **context} if request is not None else dict(context)
        if self.verify and self._scope_config is not None:
            scoped = request is not None and RESOLVED_SCOPE_KEY in request._cache
            verify_render_assigns(merged, self._scope_config, scoped=scoped)
        return merged

    def render_template(self, tpl: Template, request: Request | None = None) -> str:
        """Render a full template to string."""
        env = self._require_env("Template")
        return env.get_template(tpl.name).render(self.context_for(request, tpl.context))

    def render_fragment(self, frag: Fragment, request: Request | None = None) -> str:
        """Render a named block from a template to string."""
        env = self._require_env("Fragment")
        template = env.get_template(frag.template_name)
        return template.render_block(frag.block_name, self.context_for(request, frag.context))

    def render_inline(self, tpl: InlineTemplate, request: Request | None = None) -> str:
        """Render a template from its source string."""
        if self._env is None:
            # Bare environment for inline sources, built once
            self._env = create_environment(
                AppConfig(debug=self._config.debug, autoescape=self._config.autoescape),
                self._filters,
                self._globals,
            )
        return self._env.from_string(tpl.source).render(self.context_for(request, tpl.context))

    def bind(self, request: Request | None) -> Callable[[Fragment], str]:
        """Fragment renderer tied to *request*, for event streams."""

        def render(frag: Fragment) -> str:
            if request is None:
                return self.render_fragment(frag)
            # Streams outlive the request pipeline; restore its context
            token = request_var.set(request)
            try:
                return self.render_fragment(frag, request)
            finally:
                request_var.reset(token)

        return render

    def _require_env(self, kind: str) -> Environment:
        if self._env is None or self._config.template_dir is None:
            msg = (
                f"{kind} return type requires kida integration. "
                "Ensure a template_dir is configured in AppConfig."
            )
            raise ConfigurationError(msg)
        return self._env
