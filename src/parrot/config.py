"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, template_dir="templates")
    """

    debug: bool = False

    # Templates (requires the ``templates`` extra)
    template_dir: str | Path | None = None
    autoescape: bool = True
    trim_blocks: bool = True
    lstrip_blocks: bool = True

    # Check scope assigns in every render context; None follows ``debug``
    verify_assigns: bool | None = None

    # SSE
    sse_heartbeat_interval: float = 15.0

    @property
    def verifies_assigns(self) -> bool:
        return self.debug if self.verify_assigns is None else self.verify_assigns
