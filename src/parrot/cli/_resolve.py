"""App import resolution — resolves ``"module:attribute"`` strings to App instances.

Shared by ``parrot routes`` and ``parrot extract``.
"""

import importlib
import sys

from parrot.app import App
from parrot.errors import ConfigurationError


def resolve_app(import_string: str) -> App:
    """Resolve an import string to a parrot App instance.

    Accepts ``"module:attribute"``; the attribute defaults to ``"app"``.
    A callable that is not an App is treated as a factory and called.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the resolved object is not a parrot ``App`` or callable.
    """
    module_path, _, attr_name = import_string.partition(":")
    if not attr_name:
        attr_name = "app"

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    if callable(obj) and not isinstance(obj, App):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory function {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if not isinstance(obj, App):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not a parrot.App instance"
        raise TypeError(msg)

    return obj


def load_frozen_app(import_string: str) -> App:
    """Resolve and freeze an app, exiting with status 1 on failure."""
    try:
        app = resolve_app(import_string)
        app._ensure_frozen()
    except (ModuleNotFoundError, AttributeError, TypeError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    return app
