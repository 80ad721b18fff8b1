"""Path parameter converters and formatting.

Built-in converters for route path segments like ``{id:int}``. The same
table drives matching (regex) and URL building (``format_param``).
"""

import re
from urllib.parse import quote

# (regex_pattern, python_type) for each supported converter
CONVERTERS: dict[str, tuple[str, type]] = {
    "str": (r"[^/]+", str),
    "int": (r"\d+", int),
    "float": (r"\d+(?:\.\d+)?", float),
    "path": (r".+", str),
}


def format_param(value: object, param_type: str) -> str:
    """Render *value* as a path segment for URL building.

    Raises ``ValueError`` when the rendered value would not match the
    converter, so generated links always route back to the same handler.
    """
    pattern, _ = CONVERTERS[param_type]
    text = str(value)
    if not re.fullmatch(pattern, text):
        msg = f"{text!r} is not a valid {param_type!r} path parameter"
        raise ValueError(msg)
    safe = "/" if param_type == "path" else ""
    return quote(text, safe=safe)
