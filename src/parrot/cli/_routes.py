"""``parrot routes`` — list registered routes.

Prints every compiled route with its scope, so each localized copy shows
up as its own row.
"""

import argparse

from parrot.cli._resolve import load_frozen_app


def run_routes(args: argparse.Namespace) -> None:
    """Print a table of METHOD, PATH, SCOPE, and HANDLER."""
    app = load_frozen_app(args.app)

    routes = app.router.routes
    if not routes:
        print("No routes registered.")
        return

    rows: list[tuple[str, str, str, str]] = []
    for route in routes:
        methods_str = ", ".join(sorted(route.methods))
        scope = "-" if route.scope_key is None else "/" + route.scope_key
        handler_name = getattr(route.handler, "__name__", str(route.handler))
        if route.name:
            handler_name = f"{handler_name} ({route.name})"
        if route.live:
            handler_name = f"{handler_name} [live]"
        rows.append((methods_str, route.path, scope, handler_name))

    headers = ("METHOD", "PATH", "SCOPE", "HANDLER")
    widths = [max(len(headers[i]), *(len(r[i]) for r in rows)) for i in range(3)]

    fmt = f"{{:<{widths[0]}}}  {{:<{widths[1]}}}  {{:<{widths[2]}}}  {{}}"
    print(fmt.format(*headers))
    sep_len = sum(widths) + 6 + max(len(r[3]) for r in rows)
    print("-" * min(sep_len, 80))
    for row in rows:
        print(fmt.format(*row))
