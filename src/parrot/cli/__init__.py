"""Parrot CLI — route inspection and route segment extraction.

Entry point registered as ``parrot`` in ``pyproject.toml``::

    [project.scripts]
    parrot = "parrot.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``parrot`` command."""
    parser = argparse.ArgumentParser(
        prog="parrot",
        description="Parrot — locale/region-scoped routing for ASGI apps.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- parrot routes -----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List routes, one row per scope copy")
    routes_parser.add_argument("app", help="Import string (e.g. myapp:app)")

    # -- parrot extract ----------------------------------------------------
    extract_parser = subparsers.add_parser(
        "extract",
        help="Write a gettext template of translatable route segments",
    )
    extract_parser.add_argument("app", help="Import string (e.g. myapp:app)")
    extract_parser.add_argument(
        "-o",
        "--output",
        default="routes.pot",
        help="Output file, or '-' for stdout (default: routes.pot)",
    )
    extract_parser.add_argument("--domain", default="routes", help="Gettext domain")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from parrot.cli._routes import run_routes

        run_routes(args)
    elif args.command == "extract":
        from parrot.cli._extract import run_extract

        run_extract(args)
