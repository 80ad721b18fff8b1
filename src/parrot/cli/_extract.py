"""``parrot extract`` — collect translatable route segments.

Writes a gettext template (``.pot``) with one entry per static segment of
the localized routes' declared paths. Translators fill in per-locale
``.po`` files; a ``GettextCatalog`` over the compiled ``.mo`` files then
translates the segments at expansion time.
"""

import argparse
import sys
from pathlib import Path

from parrot.cli._resolve import load_frozen_app
from parrot.scopes.gettext import render_pot, translatable_segments


def run_extract(args: argparse.Namespace) -> None:
    app = load_frozen_app(args.app)

    sources = [route.source_path for route in app.router.routes if route.source_path is not None]
    if not sources:
        print("No localized routes registered.", file=sys.stderr)
        raise SystemExit(1)

    content = render_pot(translatable_segments(sources), domain=args.domain)
    if args.output == "-":
        sys.stdout.write(content)
        return

    Path(args.output).write_text(content, encoding="utf-8")
    print(f"Wrote {args.output}")
