#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse
import logging
import sys

from rich.console import Console
from rich.table import Table

from .app import LemnuxApp
from .assembler import assemble
from .config import load_config, setup_logging
from .context import AppContext
from .errors import LemnuxError
from .themes import load_themes

logger = logging.getLogger("lemnux")


def print_first_page(context: AppContext) -> int:
    """Fetch, assemble and print the first page of the default feed."""
    console = Console()
    scope = context.default_scope()
    try:
        raw = context.client().get_posts(scope)
    except LemnuxError as e:
        console.print(f"[b red]Failed to load posts:[/] {e}")
        return 1
    page = assemble(raw, context.image_loader.load)

    table = Table(title=f"{context.instance.domain} · {scope.listing_type.label} · {scope.sort.label}")
    table.add_column("Title")
    table.add_column("Posted by")
    table.add_column("Updated")
    table.add_column("Image")
    for card in page.cards:
        table.add_row(card.title, card.creator, card.updated, "yes" if card.thumbnail else "")
    console.print(table)
    if page.cursor:
        console.print(f"Next page cursor: {page.cursor}")
    return 0


# --- Entrypoint ---
def main() -> None:
    parser = argparse.ArgumentParser(description="Lemnux, a Lemmy TUI client")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    # Load themes to populate help text
    available_themes = load_themes()
    parser.add_argument(
        "--theme",
        type=str,
        help=f"Set theme for this run. Available: {', '.join(available_themes.keys())}",
    )
    parser.add_argument(
        "--print",
        dest="print_page",
        action="store_true",
        help="Print the first page of the feed and exit",
    )
    args = parser.parse_args()

    debug_path = setup_logging(args.debug)
    if debug_path:
        print(f"Debug logging enabled: {debug_path}", file=sys.stderr)

    context = AppContext(load_config())

    if args.print_page:
        sys.exit(print_first_page(context))

    if args.theme and args.theme not in available_themes:
        print(f"Theme '{args.theme}' not found, using the saved theme.", file=sys.stderr)
        args.theme = None

    try:
        app = LemnuxApp(context, theme=args.theme)
        app.run()
    except Exception as e:
        logger.exception("Application crashed: %s", e)
        print(f"Application crashed: {e}", file=sys.stderr)


if __name__ == "__main__":
    main()
