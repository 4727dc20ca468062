"""Command line entry point for the content migrations.

Usage::

    cms-migrate embedded-history [--dry-run]
    cms-migrate remove-current-flag [--dry-run]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from cms_admin.config import load_settings
from cms_admin.database.client import CosmosStore
from cms_admin.logging import configure_logging
from cms_admin.migrations.current_flag import remove_current_flag
from cms_admin.migrations.embedded_history import migrate_embedded_history

logger = logging.getLogger(__name__)

COMMANDS = ("embedded-history", "remove-current-flag")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="cms-migrate", description=__doc__.splitlines()[0])
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="report what would change without writing",
    )
    return parser.parse_args(argv)


async def run(command: str, *, dry_run: bool = False) -> bool:
    """Run one migration against the configured container. Returns True on success."""
    settings = load_settings()
    async with CosmosStore(settings.cosmos, provision=False) as store:
        if command == "embedded-history":
            report = await migrate_embedded_history(store.container, dry_run=dry_run)
            return report.ok
        flags = await remove_current_flag(store.container, dry_run=dry_run)
        return dry_run or flags.remaining == 0


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    configure_logging(load_settings().app.log_level, log_file="migrate.log")
    logger.info("Running migration %s%s", args.command, " (dry run)" if args.dry_run else "")
    ok = asyncio.run(run(args.command, dry_run=args.dry_run))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
