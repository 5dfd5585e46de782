"""
Command-Line Entry Point

Reads the update map and credentials, configures logging and runs one
update pass against the wiki.

Exit codes
----------
0   all requested pages updated or skipped
2   bad invocation (missing host, credentials or pages)
3-7 the run failed; see core.errors for the code of each failure kind
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Dict, List, Optional

from .auth.models import Credentials
from .config import settings
from .core.errors import WikiBotError, report_failure
from .orchestrator import run

logger = logging.getLogger("mwbot.cli")

EXIT_USAGE = 2


class UsageError(ValueError):
    """Raised for invocation problems detected before the run starts."""


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="mw-update-bot",
        description="Overwrite MediaWiki pages with supplied text.",
    )
    ap.add_argument("--host", default=settings.mw_host, help="wiki host name, e.g. example.fandom.com")
    ap.add_argument("--pages", metavar="FILE", help="JSON object mapping page title to new text (null skips)")
    ap.add_argument(
        "--page",
        action="append",
        default=[],
        metavar="TITLE=TEXT",
        help="page to update; repeatable, overrides --pages entries",
    )
    ap.add_argument("--username", default=settings.mw_bot_username, help="account name (password is read from MW_BOT_PASSWORD)")
    ap.add_argument(
        "--bot",
        action="store_true",
        default=settings.mw_registered_bot,
        help="account has the bot right; edits assert it",
    )
    ap.add_argument("--debug", action="store_true", help="verbose debug logging")
    return ap


def load_update_map(pages_file: Optional[str], page_args: List[str]) -> Dict[str, Optional[str]]:
    """Merge the JSON pages file with TITLE=TEXT arguments."""
    update_map: Dict[str, Optional[str]] = {}

    if pages_file:
        try:
            with open(pages_file, "r", encoding="utf-8") as fd:
                data = json.load(fd)
        except (OSError, json.JSONDecodeError) as exc:
            raise UsageError(f"Cannot read pages file {pages_file}: {exc}") from exc

        if not isinstance(data, dict):
            raise UsageError(f"Pages file {pages_file} must hold a JSON object.")
        for title, text in data.items():
            if text is not None and not isinstance(text, str):
                raise UsageError(f"Text for {title!r} must be a string or null.")
            update_map[title] = text

    for arg in page_args:
        title, sep, text = arg.partition("=")
        if not sep or not title:
            raise UsageError(f"Expected TITLE=TEXT, got {arg!r}.")
        update_map[title] = text

    return update_map


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if not args.host:
            raise UsageError("No wiki host given (--host or MW_HOST).")

        update_map = load_update_map(args.pages, args.page)
        if not update_map:
            raise UsageError("Nothing to update (--pages or --page).")

        password = settings.mw_bot_password
        if not args.username or not password.get_secret_value():
            raise UsageError("Credentials missing (MW_BOT_USERNAME / MW_BOT_PASSWORD).")
    except UsageError as exc:
        logger.error("%s", exc)
        return EXIT_USAGE

    credentials = Credentials(
        username=args.username,
        password=password,
        registered_bot=args.bot,
    )

    try:
        report = asyncio.run(run(args.host, update_map, credentials))
    except WikiBotError as exc:
        return report_failure(exc)

    logger.info(
        "Updated: %s; skipped: %s",
        ", ".join(report.updated) or "-",
        ", ".join(report.skipped) or "-",
    )
    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
