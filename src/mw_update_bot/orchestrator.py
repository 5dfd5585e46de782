"""
Update Orchestrator

One end-to-end bot run: log in, fetch edit tokens for every requested page
in a single query, then edit the pages one after another with the same
session. The first failure aborts the run; pages edited before it stay
edited and are reported on the raised error.
"""

from __future__ import annotations

import logging
from typing import List, Mapping, Optional

from pydantic import BaseModel, Field

from .auth.login import login
from .auth.models import Credentials
from .config import Settings
from .core.errors import WikiBotError
from .wiki.api_client import MediaWikiClient
from .wiki.models import UpdateOutcome
from .wiki.transport import HttpTransport

logger = logging.getLogger("mwbot.run")


class RunReport(BaseModel):
    """Titles edited and skipped, in processing order."""

    updated: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)


async def run(
    host: str,
    update_map: Mapping[str, Optional[str]],
    credentials: Credentials,
    *,
    transport: Optional[HttpTransport] = None,
    config: Optional[Settings] = None,
) -> RunReport:
    """
    Apply an update map to a wiki.

    Parameters
    ----------
    host : str
        Wiki host name.

    update_map : Mapping[str, Optional[str]]
        Page title to replacement text.

    credentials : Credentials
        Account to log in with.

    transport : Optional[HttpTransport]
        Transport override (tests).

    config : Optional[Settings]
        Settings override.

    Raises
    ------
    WikiBotError
        Any failure kind; nothing is retried.
    """
    client = MediaWikiClient(host, transport=transport, config=config)
    report = RunReport()

    session = await login(client, credentials)

    pages = await client.fetch_edit_tokens(session, update_map.keys())

    for page_info in pages:
        try:
            outcome = await client.update_page(
                session,
                update_map,
                page_info,
                registered_bot=credentials.registered_bot,
            )
        except WikiBotError as exc:
            exc.updated_titles = tuple(report.updated)
            logger.error(
                "Update of %r failed after %d page(s) were updated",
                page_info.title,
                len(report.updated),
            )
            raise

        if outcome is UpdateOutcome.UPDATED:
            report.updated.append(page_info.title)
        else:
            report.skipped.append(page_info.title)

    logger.info(
        "Run finished: %d updated, %d skipped",
        len(report.updated),
        len(report.skipped),
    )
    return report
