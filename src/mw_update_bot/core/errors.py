"""
Error Taxonomy

This module defines every failure kind a bot run can end with, plus the
top-level handler the command line uses to surface them.

Design Goals
------------
- One exception class per failure kind, distinguishable by type alone
- Every kind is fatal to the current run; nothing here is retried
- Partial progress (pages already updated) travels with the error
- Stable process exit codes per kind
"""

from __future__ import annotations

import logging
from typing import Tuple

logger = logging.getLogger("mwbot.errors")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class WikiBotError(RuntimeError):
    """Base exception for all failures of a bot run."""

    exit_code = 1
    kind = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        # Titles already edited when the run aborted; set by the orchestrator.
        self.updated_titles: Tuple[str, ...] = ()


class TransportError(WikiBotError):
    """Raised when the connection fails or a request times out."""

    exit_code = 3
    kind = "transport"


class ParseError(WikiBotError):
    """Raised when a response body is not valid UTF-8 JSON."""

    exit_code = 4
    kind = "parse"


class InvalidResponseError(WikiBotError):
    """Raised when well-formed JSON lacks a field the call requires."""

    exit_code = 5
    kind = "invalid_response"


class LoginFailedError(WikiBotError):
    """Raised when the wiki reports an explicit login failure."""

    exit_code = 6
    kind = "login_failed"


class EditFailedError(WikiBotError):
    """Raised when the wiki rejects an edit."""

    exit_code = 7
    kind = "edit_failed"

    def __init__(self, message: str, title: str = "") -> None:
        super().__init__(message)
        self.title = title


# ---------------------------------------------------------------------
# Top-level handler
# ---------------------------------------------------------------------

def report_failure(exc: WikiBotError) -> int:
    """
    Log a failed run and return the process exit code for it.

    Parameters
    ----------
    exc : WikiBotError
        The error that aborted the run.

    Returns
    -------
    int
        Exit code associated with the error kind.
    """
    logger.error("Run aborted (%s): %s", exc.kind, exc.message)

    if exc.updated_titles:
        logger.error(
            "Pages updated before the failure: %s",
            ", ".join(exc.updated_titles),
        )

    logger.debug("Failure traceback", exc_info=exc)
    return exc.exit_code
