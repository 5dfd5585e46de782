"""
mw-update-bot

Logs into a MediaWiki wiki and overwrites pages with supplied text.
"""

from .auth.models import AuthSession, AuthState, Credentials
from .orchestrator import RunReport, run

__version__ = "1.0.0"

__all__ = [
    "AuthSession",
    "AuthState",
    "Credentials",
    "RunReport",
    "run",
]
