"""
Authentication Models

Credentials fed into the login flow and the session context it produces.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from ..config import Settings


class Credentials(BaseModel):
    """
    Account used to log in. Immutable for the lifetime of a run.
    """

    username: str = Field(
        ...,
        min_length=1,
        description="MediaWiki account name (lgname).",
    )

    password: SecretStr = Field(
        ...,
        description="Account or bot password (lgpassword).",
    )

    registered_bot: bool = Field(
        default=False,
        description="Whether edits should assert the bot user right.",
    )

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    @classmethod
    def from_settings(cls, config: Settings) -> "Credentials":
        return cls(
            username=config.mw_bot_username,
            password=config.mw_bot_password,
            registered_bot=config.mw_registered_bot,
        )


class AuthState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    TOKEN_OBTAINED = "token_obtained"
    NEED_CONFIRM = "need_confirm"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class AuthSession(BaseModel):
    """
    Session context threaded through every authenticated request of a run.

    `cookies` is the single jar for the whole run: the transport writes
    Set-Cookie values into it and every request sends it back.
    """

    cookies: Dict[str, str] = Field(default_factory=dict)
    token: Optional[str] = None
    confirmed_token: Optional[str] = None
    session_id: Optional[str] = None
    state: AuthState = AuthState.UNAUTHENTICATED

    @property
    def is_authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED
