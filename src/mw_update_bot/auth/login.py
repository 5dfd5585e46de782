"""
Login Flow

Drives the legacy two-step ``action=login`` handshake of MediaWiki 1.19:

    unauthenticated -> token_obtained -> authenticated
                                      -> need_confirm -> authenticated

A first POST sends name and password. The wiki either accepts it outright
(``Success``) or hands back a login token (``NeedToken``) that has to be
echoed in a second POST, together with the session cookies set by the first
one. Any failure leaves the session in the ``failed`` state and propagates.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from ..core.errors import InvalidResponseError, LoginFailedError, WikiBotError
from ..wiki.api_client import MediaWikiClient
from ..wiki.models import to_primitive
from .models import AuthSession, AuthState, Credentials

logger = logging.getLogger("mwbot.auth")

ACCEPTED_LOGIN_RESULTS = ("Success", "NeedToken")


def _login_object(content: Any) -> Dict[str, Any]:
    login = content.get("login") if isinstance(content, dict) else None
    if not isinstance(login, dict):
        raise InvalidResponseError("Login response missing 'login' object.")
    return login


class LoginFlow:
    """
    State machine producing an authenticated session for one run.
    """

    def __init__(self, client: MediaWikiClient, credentials: Credentials) -> None:
        self._client = client
        self._credentials = credentials
        self.session = AuthSession()

    @property
    def state(self) -> AuthState:
        return self.session.state

    def _transition(self, state: AuthState) -> None:
        logger.debug("Login state %s -> %s", self.session.state.value, state.value)
        self.session.state = state

    def _login_params(self) -> Dict[str, Any]:
        return {
            "action": "login",
            "lgname": self._credentials.username,
            "lgpassword": self._credentials.password.get_secret_value(),
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(self) -> AuthSession:
        """
        Log in, confirming the token when the wiki asks for it.

        Raises
        ------
        InvalidResponseError
            If a login reply lacks a required field.

        LoginFailedError
            If the wiki rejects the credentials.
        """
        try:
            await self.attempt_login()
            if self.state is AuthState.NEED_CONFIRM:
                await self.confirm_token()
        except WikiBotError:
            self._transition(AuthState.FAILED)
            raise

        logger.info("Logged in as %s", self._credentials.username)
        return self.session

    async def attempt_login(self) -> None:
        """First round trip: name and password, no token."""
        if self.state is not AuthState.UNAUTHENTICATED:
            raise RuntimeError(f"Cannot attempt login from state {self.state.value}.")

        params = self._login_params()
        params["format"] = "json"

        content = await self._client.request("POST", self.session, params=params)
        login = _login_object(content)

        result = login.get("result")
        if result is None:
            raise InvalidResponseError("Login response missing 'login.result'.")
        if result not in ACCEPTED_LOGIN_RESULTS:
            reason = to_primitive(login.get("reason"))
            raise LoginFailedError(
                f"Login failed: {to_primitive(result)}" + (f" ({reason})" if reason else "")
            )

        token = to_primitive(login.get("token")) or to_primitive(login.get("lgtoken"))
        if not token:
            raise InvalidResponseError("Login response missing 'login.token'.")

        self.session.token = token
        self._transition(AuthState.TOKEN_OBTAINED)

        if result == "Success":
            self._transition(AuthState.AUTHENTICATED)
        else:
            self._transition(AuthState.NEED_CONFIRM)

    async def confirm_token(self) -> None:
        """Second round trip: echo the login token with the session cookies."""
        if self.state is not AuthState.NEED_CONFIRM:
            raise RuntimeError(f"Cannot confirm token from state {self.state.value}.")

        params = self._login_params()
        params["lgtoken"] = self.session.token
        params["format"] = "json"

        content = await self._client.request("POST", self.session, params=params)
        login = _login_object(content)

        result = login.get("result")
        if result is not None and result != "Success":
            raise LoginFailedError(f"Login confirmation failed: {to_primitive(result)}")

        confirmed = to_primitive(login.get("lgtoken"))
        if not confirmed:
            raise InvalidResponseError("Confirm response missing 'login.lgtoken'.")

        self.session.confirmed_token = confirmed
        self.session.session_id = to_primitive(login.get("sessionid")) or None
        self._transition(AuthState.AUTHENTICATED)


async def login(client: MediaWikiClient, credentials: Credentials) -> AuthSession:
    """Run the login flow and return the authenticated session."""
    return await LoginFlow(client, credentials).run()
