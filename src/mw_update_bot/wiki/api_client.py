"""
MediaWiki Action API Client

This module wraps the wiki's ``api.php`` endpoint for the calls a bot run
needs once it is logged in: batched edit-token lookup and page edits. The
login flow (``auth.login``) issues its requests through the same client.

Design Goals
------------
- Every authenticated call takes the session explicitly
- Deterministic request construction (URL, headers, form body)
- Explicit response-shape validation per call
- Fully dependency-injectable for testing
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional
import logging

from pydantic import ValidationError

from ..auth.models import AuthSession
from ..config import Settings, settings as default_settings
from ..core.errors import EditFailedError, InvalidResponseError
from .codec import build_cookie_header, build_query
from .models import PageInfo, UpdateOutcome, to_primitive
from .transport import HttpTransport, RequestSpec

logger = logging.getLogger("mwbot.wiki")


class MediaWikiClient:
    """
    Request builder and response validator for one wiki host.
    """

    def __init__(
        self,
        host: str,
        transport: Optional[HttpTransport] = None,
        config: Optional[Settings] = None,
    ) -> None:
        """
        Parameters
        ----------
        host : str
            Wiki host name, e.g. ``example.fandom.com``.

        transport : Optional[HttpTransport]
            Transport used for every request. Built from config when omitted.

        config : Optional[Settings]
            Settings override. Defaults to the module-level settings.
        """
        if not host:
            raise ValueError("Wiki host must be non-empty.")

        self.config = config or default_settings
        self.host = host
        self.base_url = f"https://{host}/{self.config.mw_api_endpoint}"
        self.transport = transport or HttpTransport(
            timeout=self.config.request_timeout,
            cookie_names=self.config.session_cookie_names,
        )

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------

    def api_url(self, params: Optional[Mapping[str, Any]] = None) -> str:
        if not params:
            return self.base_url
        return f"{self.base_url}?{build_query(params)}"

    def _headers(self, session: AuthSession) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "User-Agent": self.config.user_agent,
        }
        if session.cookies:
            headers["Cookie"] = build_cookie_header(session.cookies)
        return headers

    async def request(
        self,
        method: str,
        session: AuthSession,
        params: Optional[Mapping[str, Any]] = None,
        form: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Send one API request within a session and return the JSON content.

        Parameters
        ----------
        method : str
            HTTP method.

        session : AuthSession
            Session whose cookie jar is sent and updated.

        params : Optional[Mapping[str, Any]]
            Query-string parameters.

        form : Optional[Mapping[str, Any]]
            Form-encoded body parameters.
        """
        headers = self._headers(session)
        body = None

        if form is not None:
            body = build_query(form)
            headers["Content-Type"] = "application/x-www-form-urlencoded"
            headers["Content-Length"] = str(len(body.encode("utf-8")))

        result = await self.transport.request_json(
            RequestSpec(method=method, url=self.api_url(params), headers=headers),
            session.cookies,
            body,
        )
        return result.content

    # ------------------------------------------------------------------
    # Edit tokens
    # ------------------------------------------------------------------

    async def fetch_edit_tokens(
        self,
        session: AuthSession,
        titles: Iterable[str],
    ) -> List[PageInfo]:
        """
        Look up edit tokens for all titles in a single query.

        Returns
        -------
        List[PageInfo]
            Page entries in the order the server listed them.

        Raises
        ------
        InvalidResponseError
            If the response has no ``query.pages`` object or a page entry
            is malformed.
        """
        wanted = list(dict.fromkeys(titles))
        if not wanted:
            return []

        params = {
            "action": "query",
            "prop": "info",
            "intoken": "edit",
            "titles": "|".join(wanted),
            "indexpageids": "",
            "format": "json",
        }

        data = await self.request("GET", session, params=params)

        query = data.get("query") if isinstance(data, dict) else None
        pages = query.get("pages") if isinstance(query, dict) else None
        if not isinstance(pages, dict):
            raise InvalidResponseError("Edit token response missing 'query.pages'.")

        infos: List[PageInfo] = []
        for key, page in pages.items():
            if not isinstance(page, dict) or not isinstance(page.get("title"), str):
                raise InvalidResponseError(
                    f"Malformed page entry {key!r} in edit token response."
                )
            try:
                infos.append(PageInfo.model_validate(page))
            except ValidationError as exc:
                raise InvalidResponseError(
                    f"Invalid page entry {key!r} in edit token response."
                ) from exc

        logger.info("Fetched edit info for %d of %d page(s)", len(infos), len(wanted))
        return infos

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    async def update_page(
        self,
        session: AuthSession,
        update_map: Mapping[str, Optional[str]],
        page_info: PageInfo,
        registered_bot: bool = False,
    ) -> UpdateOutcome:
        """
        Replace the text of one page, unless there is nothing to write.

        Parameters
        ----------
        session : AuthSession
            The session the edit token was issued to.

        update_map : Mapping[str, Optional[str]]
            Title to replacement text. Missing or empty text means skip.

        page_info : PageInfo
            Page entry carrying the edit token.

        registered_bot : bool
            Assert the ``bot`` right instead of ``user``.

        Raises
        ------
        InvalidResponseError
            If the page has no edit token, or the reply is not an edit result.

        EditFailedError
            If the wiki reports an error for the edit.
        """
        title = page_info.title
        text = update_map.get(title)
        if not text:
            logger.info("Skipping %r: no replacement text", title)
            return UpdateOutcome.SKIPPED

        if not page_info.edit_token:
            raise InvalidResponseError(f"No edit token for page {title!r}.")

        form = {
            "action": "edit",
            "title": title,
            "text": text,
            "summary": self.config.edit_summary,
            "token": page_info.edit_token,
            "assert": "bot" if registered_bot else "user",
            "format": "json",
        }

        data = await self.request("POST", session, form=form)
        if not isinstance(data, dict):
            raise InvalidResponseError(f"Edit response for {title!r} is not an object.")

        error = data.get("error")
        if error is not None:
            info = to_primitive(error.get("info")) if isinstance(error, dict) else ""
            raise EditFailedError(info or "Edit failed", title=title)

        edit = data.get("edit")
        if not isinstance(edit, dict):
            raise InvalidResponseError(f"Edit response for {title!r} missing 'edit'.")

        result = edit.get("result")
        if result is not None and result != "Success":
            raise EditFailedError(
                f"Edit failed: {to_primitive(result) or 'unknown result'}",
                title=title,
            )

        logger.info("Updated %r", title)
        return UpdateOutcome.UPDATED
