"""
HTTP-JSON Transport

Executes exactly one HTTP request against the wiki, harvests whitelisted
session cookies from the response and returns the parsed JSON body.

Design Goals
------------
- One request per call, with a hard per-request timeout
- Cookies live in an explicit jar owned by the caller, never in the client
- Transport and decoding failures map onto distinct error kinds
- Injectable httpx transport for testing
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Iterable, NamedTuple, Optional

import httpx

from ..config import settings
from ..core.errors import ParseError, TransportError
from .codec import CookieJar, parse_set_cookie_headers

logger = logging.getLogger("mwbot.transport")


class RequestSpec(NamedTuple):
    """Method, absolute URL and headers of one API call."""
    method: str
    url: str
    headers: Dict[str, str]


class TransportResult(NamedTuple):
    """Cookie jar after the response was read, and the decoded JSON body."""
    cookies: CookieJar
    content: Any


class HttpTransport:
    """
    Sends single JSON API requests with an explicit cookie jar.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        cookie_names: Optional[Iterable[str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Parameters
        ----------
        timeout : Optional[float]
            Per-request timeout in seconds. Defaults to settings.request_timeout.

        cookie_names : Optional[Iterable[str]]
            Session cookie whitelist. Defaults to settings.session_cookie_names.

        transport : Optional[httpx.AsyncBaseTransport]
            Low-level httpx transport, e.g. httpx.MockTransport in tests.
        """
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.cookie_names = list(
            cookie_names if cookie_names is not None else settings.session_cookie_names
        )
        self._transport = transport

    async def request_json(
        self,
        request: RequestSpec,
        cookies: Optional[CookieJar] = None,
        body: Optional[str] = None,
    ) -> TransportResult:
        """
        Send one request and parse its body as JSON.

        Parameters
        ----------
        request : RequestSpec
            What to send.

        cookies : Optional[CookieJar]
            Jar that receives whitelisted Set-Cookie values. A new jar is
            used when omitted.

        body : Optional[str]
            Request body, sent UTF-8 encoded.

        Raises
        ------
        TransportError
            On connection errors and timeouts.

        ParseError
            If the body is not UTF-8 encoded JSON.
        """
        if cookies is None:
            cookies = {}

        content = body.encode("utf-8") if body is not None else None

        try:
            # Deadline covers the whole exchange, body included.
            response = await asyncio.wait_for(
                self._send(request, content),
                timeout=self.timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            logger.error(
                "%s %s timed out after %.3fs",
                request.method,
                _loggable_url(request.url),
                self.timeout,
            )
            raise TransportError(
                f"Request timed out after {self.timeout:.3f}s"
            ) from exc
        except httpx.HTTPError as exc:
            logger.error(
                "%s %s failed (%s): %s",
                request.method,
                _loggable_url(request.url),
                type(exc).__name__,
                str(exc),
            )
            raise TransportError(
                f"Request failed: {type(exc).__name__}"
            ) from exc

        parse_set_cookie_headers(
            response.headers.get_list("set-cookie"),
            cookies,
            self.cookie_names,
        )

        if response.is_error:
            logger.warning(
                "%s %s returned HTTP %d",
                request.method,
                _loggable_url(request.url),
                response.status_code,
            )

        return TransportResult(cookies=cookies, content=_decode_json(response.content))

    async def _send(self, request: RequestSpec, content: Optional[bytes]) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            return await client.request(
                request.method,
                request.url,
                headers=request.headers,
                content=content,
            )


def _decode_json(raw: bytes) -> Any:
    try:
        return json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise ParseError("Response body is not valid UTF-8") from exc
    except json.JSONDecodeError as exc:
        raise ParseError(f"Response body is not valid JSON: {exc.msg}") from exc


def _loggable_url(url: str) -> str:
    # Login URLs carry the password in the query string.
    return url.split("?", 1)[0]
