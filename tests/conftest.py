import json
from typing import Any, List
from urllib.parse import parse_qs

import httpx
import pytest

from mw_update_bot.wiki.transport import HttpTransport


class FakeWiki:
    """
    Scripted api.php: replies are served in order, requests are recorded.

    A reply may be a JSON-able object, an httpx.Response, or a callable
    taking the request (which may raise, e.g. httpx.ReadTimeout).
    """

    def __init__(self, replies: List[Any]):
        self.replies = list(replies)
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.replies:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        reply = self.replies.pop(0)
        if callable(reply):
            return reply(request)
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)

    def transport(self, **kwargs) -> HttpTransport:
        return HttpTransport(transport=httpx.MockTransport(self.handler), **kwargs)


def form_of(request: httpx.Request) -> dict:
    """Decode a form-encoded request body into a flat dict."""
    parsed = parse_qs(request.content.decode("utf-8"), keep_blank_values=True)
    return {k: v[0] for k, v in parsed.items()}


def with_cookies(payload: Any, *cookies: str) -> httpx.Response:
    return httpx.Response(
        200,
        content=json.dumps(payload).encode("utf-8"),
        headers=[("content-type", "application/json")] + [("set-cookie", c) for c in cookies],
    )


@pytest.fixture
def fake_wiki():
    def _make(*replies):
        return FakeWiki(list(replies))
    return _make
