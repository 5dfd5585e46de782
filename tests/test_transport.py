import asyncio

import httpx
import pytest

from mw_update_bot.core.errors import ParseError, TransportError
from mw_update_bot.wiki.transport import HttpTransport, RequestSpec

from conftest import with_cookies

URL = "https://wiki.example.org/api.php"


def spec(method="GET", url=URL):
    return RequestSpec(method=method, url=url, headers={"User-Agent": "test-agent"})


@pytest.mark.asyncio
async def test_returns_json_and_whitelisted_cookies(fake_wiki):
    wiki = fake_wiki(
        with_cookies({"ok": 1}, "wikicities_session=abc; path=/", "tracking=zzz")
    )
    transport = wiki.transport(cookie_names=["wikicities_session"])

    result = await transport.request_json(spec())

    assert result.content == {"ok": 1}
    assert result.cookies == {"wikicities_session": "abc"}
    assert wiki.requests[0].headers["User-Agent"] == "test-agent"


@pytest.mark.asyncio
async def test_writes_into_callers_jar(fake_wiki):
    wiki = fake_wiki(with_cookies({}, "wikicitiesToken=t1"))
    jar = {"wikicities_session": "abc"}

    result = await wiki.transport().request_json(spec(), jar)

    assert result.cookies is jar
    assert jar == {"wikicities_session": "abc", "wikicitiesToken": "t1"}


@pytest.mark.asyncio
async def test_missing_set_cookie_keeps_jar(fake_wiki):
    wiki = fake_wiki({"ok": True})
    jar = {"wikicities_session": "abc"}

    result = await wiki.transport().request_json(spec(), jar)

    assert result.cookies is jar
    assert jar == {"wikicities_session": "abc"}


@pytest.mark.asyncio
async def test_sends_body_utf8_encoded(fake_wiki):
    wiki = fake_wiki({"edit": {}})

    await wiki.transport().request_json(spec("POST"), body="text=Caf%C3%A9")

    request = wiki.requests[0]
    assert request.method == "POST"
    assert request.content == b"text=Caf%C3%A9"


@pytest.mark.asyncio
async def test_timeout_raises_transport_error(fake_wiki):
    def too_slow(request):
        raise httpx.ReadTimeout("timed out", request=request)

    wiki = fake_wiki(too_slow)

    with pytest.raises(TransportError) as excinfo:
        await wiki.transport(timeout=1.0).request_json(spec())
    assert "timed out" in str(excinfo.value)


@pytest.mark.asyncio
async def test_trickling_body_hits_whole_request_deadline():
    body = b'{"a": 1}'

    async def trickle(reader, writer):
        # Each gap stays under the deadline; the whole body does not.
        try:
            await reader.readuntil(b"\r\n\r\n")
            writer.write(
                b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n"
                b"Content-Length: %d\r\n\r\n" % len(body)
            )
            await writer.drain()
            for byte in body:
                await asyncio.sleep(0.2)
                writer.write(bytes([byte]))
                await writer.drain()
        except ConnectionError:
            pass
        finally:
            writer.close()

    server = await asyncio.start_server(trickle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    # Explicit httpx transport keeps environment proxies out of the way.
    transport = HttpTransport(timeout=0.5, transport=httpx.AsyncHTTPTransport())
    loop = asyncio.get_running_loop()

    try:
        started = loop.time()
        with pytest.raises(TransportError) as excinfo:
            await transport.request_json(spec(url=f"http://127.0.0.1:{port}/api.php"))
        elapsed = loop.time() - started
    finally:
        server.close()
        await server.wait_closed()

    assert "timed out" in str(excinfo.value)
    assert elapsed < 1.0


@pytest.mark.asyncio
async def test_connection_error_raises_transport_error(fake_wiki):
    def refused(request):
        raise httpx.ConnectError("connection refused", request=request)

    wiki = fake_wiki(refused)

    with pytest.raises(TransportError):
        await wiki.transport().request_json(spec())


@pytest.mark.asyncio
async def test_invalid_json_raises_parse_error(fake_wiki):
    wiki = fake_wiki(httpx.Response(200, content=b"<html>maintenance</html>"))

    with pytest.raises(ParseError):
        await wiki.transport().request_json(spec())


@pytest.mark.asyncio
async def test_invalid_utf8_raises_parse_error(fake_wiki):
    wiki = fake_wiki(httpx.Response(200, content=b"\xff\xfe{}"))

    with pytest.raises(ParseError):
        await wiki.transport().request_json(spec())


@pytest.mark.asyncio
async def test_error_status_body_still_parsed(fake_wiki):
    wiki = fake_wiki(httpx.Response(503, json={"error": {"info": "readonly"}}))

    result = await wiki.transport().request_json(spec())

    assert result.content == {"error": {"info": "readonly"}}


def test_defaults_come_from_settings():
    transport = HttpTransport()

    assert transport.timeout == 1.0
    assert "wikicities_session" in transport.cookie_names
