"""
Tests for the httpx transports.
"""
import json

import httpx
import pytest
import respx

from fetch_request import (
    AsyncHttpxTransport,
    HttpxTransport,
    TransportConfig,
    TransportError,
    background,
    new,
)
from fetch_request.config import TimeoutConfig
from fetch_request.core.transport import AsyncTransport, Transport, timeout_for


def test_transports_satisfy_protocols():
    assert isinstance(HttpxTransport(), Transport)
    assert isinstance(AsyncHttpxTransport(), AsyncTransport)


def test_transport_lifecycle():
    transport = HttpxTransport()
    with transport:
        assert transport._client is not None
        assert not transport._client.is_closed
    assert transport._client is None


def test_injected_client_is_not_closed():
    client = httpx.Client()
    with HttpxTransport(client=client):
        pass
    assert not client.is_closed
    client.close()


def test_execute_sends_request():
    with respx.mock(base_url="https://example.com") as mock:
        route = mock.post("/items").respond(201, json={"id": 123})

        request = (
            new("https://example.com/items")
            .post()
            .add_query("q", "foo")
            .set_header("X-Trace", "abc")
            .json({"name": "item1"})
            .build()
        )
        with HttpxTransport() as transport:
            response = transport.execute(request)

        assert response.status_code == 201
        assert response.json() == {"id": 123}

        sent = route.calls.last.request
        assert sent.url.params["q"] == "foo"
        assert sent.headers["x-trace"] == "abc"
        assert sent.headers["content-type"] == "application/json"
        assert sent.headers["content-length"] == str(len(b'{"name":"item1"}'))
        assert json.loads(sent.read()) == {"name": "item1"}


def test_config_headers_are_sent():
    config = TransportConfig(headers={"User-Agent": "fetch-request-tests"})
    with respx.mock(base_url="https://example.com") as mock:
        route = mock.get("/ping").respond(204)
        with HttpxTransport(config=config) as transport:
            transport.execute(new("https://example.com/ping").build())
        assert route.calls.last.request.headers["user-agent"] == "fetch-request-tests"


def test_connect_error_becomes_transport_error():
    with respx.mock(base_url="https://example.com") as mock:
        mock.get("/down").mock(side_effect=httpx.ConnectError("refused"))
        with HttpxTransport() as transport:
            with pytest.raises(TransportError) as exc_info:
                transport.execute(new("https://example.com/down").build())
        assert isinstance(exc_info.value.cause, httpx.ConnectError)


def test_cancelled_context_fails_before_sending():
    ctx = background().with_value("k", "v")
    ctx.cancel()
    request = new("https://example.com/never").build_with_context(ctx)

    with respx.mock(assert_all_called=False) as mock:
        route = mock.get("https://example.com/never").respond(200)
        with HttpxTransport() as transport:
            with pytest.raises(TransportError, match="canceled"):
                transport.execute(request)
        assert not route.called


def test_expired_deadline_fails_before_sending():
    request = new("https://example.com/late").build_with_context(background().with_timeout(-1))

    with HttpxTransport() as transport:
        with pytest.raises(TransportError, match="deadline exceeded"):
            transport.execute(request)


def test_do_uses_default_transport():
    with respx.mock(base_url="https://example.com") as mock:
        mock.get("/test").respond(200, json={"a": 1})

        response = new("https://example.com/test").do()

        assert response.status_code == 200
        assert response.json() == {"a": 1}


def test_do_retries_through_httpx():
    with respx.mock(base_url="https://example.com") as mock:
        mock.put("/flaky").mock(side_effect=[
            httpx.ConnectError("refused"),
            httpx.Response(200, text="ok"),
        ])

        response = new("https://example.com/flaky").put().body("payload").retry(2).do()

        assert response.text == "ok"


def test_do_post_form():
    with respx.mock(base_url="https://example.com") as mock:
        route = mock.post("/login").respond(200)

        new("https://example.com/login").post().post_form({"user": "ada"}).do()

        sent = route.calls.last.request
        assert sent.headers["content-type"] == "application/x-www-form-urlencoded"
        assert sent.read() == b"user=ada"


@pytest.mark.asyncio
async def test_async_do_uses_default_transport():
    with respx.mock(base_url="https://example.com") as mock:
        route = mock.post("/items").respond(201, json={"id": 1})

        response = await new("https://example.com/items").post().json({"n": 1}).do_async()

        assert response.status_code == 201
        assert json.loads(route.calls.last.request.read()) == {"n": 1}


@pytest.mark.asyncio
async def test_async_transport_streams_opaque_body():
    def chunks():
        yield b"part1-"
        yield b"part2"

    with respx.mock(base_url="https://example.com") as mock:
        route = mock.post("/upload").respond(200)

        async with AsyncHttpxTransport() as transport:
            await transport.execute(new("https://example.com/upload").post().body(chunks()).build())

        assert route.calls.last.request.read() == b"part1-part2"


@pytest.mark.asyncio
async def test_async_connect_error_becomes_transport_error():
    with respx.mock(base_url="https://example.com") as mock:
        mock.get("/down").mock(side_effect=httpx.ConnectError("refused"))
        async with AsyncHttpxTransport() as transport:
            with pytest.raises(TransportError):
                await transport.execute(new("https://example.com/down").build())


def test_connect_returns_the_client():
    transport = HttpxTransport()
    client = transport.connect()
    assert isinstance(client, httpx.Client)
    assert transport.connect() is client
    transport.close()


@pytest.mark.asyncio
async def test_async_connect_returns_the_client():
    transport = AsyncHttpxTransport()
    client = await transport.connect()
    assert isinstance(client, httpx.AsyncClient)
    assert await transport.connect() is client
    await transport.close()


def test_timeout_without_deadline_uses_config():
    config = TimeoutConfig(connect=1.0, read=2.0, write=3.0, pool=4.0)
    timeout = timeout_for(new("http://localhost").build(), config)
    assert (timeout.connect, timeout.read, timeout.write, timeout.pool) == (1.0, 2.0, 3.0, 4.0)


def test_timeout_keeps_shorter_configured_phases():
    config = TimeoutConfig(connect=1.0, read=2.0, write=3.0)
    request = new("http://localhost").build_with_context(background().with_timeout(600))
    timeout = timeout_for(request, config)

    assert (timeout.connect, timeout.read, timeout.write) == (1.0, 2.0, 3.0)
    # No configured pool timeout: the deadline bounds it
    assert 0 < timeout.pool <= 600


def test_timeout_capped_by_deadline():
    config = TimeoutConfig(connect=1.0, read=30.0, write=30.0)
    request = new("http://localhost").build_with_context(background().with_timeout(5))
    timeout = timeout_for(request, config)

    assert timeout.connect == 1.0
    assert 0 < timeout.read <= 5
    assert 0 < timeout.write <= 5
