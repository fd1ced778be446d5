from __future__ import annotations

import asyncio
import time

import httpx
import pytest

from conftest import PAGE_URL, build_fetcher, route
from seo_audit.config import DEFAULT_USER_AGENT
from seo_audit.engine.fetcher import (
    Fetcher,
    FetchError,
    FetchTimeoutError,
    HostUnreachableError,
    UpstreamStatusError,
)
from seo_audit.engine.urls import validate_url


def test_fetch_page_sends_user_agent(calls):
    fetcher = build_fetcher({PAGE_URL: route(200, "<html>hi</html>", {"Cache-Control": "max-age=10"})}, calls)
    page = asyncio.run(fetcher.fetch_page(PAGE_URL))
    assert page.status_code == 200
    assert page.body_text == "<html>hi</html>"
    assert page.elapsed_bytes == len("<html>hi</html>")
    assert page.headers["cache-control"] == "max-age=10"
    assert calls == [("GET", PAGE_URL, DEFAULT_USER_AGENT)]


def test_error_status_raises_unless_all_statuses_accepted():
    fetcher = build_fetcher({})
    with pytest.raises(UpstreamStatusError) as excinfo:
        asyncio.run(fetcher.fetch(PAGE_URL))
    assert excinfo.value.status == 404

    result = asyncio.run(fetcher.fetch(PAGE_URL, validate_all_statuses=True))
    assert result.status == 404


def test_head_requests_have_no_body():
    fetcher = build_fetcher({PAGE_URL: route(200, "body")})
    result = asyncio.run(fetcher.fetch(PAGE_URL, method="HEAD"))
    assert result.body is None


@pytest.mark.parametrize(
    "exc, expected",
    [
        (httpx.ConnectError, HostUnreachableError),
        (httpx.ConnectTimeout, FetchTimeoutError),
        (httpx.ReadTimeout, FetchTimeoutError),
        (httpx.RemoteProtocolError, FetchError),
    ],
)
def test_network_failures_are_translated(exc, expected):
    fetcher = build_fetcher({PAGE_URL: exc})
    with pytest.raises(expected):
        asyncio.run(fetcher.fetch(PAGE_URL))


def test_slow_body_is_cut_off_at_the_total_timeout():
    async def trickle():
        for _ in range(8):
            await asyncio.sleep(0.6)
            yield b"x"

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=trickle())

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    fetcher = Fetcher(client=client, default_timeout=1.0)
    started = time.monotonic()
    with pytest.raises(FetchTimeoutError):
        asyncio.run(fetcher.fetch(PAGE_URL))
    assert time.monotonic() - started < 1.5


def test_malformed_url_is_a_fetch_error():
    with pytest.raises(FetchError):
        asyncio.run(build_fetcher({}).fetch("http://[::1/a.png", method="HEAD"))


@pytest.mark.parametrize(
    "value",
    [
        "https://example.com/",
        "http://example.com/a?b=c",
        "http://localhost:8000/",
        "https://127.0.0.1/x",
        "https://intranet/",
    ],
)
def test_valid_urls(value):
    assert validate_url(value) == value


@pytest.mark.parametrize(
    "value",
    [None, 123, "", "   ", "not a url", "example.com", "ftp://example.com/", "https://"],
)
def test_invalid_urls(value):
    with pytest.raises(ValueError):
        validate_url(value)
