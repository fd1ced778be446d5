from __future__ import annotations

from typing import Any, Optional

import httpx
import pytest

from seo_audit.engine.fetcher import Fetcher

PAGE_URL = "https://example.com/"


def route(status: int = 200, text: str = "", headers: Optional[dict[str, str]] = None) -> dict[str, Any]:
    return {"status": status, "text": text, "headers": headers or {}}


def build_fetcher(routes: dict[str, Any], calls: Optional[list] = None) -> Fetcher:
    """Fetcher whose client answers from ``routes`` (keyed by scheme://host/path).

    A route may be a ``route(...)`` dict or an ``httpx`` exception class, which
    is raised for that URL. Unknown URLs answer 404.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        key = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        if calls is not None:
            calls.append((request.method, key, request.headers.get("user-agent")))
        spec = routes.get(f"{request.method} {key}", routes.get(key))
        if spec is None:
            return httpx.Response(404, text="not found")
        if isinstance(spec, type) and issubclass(spec, Exception):
            raise spec("mock failure", request=request)
        content = spec["text"].encode("utf-8") if spec["text"] else None
        return httpx.Response(spec["status"], content=content, headers=spec["headers"])

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
    return Fetcher(client=client)


@pytest.fixture
def calls() -> list:
    return []
