from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Literal, Optional

import httpx

from seo_audit.config import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

Method = Literal["GET", "HEAD"]


class FetchError(RuntimeError):
    """Network-level failure while fetching a resource."""

    def __init__(self, url: str, message: str):
        super().__init__(message)
        self.url = url


class HostUnreachableError(FetchError):
    pass


class FetchTimeoutError(FetchError):
    pass


class UpstreamStatusError(FetchError):
    def __init__(self, url: str, status: int, reason: str = ""):
        super().__init__(url, f"{url} returned HTTP {status} {reason}".strip())
        self.status = status
        self.reason = reason


@dataclass(frozen=True)
class FetchResult:
    url: str
    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None


@dataclass(frozen=True)
class FetchedPage:
    final_url: str
    status_code: int
    headers: dict[str, str]
    body_text: str
    elapsed_bytes: int


class Fetcher:
    """Thin async HTTP layer shared by the primary fetch and every probe.

    One instance (and one underlying ``httpx.AsyncClient``) lives for a single
    analysis request. Pass ``client`` to reuse a preconfigured client, e.g.
    one built on ``httpx.MockTransport`` in tests.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        default_timeout: float = 30.0,
    ):
        self.user_agent = user_agent
        self.default_timeout = default_timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(follow_redirects=True)

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch(
        self,
        url: str,
        *,
        method: Method = "GET",
        timeout: Optional[float] = None,
        validate_all_statuses: bool = False,
    ) -> FetchResult:
        timeout = self.default_timeout if timeout is None else timeout
        try:
            # Bounds the whole request, body included.
            response = await asyncio.wait_for(
                self._client.request(
                    method,
                    url,
                    headers={"User-Agent": self.user_agent},
                    timeout=timeout,
                    follow_redirects=True,
                ),
                timeout=timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            raise FetchTimeoutError(url, f"timed out after {timeout:g}s fetching {url}") from exc
        except httpx.ConnectError as exc:
            raise HostUnreachableError(url, f"could not connect to {url}: {exc}") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise FetchError(url, f"{type(exc).__name__}: {exc}") from exc

        if response.status_code >= 400 and not validate_all_statuses:
            raise UpstreamStatusError(url, response.status_code, response.reason_phrase)

        headers = {key.lower(): value for key, value in response.headers.items()}
        body = None if method == "HEAD" else response.text
        return FetchResult(url=str(response.url), status=response.status_code, headers=headers, body=body)

    async def fetch_page(self, url: str, timeout: Optional[float] = None) -> FetchedPage:
        logger.info("Fetching %s", url)
        result = await self.fetch(url, method="GET", timeout=timeout)
        body = result.body or ""
        page = FetchedPage(
            final_url=result.url,
            status_code=result.status,
            headers=result.headers,
            body_text=body,
            elapsed_bytes=len(body.encode("utf-8")),
        )
        logger.info("Fetched %s (%s, %d bytes)", page.final_url, page.status_code, page.elapsed_bytes)
        return page
