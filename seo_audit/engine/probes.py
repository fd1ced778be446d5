from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

from lxml import etree

from seo_audit.engine.document import Document
from seo_audit.engine.fetcher import FetchError, Fetcher
from seo_audit.engine.urls import origin_of, resolve

logger = logging.getLogger(__name__)

T = TypeVar("T")

SECURITY_HEADERS = {
    "xFrameOptions": ("x-frame-options",),
    "contentSecurityPolicy": ("content-security-policy",),
    "xXssProtection": ("x-xss-protection",),
    "strictTransportSecurity": ("strict-transport-security",),
    "referrerPolicy": ("referrer-policy",),
    "permissionsPolicy": ("permissions-policy", "feature-policy"),
}

GOOD_CACHE_MAX_AGE_SECONDS = 2_592_000
MAX_AGE_PATTERN = re.compile(r"max-age\s*=\s*\"?(\d+)", re.I)
SITEMAP_PARSER = etree.XMLParser(resolve_entities=False, no_network=True)


@dataclass(frozen=True)
class Success(Generic[T]):
    data: T


@dataclass(frozen=True)
class Absent:
    status: Optional[int] = None


@dataclass(frozen=True)
class Failed:
    reason: str


ProbeResult = Union[Success[T], Absent, Failed]


def _localname(tag: Any) -> str:
    if not isinstance(tag, str):
        return ""
    return etree.QName(tag).localname


async def probe_security_headers(fetcher: Fetcher, url: str, timeout: float) -> ProbeResult[dict[str, str]]:
    try:
        result = await fetcher.fetch(url, method="HEAD", timeout=timeout, validate_all_statuses=True)
    except FetchError as exc:
        return Failed(str(exc))
    return Success(result.headers)


def security_profile(result: ProbeResult[dict[str, str]]) -> dict[str, bool]:
    if isinstance(result, Success):
        headers = result.data
        return {key: any(name in headers for name in names) for key, names in SECURITY_HEADERS.items()}
    if isinstance(result, Failed):
        logger.warning("Security header probe failed: %s", result.reason)
    return {key: False for key in SECURITY_HEADERS}


async def probe_robots(fetcher: Fetcher, page_url: str, timeout: float) -> ProbeResult[tuple[int, str]]:
    robots_url = f"{origin_of(page_url)}/robots.txt"
    try:
        result = await fetcher.fetch(robots_url, timeout=timeout, validate_all_statuses=True)
    except FetchError as exc:
        return Failed(str(exc))
    if result.status >= 400:
        return Absent(result.status)
    return Success((result.status, result.body or ""))


def parse_disallow_rules(text: str) -> list[str]:
    rules = []
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.lower().startswith("disallow"):
            rules.append(stripped)
    return rules


def robots_info(result: ProbeResult[tuple[int, str]]) -> dict[str, Any]:
    if isinstance(result, Success):
        status, text = result.data
        return {"exists": True, "disallowRules": parse_disallow_rules(text), "status": status}
    if isinstance(result, Absent):
        return {"exists": False, "disallowRules": [], "status": result.status}
    logger.warning("robots.txt probe failed: %s", result.reason)
    return {"exists": False, "disallowRules": [], "status": None}


async def probe_sitemap(fetcher: Fetcher, page_url: str, timeout: float) -> ProbeResult[str]:
    sitemap_url = f"{origin_of(page_url)}/sitemap.xml"
    try:
        result = await fetcher.fetch(sitemap_url, timeout=timeout, validate_all_statuses=True)
    except FetchError as exc:
        return Failed(str(exc))
    if result.status >= 400:
        return Absent(result.status)
    return Success(result.body or "")


def count_sitemap_urls(xml_text: str) -> int:
    try:
        root = etree.fromstring(xml_text.strip().encode("utf-8"), SITEMAP_PARSER)
    except (etree.XMLSyntaxError, ValueError):
        logger.info("sitemap.xml is not well-formed XML")
        return 0
    if _localname(root.tag) != "urlset":
        return 0
    return sum(1 for child in root if _localname(child.tag) == "url")


def sitemap_info(result: ProbeResult[str]) -> dict[str, Any]:
    if isinstance(result, Success):
        return {"exists": True, "urlCount": count_sitemap_urls(result.data)}
    if isinstance(result, Failed):
        logger.warning("sitemap.xml probe failed: %s", result.reason)
    return {"exists": False, "urlCount": 0}


def evaluate_caching(headers: dict[str, str]) -> dict[str, Any]:
    cache_control = headers.get("cache-control", "")
    match = MAX_AGE_PATTERN.search(cache_control)
    max_age = int(match.group(1)) if match else 0
    return {
        "cacheControl": cache_control,
        "maxAge": max_age,
        "isGood": max_age > GOOD_CACHE_MAX_AGE_SECONDS,
    }


async def _head_content_length(
    fetcher: Fetcher, page_url: str, src: str, timeout: float
) -> ProbeResult[int]:
    try:
        url = resolve(page_url, src)
    except ValueError as exc:
        return Failed(f"unresolvable image src {src!r}: {exc}")
    try:
        result = await fetcher.fetch(url, method="HEAD", timeout=timeout)
    except FetchError as exc:
        return Failed(str(exc))
    raw = result.headers.get("content-length", "").strip()
    if not raw.isdigit():
        return Absent(result.status)
    return Success(int(raw))


def image_sample_sources(document: Document, limit: int) -> list[str]:
    sources = []
    for img in document.select_by_attr("img", "src"):
        if len(sources) >= limit:
            break
        src = document.get_attr(img, "src").strip()
        if not src or src.startswith("data:"):
            continue
        sources.append(src)
    return sources


async def sample_image_sizes(
    fetcher: Fetcher,
    document: Document,
    page_url: str,
    timeout: float,
    limit: int = 5,
) -> dict[str, Any]:
    sources = image_sample_sources(document, limit)
    results = await asyncio.gather(
        *(_head_content_length(fetcher, page_url, src, timeout) for src in sources)
    )
    sizes = [result.data for result in results if isinstance(result, Success)]
    return {
        "sampled": len(sizes),
        "averageBytes": round(sum(sizes) / len(sizes)) if sizes else 0,
    }


async def run_probes(
    fetcher: Fetcher,
    page_url: str,
    document: Document,
    page_headers: dict[str, str],
    *,
    probe_timeout: float = 15.0,
    head_timeout: float = 10.0,
    image_sample_limit: int = 5,
) -> dict[str, Any]:
    """Issue every auxiliary request concurrently; none of them can fail the analysis."""
    security, robots, sitemap, image_sizes = await asyncio.gather(
        probe_security_headers(fetcher, page_url, head_timeout),
        probe_robots(fetcher, page_url, probe_timeout),
        probe_sitemap(fetcher, page_url, probe_timeout),
        sample_image_sizes(fetcher, document, page_url, head_timeout, image_sample_limit),
    )
    return {
        "securityHeaders": security_profile(security),
        "robotsInfo": robots_info(robots),
        "sitemapInfo": sitemap_info(sitemap),
        "cachingInfo": evaluate_caching(page_headers),
        "imageSizeInfo": image_sizes,
    }
