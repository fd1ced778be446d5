from __future__ import annotations

from urllib.parse import urljoin, urlparse


def validate_url(raw_url: object) -> str:
    if not isinstance(raw_url, str):
        raise ValueError("url is required and must be a string")
    value = raw_url.strip()
    if not value:
        raise ValueError("url is required")
    if any(ch.isspace() for ch in value):
        raise ValueError("invalid url")
    try:
        parsed = urlparse(value)
        hostname = parsed.hostname or ""
    except ValueError as exc:
        raise ValueError("invalid url") from exc
    if parsed.scheme not in {"http", "https"}:
        raise ValueError("url must start with http:// or https://")
    if not parsed.netloc or not hostname:
        raise ValueError("invalid url")
    return value


def origin_of(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def hostname_of(url: str) -> str:
    try:
        return urlparse(url).hostname or ""
    except ValueError:
        return ""


def is_https(url: str) -> bool:
    return url.lower().startswith("https://")


def resolve(base_url: str, ref: str) -> str:
    return urljoin(base_url, ref.strip())
