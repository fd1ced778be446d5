from __future__ import annotations

import json
import re
from typing import Any
from urllib.parse import urlparse

from bs4 import Tag

from seo_audit.engine.document import Document
from seo_audit.engine.urls import hostname_of, is_https

TOOL_TITLE_MARKER = "SEO Audit Tool"
TITLE_TRAILING_SEPARATORS = re.compile(r"[|\-.]+\s*$")

KEYWORD_STOPLIST = {"and", "the", "for", "with"}
RESOURCE_HINT_RELS = ("preload", "preconnect", "dns-prefetch")
HREFLANG_CODE_PATTERN = re.compile(r"^[A-Za-z]{2,3}(?:-[A-Za-z]{4})?(?:-(?:[A-Za-z]{2}|\d{3}))?$")
URL_PATH_MAX_LENGTH = 100


def clean_title(title: str) -> str:
    if TOOL_TITLE_MARKER not in title:
        return title.strip()
    cleaned = title.split(TOOL_TITLE_MARKER)[0].strip()
    return TITLE_TRAILING_SEPARATORS.sub("", cleaned).strip()


def classify_links(document: Document, page_url: str) -> dict[str, int]:
    host = hostname_of(page_url)
    internal_prefixes = ["/", page_url]
    if host:
        internal_prefixes.extend([f"http://{host}", f"https://{host}"])
    internal_prefixes = tuple(internal_prefixes)

    internal = 0
    external = 0
    for anchor in document.select_by_attr("a", "href"):
        href = document.get_attr(anchor, "href")
        if href.startswith(internal_prefixes):
            internal += 1
        elif href.startswith("http"):
            external += 1
    return {"internalLinks": internal, "externalLinks": external}


def extract_meta(document: Document) -> dict[str, str]:
    canonical = ""
    for link in document.links_with_rel("canonical"):
        canonical = document.get_attr(link, "href").strip()
        break
    return {
        "metaDescription": document.meta_content("description"),
        "robotsMeta": document.meta_content("robots"),
        "keywordsMeta": document.meta_content("keywords"),
        "viewportMeta": document.meta_content("viewport"),
        "canonicalUrl": canonical,
    }


def extract_social_tags(document: Document) -> dict[str, int]:
    open_graph = len(
        document.select_where("meta", lambda tag: document.get_attr(tag, "property").lower().startswith("og:"))
    )
    twitter = len(
        document.select_where("meta", lambda tag: document.get_attr(tag, "name").lower().startswith("twitter:"))
    )
    return {
        "openGraphTags": open_graph,
        "twitterTags": twitter,
        "socialMediaTags": open_graph + twitter,
    }


def extract_page_weight(document: Document) -> dict[str, int]:
    return {
        "scriptCount": len(document.select_tag("script")),
        "cssCount": len(document.links_with_rel("stylesheet")),
        "inlineStyles": len(document.select_tag("style")),
    }


def detect_resource_hints(document: Document) -> dict[str, Any]:
    found = {rel: False for rel in RESOURCE_HINT_RELS}
    count = 0
    for link in document.select_tag("link"):
        rels = [rel for rel in document.rel_values(link) if rel in found]
        if not rels:
            continue
        count += 1
        for rel in rels:
            found[rel] = True
    return {
        "hasPreload": found["preload"],
        "hasPreconnect": found["preconnect"],
        "hasDnsPrefetch": found["dns-prefetch"],
        "count": count,
    }


def analyze_images(document: Document) -> dict[str, int]:
    images = document.select_tag("img")
    return {
        "total": len(images),
        "lazyLoaded": sum(1 for img in images if document.get_attr(img, "loading").strip().lower() == "lazy"),
        "withSrcset": sum(1 for img in images if document.has_attr(img, "srcset")),
    }


def analyze_url_structure(page_url: str) -> dict[str, Any]:
    try:
        path = urlparse(page_url).path
    except ValueError:
        return {"path": "", "isClean": False, "lengthOk": False, "score": 0}
    is_clean = path == path.lower() and "_" not in path
    length_ok = len(path) < URL_PATH_MAX_LENGTH
    return {
        "path": path,
        "isClean": is_clean,
        "lengthOk": length_ok,
        "score": 50 * int(is_clean) + 50 * int(length_ok),
    }


def text_to_code_ratio(body_text: str, html: str) -> float:
    if not html:
        return 0.0
    return len(body_text) / len(html)


def primary_keyword(title: str) -> str:
    for word in title.lower().split():
        if len(word) > 3 and word not in KEYWORD_STOPLIST:
            return word
    return ""


def keyword_density(title: str, body_text: str) -> tuple[str, float]:
    keyword = primary_keyword(title)
    words = body_text.split()
    if not keyword or not words:
        return keyword, 0.0
    occurrences = len(re.findall(rf"(?<!\w){re.escape(keyword)}(?!\w)", body_text, re.I))
    return keyword, occurrences / len(words) * 100


def validate_hreflang(document: Document) -> dict[str, Any]:
    values = [
        document.get_attr(link, "hreflang").strip()
        for link in document.links_with_rel("alternate")
        if document.has_attr(link, "hreflang")
    ]
    errors: list[str] = []
    if values and "x-default" not in {value.lower() for value in values}:
        errors.append("Missing x-default hreflang")
    for value in values:
        if value.lower() != "x-default" and not HREFLANG_CODE_PATTERN.match(value):
            errors.append(f"Invalid hreflang code: {value}")
    return {
        "hasHreflang": bool(values),
        "values": values,
        "errors": errors,
    }


def detect_pagination(document: Document) -> dict[str, bool]:
    def has_rel(rel: str) -> bool:
        return any(rel in document.rel_values(tag) for tag in document.select_tag("link") + document.select_tag("a"))

    return {"hasPrev": has_rel("prev"), "hasNext": has_rel("next")}


def detect_mixed_content(document: Document, page_url: str) -> dict[str, Any]:
    if not is_https(page_url):
        return {"applicable": False, "mixedCount": 0, "mixedUrls": []}

    sources: list[str] = []
    for name in ("img", "script", "iframe"):
        sources.extend(document.get_attr(tag, "src").strip() for tag in document.select_by_attr(name, "src"))
    sources.extend(document.get_attr(tag, "href").strip() for tag in document.links_with_rel("stylesheet"))

    mixed = [src for src in sources if src.lower().startswith("http://")]
    return {"applicable": True, "mixedCount": len(mixed), "mixedUrls": mixed[:20]}


def _collect_schema_types(node: Any, types: list[str]) -> None:
    stack = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, list):
            stack.extend(current)
        elif isinstance(current, dict):
            value = current.get("@type")
            if isinstance(value, list):
                types.extend(str(v) for v in value)
            elif value is not None:
                types.append(str(value))
            if "@graph" in current:
                stack.append(current["@graph"])


def _is_ld_json(tag: Tag) -> bool:
    return Document.get_attr(tag, "type").strip().lower() == "application/ld+json"


def validate_structured_data(document: Document) -> dict[str, Any]:
    blocks = document.select_where("script", _is_ld_json)
    parse_errors = 0
    types: list[str] = []
    for block in blocks:
        raw = block.string or block.get_text() or ""
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            parse_errors += 1
            continue
        _collect_schema_types(data, types)
    return {
        "hasStructuredData": bool(blocks),
        "blockCount": len(blocks),
        "parseErrors": parse_errors,
        "types": list(dict.fromkeys(types)),
    }


def extract_signals(document: Document, html: str, page_url: str) -> dict[str, Any]:
    """Run every network-free extractor against one parsed page."""
    title = clean_title(document.title())
    body_text = document.body_text()
    images = document.select_tag("img")
    meta = extract_meta(document)
    keyword, density = keyword_density(title, body_text)

    signals: dict[str, Any] = {
        "title": title,
        **meta,
        "imgCount": len(images),
        "imgWithAltCount": sum(1 for img in images if document.has_attr(img, "alt")),
        **classify_links(document, page_url),
        "hasSSL": is_https(page_url),
        "hasMobileViewport": "width=device-width" in meta["viewportMeta"],
        **extract_page_weight(document),
        **extract_social_tags(document),
        "resourceHints": detect_resource_hints(document),
        "imageOptimization": analyze_images(document),
        "urlStructure": analyze_url_structure(page_url),
        "textToCodeRatio": text_to_code_ratio(body_text, html),
        "keyword": keyword,
        "keywordDensity": density,
        "hreflangInfo": validate_hreflang(document),
        "paginationInfo": detect_pagination(document),
        "mixedContentInfo": detect_mixed_content(document, page_url),
        "structuredData": validate_structured_data(document),
    }
    return signals
