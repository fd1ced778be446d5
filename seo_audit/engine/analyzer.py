from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from seo_audit.config import Settings
from seo_audit.engine.checks import build_recommendations
from seo_audit.engine.document import Document
from seo_audit.engine.extractor import extract_signals
from seo_audit.engine.fetcher import Fetcher
from seo_audit.engine.headings import detect_headings
from seo_audit.engine.probes import run_probes
from seo_audit.engine.scoring import compute_scores
from seo_audit.engine.urls import validate_url

logger = logging.getLogger(__name__)


def now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


async def analyze(url: str, fetcher: Fetcher, settings: Optional[Settings] = None) -> dict[str, Any]:
    """Fetch one page and build the full SEO report for it.

    Only the primary fetch may raise (``FetchError`` subclasses); every
    auxiliary probe degrades to an absent value instead.
    """
    settings = settings or Settings()
    url = validate_url(url)

    page = await fetcher.fetch_page(url, timeout=settings.primary_timeout_seconds)
    html = page.body_text
    document = Document.parse(html)

    headings = detect_headings(document, html)
    signals = extract_signals(document, html, url)
    probes = await run_probes(
        fetcher,
        url,
        document,
        page.headers,
        probe_timeout=settings.probe_timeout_seconds,
        head_timeout=settings.head_timeout_seconds,
        image_sample_limit=settings.image_sample_limit,
    )

    analysis: dict[str, Any] = {
        "title": signals.pop("title"),
        "metaDescription": signals.pop("metaDescription"),
        "h1Text": headings.first_h1_text,
        **{f"h{level}Count": count for level, count in sorted(headings.counts.items())},
        "headings": headings.as_dict(),
        **signals,
        "finalUrl": page.final_url,
        "statusCode": page.status_code,
        "pageSizeBytes": page.elapsed_bytes,
        **probes,
    }
    analysis["scores"] = compute_scores(analysis)
    analysis["timestamp"] = now_iso()

    recommendations = build_recommendations(analysis)
    logger.info(
        "Analyzed %s: overall score %s, %d recommendations",
        url,
        analysis["scores"]["overall"],
        len(recommendations),
    )
    return {
        "url": url,
        "analysis": analysis,
        "recommendations": recommendations,
    }
