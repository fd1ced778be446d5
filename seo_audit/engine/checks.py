from __future__ import annotations

from typing import Any


def build_recommendations(analysis: dict[str, Any]) -> list[str]:
    recommendations: list[str] = []

    # Mobile
    if not analysis.get("hasMobileViewport"):
        recommendations.append(
            "Add a mobile viewport meta tag (width=device-width, initial-scale=1) for mobile friendliness."
        )

    # Headings
    if analysis.get("h1Count", 0) == 0:
        recommendations.append("Add at least one H1 heading to the page.")

    # Images alt
    missing_alt = analysis.get("imgCount", 0) - analysis.get("imgWithAltCount", 0)
    if missing_alt > 0:
        recommendations.append(f"Add alt text to {missing_alt} image(s) that are missing it.")

    # Keyword
    if analysis.get("keywordDensity", 0) < 0.5:
        recommendations.append(
            "Increase usage of the primary title keyword in the page content (density is below 0.5%)."
        )

    structured = analysis.get("structuredData") or {}
    if not structured.get("hasStructuredData"):
        recommendations.append("Add structured data (JSON-LD) to help search engines understand the page.")

    if not (analysis.get("robotsInfo") or {}).get("exists"):
        recommendations.append("Add a robots.txt file to guide search engine crawlers.")

    if not (analysis.get("sitemapInfo") or {}).get("exists"):
        recommendations.append("Add a sitemap.xml file to help search engines discover your pages.")

    hreflang_errors = (analysis.get("hreflangInfo") or {}).get("errors") or []
    if hreflang_errors:
        recommendations.append(f"Fix hreflang issues: {', '.join(hreflang_errors)}.")

    mixed_count = (analysis.get("mixedContentInfo") or {}).get("mixedCount", 0)
    if mixed_count > 0:
        recommendations.append(f"Serve {mixed_count} mixed content asset(s) over HTTPS instead of HTTP.")

    if not (analysis.get("cachingInfo") or {}).get("isGood"):
        recommendations.append(
            "Improve browser caching: set a Cache-Control max-age longer than 30 days for static content."
        )

    parse_errors = structured.get("parseErrors", 0)
    if parse_errors > 0:
        recommendations.append(f"Fix {parse_errors} structured data block(s) containing invalid JSON.")

    return recommendations
