from __future__ import annotations

from typing import Any

WEIGHTS = {"technical": 0.4, "content": 0.4, "performance": 0.2}


def _clamp(score: float) -> int:
    return max(0, min(100, int(score)))


def technical_score(analysis: dict[str, Any]) -> int:
    score = 0
    if analysis.get("hasSSL"):
        score += 20
    if analysis.get("hasMobileViewport"):
        score += 15
    if analysis.get("canonicalUrl"):
        score += 10
    if "noindex" not in str(analysis.get("robotsMeta") or "").lower():
        score += 15
    if (analysis.get("resourceHints") or {}).get("count", 0) > 0:
        score += 10
    if (analysis.get("securityHeaders") or {}).get("contentSecurityPolicy"):
        score += 10
    return _clamp(score)


def content_score(analysis: dict[str, Any]) -> int:
    score = 0
    if analysis.get("textToCodeRatio", 0) > 0.1:
        score += 20
    if analysis.get("h1Count", 0) == 1:
        score += 20
    if analysis.get("h2Count", 0) >= 2:
        score += 10
    if 0.5 < analysis.get("keywordDensity", 0) < 5:
        score += 10
    return _clamp(score)


def performance_score(analysis: dict[str, Any]) -> int:
    weight = analysis.get("scriptCount", 0) + analysis.get("cssCount", 0)
    return _clamp(max(100 - 2 * weight, 0))


def overall_score(technical: int, content: int, performance: int) -> int:
    return round(
        WEIGHTS["technical"] * technical
        + WEIGHTS["content"] * content
        + WEIGHTS["performance"] * performance
    )


def compute_scores(analysis: dict[str, Any]) -> dict[str, int]:
    technical = technical_score(analysis)
    content = content_score(analysis)
    performance = performance_score(analysis)
    return {
        "technical": technical,
        "content": content,
        "performance": performance,
        "overall": overall_score(technical, content, performance),
    }
