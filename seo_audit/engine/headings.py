from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable

from seo_audit.engine.document import Document

logger = logging.getLogger(__name__)

LEVELS = (1, 2, 3, 4, 5, 6)

COMMENT_PATTERN = re.compile(r"<!--.*?-->", re.S)
TAG_PATTERN = re.compile(r"<[^>]+>")


def _heading_pattern(level: int) -> re.Pattern[str]:
    return re.compile(rf"<h{level}(?:\s[^>]*)?>(.*?)</h{level}\s*>", re.I | re.S)


HEADING_PATTERNS = {level: _heading_pattern(level) for level in LEVELS}


@dataclass
class HeadingProfile:
    counts: dict[int, int] = field(default_factory=lambda: {level: 0 for level in LEVELS})
    first_h1_text: str = ""

    def count(self, level: int) -> int:
        return self.counts.get(level, 0)

    def as_dict(self) -> dict[str, int]:
        return {f"h{level}": self.count(level) for level in LEVELS}


@dataclass(frozen=True)
class HeadingStrategy:
    name: str
    levels: tuple[int, ...]
    count: Callable[[Document, str, int], int]


def _count_dom(document: Document, html: str, level: int) -> int:
    return len(document.select_tag(f"h{level}"))


def _count_regex(document: Document, html: str, level: int) -> int:
    return len(HEADING_PATTERNS[level].findall(html))


def _count_raw_opening(document: Document, html: str, level: int) -> int:
    return html.lower().count(f"<h{level}")


def _count_regex_without_comments(document: Document, html: str, level: int) -> int:
    return len(HEADING_PATTERNS[level].findall(COMMENT_PATTERN.sub("", html)))


# Parsers and regexes each miss headings on different kinds of broken markup,
# so every level takes the highest count any strategy reports.
STRATEGIES: tuple[HeadingStrategy, ...] = (
    HeadingStrategy("dom", LEVELS, _count_dom),
    HeadingStrategy("regex", LEVELS, _count_regex),
    HeadingStrategy("raw_opening_tag", (2, 3), _count_raw_opening),
    HeadingStrategy("regex_without_comments", (1, 2), _count_regex_without_comments),
)


def strategy_counts(document: Document, html: str) -> dict[str, dict[int, int]]:
    return {
        strategy.name: {level: strategy.count(document, html, level) for level in strategy.levels}
        for strategy in STRATEGIES
    }


def first_h1_text(html: str) -> str:
    match = HEADING_PATTERNS[1].search(html)
    if not match:
        return ""
    return " ".join(TAG_PATTERN.sub(" ", match.group(1)).split())


def detect_headings(document: Document, html: str) -> HeadingProfile:
    html = html or ""
    profile = HeadingProfile()
    per_strategy = strategy_counts(document, html)
    for counts in per_strategy.values():
        for level, value in counts.items():
            profile.counts[level] = max(profile.counts[level], value)
    profile.first_h1_text = first_h1_text(html)
    logger.debug("Heading counts per strategy: %s", per_strategy)
    return profile
