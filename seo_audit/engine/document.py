from __future__ import annotations

import re
from typing import Callable, Pattern, Union

from bs4 import BeautifulSoup, Tag

AttrMatch = Union[str, Pattern[str], bool]


class Document:
    """Parsed HTML page with the handful of queries the extractors need."""

    def __init__(self, soup: BeautifulSoup):
        self._soup = soup

    @classmethod
    def parse(cls, html: str) -> "Document":
        return cls(BeautifulSoup(html or "", "lxml"))

    def select_tag(self, name: str) -> list[Tag]:
        return self._soup.find_all(name)

    def select_by_attr(self, name: str, attr: str, match: AttrMatch = True) -> list[Tag]:
        return self._soup.find_all(name, attrs={attr: match})

    def select_where(self, name: str, predicate: Callable[[Tag], bool]) -> list[Tag]:
        return [tag for tag in self._soup.find_all(name) if predicate(tag)]

    @staticmethod
    def get_attr(tag: Tag, name: str) -> str:
        value = tag.get(name)
        if value is None:
            return ""
        if isinstance(value, list):
            return " ".join(str(v) for v in value)
        return str(value)

    @staticmethod
    def has_attr(tag: Tag, name: str) -> bool:
        return tag.has_attr(name)

    @staticmethod
    def rel_values(tag: Tag) -> list[str]:
        rel = tag.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        return [str(v).lower() for v in rel]

    @staticmethod
    def get_text(tag: Tag) -> str:
        return " ".join(tag.get_text(" ", strip=True).split())

    def meta_content(self, name: str) -> str:
        tag = self._soup.find("meta", attrs={"name": re.compile(rf"^{re.escape(name)}$", re.I)})
        if not tag:
            return ""
        return self.get_attr(tag, "content").strip()

    def links_with_rel(self, rel: str) -> list[Tag]:
        return self.select_where("link", lambda tag: rel in self.rel_values(tag))

    def title(self) -> str:
        tag = self._soup.find("title")
        if not tag:
            return ""
        return self.get_text(tag)

    def body_text(self) -> str:
        """Visible text of the body (script, style and noscript removed).

        Works on a copy so the parsed tree stays intact for other extractors.
        """
        root = self._soup.body or self._soup
        clone = BeautifulSoup(str(root), "lxml")
        for tag in clone(["script", "style", "noscript", "template"]):
            tag.decompose()
        return " ".join(clone.get_text(" ", strip=True).split())
