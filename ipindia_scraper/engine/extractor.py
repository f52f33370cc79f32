"""DOM projection of the rendered listing page into raw news items."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from selectolax.parser import HTMLParser, Node

DEFAULT_CONTAINER_SELECTOR = "#news-container"


@dataclass(frozen=True, slots=True)
class RawNewsItem:
    """Item as found on the page, before any normalisation."""

    title: str
    link: str
    date_text: str


def _clean_text(node: Node) -> str:
    return " ".join(node.text(deep=True).split())


class Extractor:
    """Extract news items from ``<li>`` children of the news container."""

    def __init__(self, container_selector: str = DEFAULT_CONTAINER_SELECTOR) -> None:
        self.container_selector = container_selector

    def extract(self, html: str) -> list[RawNewsItem]:
        parser = HTMLParser(html)
        container = parser.css_first(self.container_selector)
        if container is None:
            return []
        items: list[RawNewsItem] = []
        for li in self._list_items(container):
            item = self._extract_item(li)
            if item is not None:
                items.append(item)
        return items

    @staticmethod
    def _list_items(container: Node) -> Iterator[Node]:
        for child in container.iter(include_text=False):
            if child.tag == "li":
                yield child

    @staticmethod
    def _extract_item(li: Node) -> RawNewsItem | None:
        anchor = li.css_first("a")
        paragraph = li.css_first("p")
        if anchor is None or paragraph is None:
            return None
        title = _clean_text(anchor)
        link = (anchor.attributes.get("href") or "").strip()
        if not title or not link:
            return None
        return RawNewsItem(title=title, link=link, date_text=_clean_text(paragraph))


__all__ = ["DEFAULT_CONTAINER_SELECTOR", "Extractor", "RawNewsItem"]
