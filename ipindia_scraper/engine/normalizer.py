"""Turn raw items into canonical records: absolute link, parsed timestamps."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Callable

from dateutil import parser as dtparser

from ..config.models import DEFAULT_BASE_URL
from ..errors import DateParseError, ItemProcessingError
from .extractor import RawNewsItem


@dataclass(frozen=True, slots=True)
class CanonicalNewsItem:
    """Item ready for deduplication and persistence."""

    title: str
    link: str
    published_at: datetime
    fetched_at: datetime


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def absolutize_link(link: str, base_url: str = DEFAULT_BASE_URL) -> str:
    """Prefix relative links with ``base_url``; links starting with ``http`` pass through."""

    if link.startswith("http"):
        return link
    if link.startswith("/"):
        link = link[1:]
    return base_url + link


_FIRST_DEFAULT = datetime(2000, 1, 1)
_SECOND_DEFAULT = datetime(2001, 2, 2)


def parse_date(text: str, tz: tzinfo, *, day_first: bool = False) -> datetime:
    """Parse date text; naive results are placed in ``tz``.

    The text must name a full calendar date. Parsing runs against two different
    defaults so a missing day, month or year shows up as a mismatch instead of
    being filled in silently.

    Raises ``ValueError`` or ``OverflowError`` when nothing usable is found.
    """

    text = text.strip()
    parsed = dtparser.parse(text, dayfirst=day_first, default=_FIRST_DEFAULT)
    control = dtparser.parse(text, dayfirst=day_first, default=_SECOND_DEFAULT)
    if parsed.date() != control.date():
        raise ValueError(f"Incomplete date: {text!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


class Normalizer:
    """Build :class:`CanonicalNewsItem` objects from extractor output."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        tz: tzinfo = timezone.utc,
        *,
        day_first: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.base_url = base_url
        self.tz = tz
        self.day_first = day_first
        self.clock = clock

    def normalize(self, raw: RawNewsItem, base_url: str | None = None) -> CanonicalNewsItem:
        title = raw.title.strip()
        if not title:
            raise ItemProcessingError("News item has an empty title", item=raw)
        link = absolutize_link(raw.link.strip(), base_url or self.base_url)
        try:
            published_at = parse_date(raw.date_text, self.tz, day_first=self.day_first)
        except (ValueError, OverflowError) as exc:
            raise DateParseError(
                f"Unparseable date {raw.date_text!r} for {title!r}", item=raw
            ) from exc
        return CanonicalNewsItem(
            title=title,
            link=link,
            published_at=published_at,
            fetched_at=self.clock(),
        )


__all__ = ["CanonicalNewsItem", "Normalizer", "absolutize_link", "parse_date", "utc_now"]
