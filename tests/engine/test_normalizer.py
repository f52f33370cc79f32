from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from ipindia_scraper.engine import Normalizer, RawNewsItem
from ipindia_scraper.engine.normalizer import absolutize_link
from ipindia_scraper.errors import DateParseError, ItemProcessingError

from conftest import FIXED_NOW, fixed_clock

BASE = "https://ipindia.gov.in/"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("notice.pdf", "https://ipindia.gov.in/notice.pdf"),
        ("/notice.pdf", "https://ipindia.gov.in/notice.pdf"),
        ("writereaddata/News/a.pdf", "https://ipindia.gov.in/writereaddata/News/a.pdf"),
        ("https://ipindia.gov.in/notice.pdf", "https://ipindia.gov.in/notice.pdf"),
        ("http://example.org/x", "http://example.org/x"),
    ],
)
def test_absolutize_link(raw: str, expected: str) -> None:
    assert absolutize_link(raw, BASE) == expected


def test_only_one_leading_slash_is_stripped() -> None:
    assert absolutize_link("//double.pdf", BASE) == "https://ipindia.gov.in//double.pdf"


def test_normalize_parses_natural_date_in_configured_timezone() -> None:
    kolkata = ZoneInfo("Asia/Kolkata")
    normalizer = Normalizer(BASE, kolkata, clock=fixed_clock)
    item = normalizer.normalize(RawNewsItem("Public Notice", "notice.pdf", "January 15, 2024"))
    assert item.title == "Public Notice"
    assert item.link == "https://ipindia.gov.in/notice.pdf"
    assert item.published_at == datetime(2024, 1, 15, tzinfo=kolkata)
    assert item.published_at.tzinfo is kolkata
    assert item.fetched_at == FIXED_NOW


def test_normalize_accepts_base_url_override() -> None:
    normalizer = Normalizer(BASE, timezone.utc, clock=fixed_clock)
    item = normalizer.normalize(
        RawNewsItem("Mirror", "notice.pdf", "15 January 2024"), "https://mirror.example/"
    )
    assert item.link == "https://mirror.example/notice.pdf"
    assert item.published_at.date().isoformat() == "2024-01-15"


def test_normalize_honours_day_first() -> None:
    normalizer = Normalizer(BASE, timezone.utc, day_first=True, clock=fixed_clock)
    item = normalizer.normalize(RawNewsItem("Dated", "a.pdf", "05/02/2024"))
    assert (item.published_at.month, item.published_at.day) == (2, 5)


@pytest.mark.parametrize(
    "date_text",
    [
        "TBD",
        "",
        "Notice No. 12",
        "Corrigendum 3",
        "Updated on Monday",
        "Circular 2024",
        "January 2024",
        "15 January",
        "Monday",
        "12",
    ],
)
def test_unparseable_date_raises_with_offending_record(date_text: str) -> None:
    raw = RawNewsItem("Broken", "broken.pdf", date_text)
    with pytest.raises(DateParseError) as excinfo:
        Normalizer(BASE, timezone.utc, clock=fixed_clock).normalize(raw)
    assert excinfo.value.item is raw
    assert isinstance(excinfo.value, ItemProcessingError)


@pytest.mark.parametrize(
    ("date_text", "expected"),
    [
        ("  March 3, 2024 ", "2024-03-03"),
        ("2024-03-03", "2024-03-03"),
        ("03/04/2024", "2024-03-04"),
    ],
)
def test_complete_dates_parse_without_calendar_defaults(date_text: str, expected: str) -> None:
    item = Normalizer(BASE, timezone.utc, clock=fixed_clock).normalize(
        RawNewsItem("Dated", "a.pdf", date_text)
    )
    assert item.published_at.date().isoformat() == expected
    assert item.published_at.tzinfo is timezone.utc


def test_blank_title_is_an_item_error() -> None:
    with pytest.raises(ItemProcessingError):
        Normalizer(BASE, timezone.utc).normalize(RawNewsItem("  ", "a.pdf", "January 1, 2024"))
