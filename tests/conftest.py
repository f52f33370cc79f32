"""Pytest configuration providing fake browsers, in-memory storage and HTML fixtures."""

from __future__ import annotations

import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Iterable

import pytest

# Keep log files out of the source tree for the whole session.
os.environ.setdefault("IPINDIA_SCRAPER_HOME", tempfile.mkdtemp(prefix="ipindia-scraper-tests-"))

from sqlalchemy import create_engine, insert, select  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from ipindia_scraper.config import ConfigLocator, ConfigRepository, Settings  # noqa: E402
from ipindia_scraper.engine import RenderedPage  # noqa: E402
from ipindia_scraper.infra import DatabaseManager, content_sources, curated_contents, metadata  # noqa: E402

FIXED_NOW = datetime(2024, 2, 1, 6, 30, tzinfo=timezone.utc)

LISTING_HTML = """
<html><body>
<ul id="news-container">
  <li><a href="notice.pdf">Public Notice on Patent Fees</a><p>January 15, 2024</p></li>
  <li><a href="/writereaddata/Portal/News/trade-marks.pdf">Trade Marks Hearing Schedule</a><p>January 10, 2024</p></li>
  <li><a href="https://ipindia.gov.in/designs-update.htm">Designs Rules Update</a><p>December 28, 2023</p></li>
  <li><a href="missing-date.pdf">Item without a date paragraph</a></li>
</ul>
</body></html>
"""

LISTING_LINKS = [
    "https://ipindia.gov.in/notice.pdf",
    "https://ipindia.gov.in/writereaddata/Portal/News/trade-marks.pdf",
    "https://ipindia.gov.in/designs-update.htm",
]


def fixed_clock() -> datetime:
    return FIXED_NOW


class FakeSession:
    """Stand-in for :class:`BrowserSession` recording its lifecycle."""

    def __init__(self, html: str = LISTING_HTML, error: Exception | None = None) -> None:
        self.html = html
        self.error = error
        self.opened = False
        self.closed = False
        self.render_calls: list[dict[str, Any]] = []

    def __enter__(self) -> "FakeSession":
        self.opened = True
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.closed = True

    def render(self, url: str, selector: str, timeout=None, selector_timeout=None) -> RenderedPage:
        self.render_calls.append(
            {"url": url, "selector": selector, "timeout": timeout, "selector_timeout": selector_timeout}
        )
        if self.error is not None:
            raise self.error
        return RenderedPage(url=url, status_code=200, html=self.html)


class FakePage:
    def __init__(self, html: str, goto_error: Exception | None = None, wait_error: Exception | None = None) -> None:
        self.html = html
        self.goto_error = goto_error
        self.wait_error = wait_error
        self.url = "about:blank"
        self.calls: list[tuple] = []
        self.closed = False

    def goto(self, url: str, wait_until: str, timeout: int):
        self.calls.append(("goto", url, wait_until, timeout))
        if self.goto_error is not None:
            raise self.goto_error
        self.url = url
        return SimpleNamespace(status=200, headers={})

    def wait_for_selector(self, selector: str, timeout: int) -> None:
        self.calls.append(("wait_for_selector", selector, timeout))
        if self.wait_error is not None:
            raise self.wait_error

    def content(self) -> str:
        return self.html

    def close(self) -> None:
        self.closed = True


class FakeContext:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.closed = False

    def new_page(self) -> FakePage:
        return self.page

    def close(self) -> None:
        self.closed = True


class FakeBrowser:
    def __init__(self, page: FakePage) -> None:
        self.context = FakeContext(page)
        self.context_kwargs: dict[str, Any] = {}
        self.closed = False

    def new_context(self, **kwargs) -> FakeContext:
        self.context_kwargs = kwargs
        return self.context

    def close(self) -> None:
        self.closed = True


class FakePlaywright:
    def __init__(self, page: FakePage) -> None:
        self.browser = FakeBrowser(page)
        self.launch_kwargs: dict[str, Any] = {}
        self.stopped = False
        self.chromium = SimpleNamespace(launch=self._launch)

    def _launch(self, **kwargs) -> FakeBrowser:
        self.launch_kwargs = kwargs
        return self.browser

    def stop(self) -> None:
        self.stopped = True


class FakePlaywrightManager:
    def __init__(self, playwright: FakePlaywright) -> None:
        self.playwright = playwright

    def start(self) -> FakePlaywright:
        return self.playwright


@pytest.fixture
def fake_playwright() -> Callable[..., FakePlaywright]:
    def _builder(html: str = LISTING_HTML, **errors) -> FakePlaywright:
        return FakePlaywright(FakePage(html, **errors))

    return _builder


@pytest.fixture
def sqlite_engine() -> Iterable[Engine]:
    engine = create_engine(
        "sqlite+pysqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def content_source_id(sqlite_engine: Engine) -> int:
    with sqlite_engine.begin() as conn:
        result = conn.execute(insert(content_sources).values(keyword="IPIndia News"))
        return result.inserted_primary_key[0]


@pytest.fixture
def storage_factory(sqlite_engine: Engine) -> Callable[..., DatabaseManager]:
    def _factory(_config=None) -> DatabaseManager:
        return DatabaseManager(engine=sqlite_engine)

    return _factory


@pytest.fixture
def stored_links(sqlite_engine: Engine) -> Callable[[], list[str]]:
    def _links() -> list[str]:
        with sqlite_engine.connect() as conn:
            rows = conn.execute(select(curated_contents.c.link).order_by(curated_contents.c.id))
            return [row.link for row in rows]

    return _links


@pytest.fixture
def seed_content(sqlite_engine: Engine) -> Callable[..., None]:
    def _seed(link: str, title: str = "Existing", source_id: int | None = None) -> None:
        with sqlite_engine.begin() as conn:
            conn.execute(
                insert(curated_contents).values(
                    title=title,
                    link=link,
                    source="IPIndia",
                    content="",
                    status="pending",
                    content_source_id=source_id,
                )
            )

    return _seed


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    def _builder(**overrides: Any) -> Settings:
        return Settings(**overrides)

    return _builder


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigRepository:
    monkeypatch.setenv("IPINDIA_SCRAPER_HOME", str(tmp_path))
    monkeypatch.delenv("IPINDIA_SCRAPER_CONFIG", raising=False)
    return ConfigRepository(ConfigLocator(project_root=tmp_path), environ={})
