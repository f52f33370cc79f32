"""Headless-browser rendering of the news listing page."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import structlog

from ..config import BrowserConfig
from ..errors import NavigationError, SelectorTimeoutError

CHROMIUM_ARGS = [
    "--ignore-ssl-errors=yes",
    "--ignore-certificate-errors",
    "--ignore-certificate-errors-spki-list",
    "--no-sandbox",
    "--disable-dev-shm-usage",
]


@dataclass(slots=True)
class RenderedPage:
    """Rendered DOM snapshot returned by :class:`BrowserSession`."""

    url: str
    status_code: int
    html: str


def _default_playwright_factory() -> Any:
    try:
        from playwright.sync_api import sync_playwright
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError(
            "Rendering requires installing the 'playwright' package."
        ) from exc
    return sync_playwright()


class BrowserSession:
    """One isolated Chromium session; use as a context manager.

    The browser, context, page and the Playwright driver are torn down in
    ``__exit__`` whatever happened inside the block.
    """

    def __init__(
        self,
        config: BrowserConfig | None = None,
        *,
        playwright_factory: Callable[[], Any] | None = None,
        timezone_id: str | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config or BrowserConfig()
        self._playwright_factory = playwright_factory or _default_playwright_factory
        self._timezone_id = timezone_id
        self.logger = logger or structlog.get_logger("ipindia_scraper").bind(component="renderer")
        self._manager = None
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    @property
    def is_open(self) -> bool:
        return self._playwright is not None

    def __enter__(self) -> "BrowserSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open(self) -> None:
        if self._playwright is not None:
            return
        self._manager = self._playwright_factory()
        self._playwright = self._manager.start()
        try:
            self._browser = self._playwright.chromium.launch(
                headless=self.config.headless,
                args=CHROMIUM_ARGS,
            )
            width, height = self.config.viewport_size
            context_kwargs: dict[str, Any] = {
                "user_agent": self.config.user_agent,
                "locale": self.config.locale,
                "viewport": {"width": width, "height": height},
                "ignore_https_errors": True,
            }
            if self._timezone_id:
                context_kwargs["timezone_id"] = self._timezone_id
            self._context = self._browser.new_context(**context_kwargs)
            self._page = self._context.new_page()
        except Exception:
            self.close()
            raise
        self.logger.debug("browser_session_opened", headless=self.config.headless)

    def render(
        self,
        url: str,
        selector: str,
        timeout: int | None = None,
        selector_timeout: int | None = None,
    ) -> RenderedPage:
        """Load ``url`` and wait for ``selector``; timeouts are milliseconds."""

        from playwright.sync_api import Error as PlaywrightError
        from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

        if self._page is None:
            raise RuntimeError("BrowserSession.render() called outside an open session")
        navigation_timeout = timeout or self.config.navigation_timeout
        wait_timeout = selector_timeout or self.config.selector_timeout

        self.logger.info("navigating", url=url, timeout_ms=navigation_timeout)
        try:
            response = self._page.goto(
                url, wait_until="domcontentloaded", timeout=navigation_timeout
            )
        except PlaywrightTimeoutError as exc:
            raise NavigationError(f"Timed out loading {url}: {exc}") from exc
        except PlaywrightError as exc:
            raise NavigationError(f"Failed to load {url}: {exc}") from exc

        try:
            self._page.wait_for_selector(selector, timeout=wait_timeout)
        except PlaywrightTimeoutError as exc:
            raise SelectorTimeoutError(
                f"Selector '{selector}' not visible within {wait_timeout} ms"
            ) from exc

        html = self._page.content()
        status_code = response.status if response else 200
        return RenderedPage(url=self._page.url, status_code=status_code, html=html)

    def close(self) -> None:
        for attr in ("_page", "_context", "_browser"):
            handle = getattr(self, attr)
            if handle is not None:
                try:
                    handle.close()
                except Exception as exc:  # noqa: BLE001
                    self.logger.warning("browser_close_failed", handle=attr, error=str(exc))
                setattr(self, attr, None)
        if self._playwright is not None:
            try:
                self._playwright.stop()
            except Exception as exc:  # noqa: BLE001
                self.logger.warning("playwright_stop_failed", error=str(exc))
            self._playwright = None
            self._manager = None
            self.logger.debug("browser_session_closed")


__all__ = ["BrowserSession", "CHROMIUM_ARGS", "RenderedPage"]
