"""Pipeline wiring together rendering, extraction, normalisation, dedup and persistence."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable

import structlog

from .config import DatabaseConfig, Settings
from .engine import (
    BrowserSession,
    CanonicalNewsItem,
    DuplicateChecker,
    Extractor,
    Normalizer,
    Persister,
    RawNewsItem,
)
from .engine.normalizer import utc_now
from .errors import FatalPipelineError
from .infra import DatabaseManager
from .logging_conf import configure_logging


class RunState(str, Enum):
    """Lifecycle of a single pipeline run."""

    IDLE = "idle"
    RENDERING = "rendering"
    EXTRACTING = "extracting"
    NORMALIZING = "normalizing"
    DRY_RUN = "dry_run"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ItemError:
    """An isolated failure that cost the run one item."""

    stage: str
    title: str
    link: str
    reason: str

    @classmethod
    def from_exception(
        cls, stage: str, item: RawNewsItem | CanonicalNewsItem, exc: Exception
    ) -> "ItemError":
        return cls(stage=stage, title=item.title, link=item.link, reason=str(exc))


@dataclass(frozen=True, slots=True)
class RunAccumulator:
    """Fold state over canonical candidates."""

    inserted: int = 0
    skipped: int = 0
    errors: tuple[ItemError, ...] = ()

    def insert(self) -> "RunAccumulator":
        return replace(self, inserted=self.inserted + 1)

    def skip(self) -> "RunAccumulator":
        return replace(self, skipped=self.skipped + 1)

    def fail(self, error: ItemError) -> "RunAccumulator":
        return replace(self, errors=self.errors + (error,))


@dataclass(slots=True)
class RunResult:
    """Outcome handed to the CLI / HTTP invokers."""

    state: RunState
    dry_run: bool
    inserted: int = 0
    skipped: int = 0
    count: int | None = None
    errors: list[ItemError] = field(default_factory=list)
    error: Exception | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def success(self) -> bool:
        return self.state is RunState.DONE

    def as_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"success": self.success}
        if not self.success:
            payload["error"] = str(self.error) if self.error else "unknown error"
            payload["error_type"] = type(self.error).__name__ if self.error else None
            return payload
        if self.dry_run:
            payload["count"] = self.count or 0
        else:
            payload["inserted"] = self.inserted
            payload["skipped"] = self.skipped
        payload["errors"] = len(self.errors)
        return payload


SessionFactory = Callable[[], BrowserSession]
StorageFactory = Callable[[DatabaseConfig], DatabaseManager]


class Pipeline:
    """Run the fetch → extract → deduplicate → persist flow once per ``run()``."""

    def __init__(
        self,
        settings: Settings,
        *,
        session_factory: SessionFactory | None = None,
        storage_factory: StorageFactory | None = None,
        extractor: Extractor | None = None,
        normalizer: Normalizer | None = None,
        clock: Callable[[], datetime] = utc_now,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.settings = settings
        self.dry_run = settings.dry_run
        self.clock = clock
        self._session_factory = session_factory or self._default_session
        self._storage_factory = storage_factory or DatabaseManager
        self.extractor = extractor or Extractor(settings.container_selector)
        self.normalizer = normalizer or Normalizer(
            settings.base_url,
            settings.tzinfo,
            day_first=settings.day_first,
            clock=clock,
        )
        self.logger = (logger or configure_logging()).bind(component="pipeline")
        self._state = RunState.IDLE

    @property
    def state(self) -> RunState:
        return self._state

    def _transition(self, state: RunState) -> None:
        self.logger.debug("state_transition", previous=self._state.value, state=state.value)
        self._state = state

    def _default_session(self) -> BrowserSession:
        return BrowserSession(
            self.settings.browser,
            timezone_id=self.settings.timezone,
            logger=self.logger.bind(component="renderer"),
        )

    # ------------------------------------------------------------------
    def run(self) -> RunResult:
        self._state = RunState.IDLE
        started_at = self.clock()
        result = RunResult(state=RunState.IDLE, dry_run=self.dry_run, started_at=started_at)
        self.logger.info("run_started", url=self.settings.target_url, dry_run=self.dry_run)
        try:
            html = self._render()
            self._transition(RunState.EXTRACTING)
            raw_items = self.extractor.extract(html)
            self.logger.info("items_extracted", count=len(raw_items))

            self._transition(RunState.NORMALIZING)
            candidates, normalize_errors = self._normalize_all(raw_items)
            result.errors.extend(normalize_errors)

            if self.dry_run:
                self._transition(RunState.DRY_RUN)
                self.logger.info(
                    "dry_run_skip_storage",
                    count=len(candidates),
                    items=[self._describe(item) for item in candidates],
                )
                result.count = len(candidates)
            else:
                self._transition(RunState.PERSISTING)
                accumulator = self._persist_all(candidates, result)
                result.inserted = accumulator.inserted
                result.skipped = accumulator.skipped
                result.errors.extend(accumulator.errors)
        except FatalPipelineError as exc:
            return self._fail(result, exc)
        except Exception as exc:  # noqa: BLE001
            self.logger.exception("run_unexpected_error", error=str(exc))
            return self._fail(result, exc)

        self._transition(RunState.DONE)
        result.state = RunState.DONE
        result.finished_at = self.clock()
        self.logger.info("run_finished", **result.as_dict())
        return result

    def _fail(self, result: RunResult, exc: Exception) -> RunResult:
        self._transition(RunState.FAILED)
        result.state = RunState.FAILED
        result.error = exc
        result.finished_at = self.clock()
        self.logger.error("run_failed", error=str(exc), error_type=type(exc).__name__)
        return result

    # ------------------------------------------------------------------
    def _render(self) -> str:
        self._transition(RunState.RENDERING)
        with self._session_factory() as session:
            page = session.render(
                self.settings.target_url,
                self.settings.container_selector,
                timeout=self.settings.browser.navigation_timeout,
                selector_timeout=self.settings.browser.selector_timeout,
            )
        return page.html

    def _normalize_all(
        self, raw_items: Iterable[RawNewsItem]
    ) -> tuple[list[CanonicalNewsItem], list[ItemError]]:
        candidates: list[CanonicalNewsItem] = []
        errors: list[ItemError] = []
        for raw in raw_items:
            try:
                candidates.append(self.normalizer.normalize(raw))
            except Exception as exc:  # noqa: BLE001
                self.logger.warning(
                    "item_failed", stage="normalize", title=raw.title, error=str(exc)
                )
                errors.append(ItemError.from_exception("normalize", raw, exc))
        return candidates, errors

    def _persist_all(
        self, candidates: list[CanonicalNewsItem], result: RunResult
    ) -> RunAccumulator:
        storage = self._storage_factory(self.settings.database)
        accumulator = RunAccumulator()
        try:
            with storage.connect() as conn:
                checker = DuplicateChecker(conn)
                persister = Persister(conn, self.settings.source_label, clock=self.clock)
                source_id = persister.resolve_content_source_id(self.settings.source_keyword)
                self.logger.info("content_source_resolved", content_source_id=source_id)
                for item in candidates:
                    accumulator = self._fold(accumulator, item, checker, persister, source_id)
                    # expose partial counts if a later item turns fatal
                    result.inserted = accumulator.inserted
                    result.skipped = accumulator.skipped
        finally:
            storage.dispose()
        return accumulator

    def _fold(
        self,
        accumulator: RunAccumulator,
        item: CanonicalNewsItem,
        checker: DuplicateChecker,
        persister: Persister,
        source_id: int,
    ) -> RunAccumulator:
        if checker.is_duplicate(item.link):
            self.logger.info("duplicate_skipped", title=item.title, link=item.link)
            return accumulator.skip()
        try:
            persister.persist(item, source_id)
        except Exception as exc:  # noqa: BLE001
            self.logger.warning("item_failed", stage="persist", link=item.link, error=str(exc))
            return accumulator.fail(ItemError.from_exception("persist", item, exc))
        self.logger.info("item_inserted", title=item.title, link=item.link)
        return accumulator.insert()

    @staticmethod
    def _describe(item: CanonicalNewsItem) -> dict[str, str]:
        payload = asdict(item)
        return {
            key: value.isoformat() if isinstance(value, datetime) else value
            for key, value in payload.items()
        }


def run_pipeline(settings: Settings, **kwargs) -> RunResult:
    """Convenience wrapper used by the CLI, scheduler and HTTP surface."""

    return Pipeline(settings, **kwargs).run()


__all__ = [
    "ItemError",
    "Pipeline",
    "RunAccumulator",
    "RunResult",
    "RunState",
    "run_pipeline",
]
