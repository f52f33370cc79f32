"""Insert canonical news items into ``curated_contents``."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from sqlalchemy import insert, select
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from ..errors import InsertError, StorageUnavailableError, UnknownSourceError
from ..infra.storage import content_sources, curated_contents
from .normalizer import CanonicalNewsItem, utc_now

PENDING_STATUS = "pending"


def to_storage_datetime(value: datetime) -> datetime:
    """Naive UTC, the representation used by the ``DATETIME`` columns."""

    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class Persister:
    """Write new records; each insert is committed on its own."""

    def __init__(
        self,
        conn: Connection,
        source_label: str = "IPIndia",
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._conn = conn
        self.source_label = source_label
        self.clock = clock

    def resolve_content_source_id(self, keyword: str) -> int:
        stmt = select(content_sources.c.id).where(content_sources.c.keyword == keyword).limit(1)
        try:
            row = self._conn.execute(stmt).first()
        except SQLAlchemyError as exc:
            raise StorageUnavailableError(f"Content source lookup failed: {exc}") from exc
        if row is None:
            raise UnknownSourceError(f"content_source_id for '{keyword}' not found.")
        return row.id

    def persist(self, item: CanonicalNewsItem, content_source_id: int) -> None:
        now = to_storage_datetime(self.clock())
        stmt = insert(curated_contents).values(
            title=item.title,
            link=item.link,
            source=self.source_label,
            content="",
            status=PENDING_STATUS,
            published_at=to_storage_datetime(item.published_at),
            fetched_at=to_storage_datetime(item.fetched_at),
            content_source_id=content_source_id,
            created_at=now,
            updated_at=now,
        )
        try:
            self._conn.execute(stmt)
            self._conn.commit()
        except SQLAlchemyError as exc:
            self._rollback_quietly()
            raise InsertError(f"Insert failed for {item.link}: {exc}", item=item) from exc

    def _rollback_quietly(self) -> None:
        try:
            self._conn.rollback()
        except SQLAlchemyError:
            # connection already gone; the next lookup reports it
            pass


__all__ = ["PENDING_STATUS", "Persister", "to_storage_datetime"]
