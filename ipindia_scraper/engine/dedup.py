"""Deduplication by exact link lookup against persisted records."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageUnavailableError
from ..infra.storage import curated_contents


class DuplicateChecker:
    """Ask storage whether a canonical link was already ingested.

    Every call is a fresh round trip; nothing is cached between items.
    """

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def is_duplicate(self, link: str) -> bool:
        stmt = select(curated_contents.c.id).where(curated_contents.c.link == link).limit(1)
        try:
            row = self._conn.execute(stmt).first()
        except SQLAlchemyError as exc:
            raise StorageUnavailableError(f"Duplicate lookup failed for {link}: {exc}") from exc
        return row is not None


__all__ = ["DuplicateChecker"]
