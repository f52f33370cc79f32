"""Storage abstractions: table metadata and engine lifecycle."""

from __future__ import annotations

from contextlib import contextmanager
from threading import Lock
from typing import Iterator

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    insert,
    select,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from ..config import DatabaseConfig
from ..errors import StorageUnavailableError

metadata = MetaData()

content_sources = Table(
    "content_sources",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("keyword", String(255), nullable=False),
)

# Uniqueness of ``link`` is enforced by lookup-before-insert, not by the schema.
curated_contents = Table(
    "curated_contents",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", Text, nullable=False),
    Column("link", String(768), nullable=False, index=True),
    Column("source", String(255)),
    Column("content", Text),
    Column("status", String(32)),
    Column("published_at", DateTime),
    Column("fetched_at", DateTime),
    Column("content_source_id", Integer, ForeignKey("content_sources.id")),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
)


class DatabaseManager:
    """Own a single SQLAlchemy engine for the lifetime of one run."""

    def __init__(self, config: DatabaseConfig | None = None, engine: Engine | None = None) -> None:
        if config is None and engine is None:
            raise ValueError("DatabaseManager needs a config or an engine")
        self.config = config
        self._engine = engine
        self._owns_engine = engine is None
        self._lock = Lock()

    @property
    def engine(self) -> Engine:
        with self._lock:
            if self._engine is None:
                if self.config is None:
                    raise RuntimeError("DatabaseManager has no engine and no config to build one")
                url = self.config.sqlalchemy_url()
                kwargs: dict = {"echo": self.config.echo, "pool_pre_ping": True}
                if url.startswith("mysql"):
                    # one connection per run
                    kwargs.update(pool_size=1, max_overflow=0)
                self._engine = create_engine(url, **kwargs)
            return self._engine

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        try:
            conn = self.engine.connect()
        except SQLAlchemyError as exc:
            raise StorageUnavailableError(f"Cannot connect to storage: {exc}") from exc
        try:
            yield conn
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        metadata.create_all(self.engine)

    def ensure_content_source(self, keyword: str) -> bool:
        """Insert the ``content_sources`` row for ``keyword``; False when it already exists."""

        with self.engine.begin() as conn:
            existing = conn.execute(
                select(content_sources.c.id).where(content_sources.c.keyword == keyword)
            ).first()
            if existing is not None:
                return False
            conn.execute(insert(content_sources).values(keyword=keyword))
        return True

    def dispose(self) -> None:
        with self._lock:
            if self._engine is not None and self._owns_engine:
                self._engine.dispose()
                self._engine = None


__all__ = ["DatabaseManager", "content_sources", "curated_contents", "metadata"]
