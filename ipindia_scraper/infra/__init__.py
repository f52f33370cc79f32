"""Infra layer utilities (storage engine, schema)."""

from .storage import DatabaseManager, content_sources, curated_contents, metadata

__all__ = ["DatabaseManager", "content_sources", "curated_contents", "metadata"]
