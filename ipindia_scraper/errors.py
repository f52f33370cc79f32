"""Exception hierarchy for the ingestion pipeline."""

from __future__ import annotations

from typing import Any


class PipelineError(Exception):
    """Base class for every error raised by the pipeline."""


class FatalPipelineError(PipelineError):
    """Aborts the whole run."""


class NavigationError(FatalPipelineError):
    """The target page could not be loaded within the navigation timeout."""


class SelectorTimeoutError(FatalPipelineError):
    """The news container never became visible."""


class UnknownSourceError(FatalPipelineError):
    """No ``content_sources`` row matches the configured keyword."""


class StorageUnavailableError(FatalPipelineError):
    """A storage round trip could not be performed."""


class ItemProcessingError(PipelineError):
    """Failure confined to a single news item; the run continues."""

    def __init__(self, message: str, item: Any = None) -> None:
        super().__init__(message)
        self.item = item


class DateParseError(ItemProcessingError):
    """The item's date text could not be turned into a timestamp."""


class InsertError(ItemProcessingError):
    """Storing a single record failed."""


__all__ = [
    "DateParseError",
    "FatalPipelineError",
    "InsertError",
    "ItemProcessingError",
    "NavigationError",
    "PipelineError",
    "SelectorTimeoutError",
    "StorageUnavailableError",
    "UnknownSourceError",
]
