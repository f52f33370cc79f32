"""Engine components orchestrating render → extract → normalise → dedup → persist."""

from .dedup import DuplicateChecker
from .extractor import Extractor, RawNewsItem
from .normalizer import CanonicalNewsItem, Normalizer
from .persister import Persister
from .renderer import BrowserSession, RenderedPage

__all__ = [
    "BrowserSession",
    "CanonicalNewsItem",
    "DuplicateChecker",
    "Extractor",
    "Normalizer",
    "Persister",
    "RawNewsItem",
    "RenderedPage",
]
