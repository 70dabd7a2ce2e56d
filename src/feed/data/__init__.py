"""
Data components of the feed engine.

This submodule contains the feed data models and the single-slot feed cache.
"""

from feed.data.models import (
    QueryDescriptor,
    Candidate,
    FeedItem,
    SourceResult,
    HistoryItem,
)
from feed.data.cache import FeedCache, CacheEntry, make_cache_key

__all__ = [
    "QueryDescriptor",
    "Candidate",
    "FeedItem",
    "SourceResult",
    "HistoryItem",
    "FeedCache",
    "CacheEntry",
    "make_cache_key",
]
