"""
Filtering components of the feed engine.

This submodule contains classes for filtering candidates based on watch history
and deduplication logic.
"""

from feed.filter.history import HistoryManager
from feed.filter.deduplication import DeduplicationManager, normalize_title

__all__ = [
    "HistoryManager",
    "DeduplicationManager",
    "normalize_title",
]
