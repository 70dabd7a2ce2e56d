"""
Deduplication module for the feed engine.

This module provides title normalization and the checks that keep a feed free of
repeated titles, both against the seen set and against items already in the feed.
"""

from typing import Iterable, List, Optional, Set
from feed.data.models import FeedItem
from utils.common_utils import get_logger

logger = get_logger(__name__)


def normalize_title(title: Optional[str]) -> str:
    """Case-fold and trim a title for comparisons."""
    if not title or not isinstance(title, str):
        return ""
    return title.strip().casefold()


class DeduplicationManager:
    """Core manager for filtering out titles a feed has already surfaced."""

    def __init__(self):
        """Initialize deduplication manager."""
        logger.info("DeduplicationManager initialized")

    def build_seen_set(
        self, watched_titles: Iterable[str], items: Iterable[FeedItem] = ()
    ) -> Set[str]:
        """
        Build a seen set from watched titles plus every title already in the feed.

        Args:
            watched_titles: Normalized titles from the consumption history
            items: Feed items emitted so far

        Returns:
            New set of normalized titles
        """
        seen = set(watched_titles)
        seen.update(normalize_title(item.title) for item in items)
        return seen

    def filter_new_items(
        self, existing: Iterable[FeedItem], candidates: Iterable[FeedItem]
    ) -> List[FeedItem]:
        """
        Drop candidates whose normalized title collides with an existing item.

        Args:
            existing: Items already in the feed
            candidates: Newly interleaved items, in feed order

        Returns:
            Candidates that are new to the feed, order preserved
        """
        candidates = list(candidates)
        existing_titles = {normalize_title(item.title) for item in existing}
        unique_new = []
        for item in candidates:
            title = normalize_title(item.title)
            if title in existing_titles:
                continue
            existing_titles.add(title)
            unique_new.append(item)

        dropped = len(candidates) - len(unique_new)
        if dropped:
            logger.info(f"Dropped {dropped} items already present in the feed")
        return unique_new
