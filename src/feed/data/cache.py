"""
Single-slot feed cache.

Holds the last feed snapshot for exactly one query identity key. Expiry is
checked lazily on read; nothing runs in the background. Each FeedEngine owns
its own FeedCache, so sessions never see each other's snapshots.
"""

import time
from typing import Callable, Iterable, Optional, Sequence, Tuple
from pydantic import BaseModel, ConfigDict

from feed.data.models import FeedItem, QueryDescriptor
from utils.common_utils import get_logger

logger = get_logger(__name__)


def make_cache_key(queries: Sequence[QueryDescriptor]) -> str:
    """
    Derive the cache key for a query set.

    Keeps generation order and leaves out page_start, so the same logical
    query set maps to the same key even though its offsets are randomized.

    Args:
        queries: Active query descriptors in generation order

    Returns:
        Key string such as "sci-fi:movie|drama:tv"
    """
    return "|".join(query.identity for query in queries)


class CacheEntry(BaseModel):
    """Stored snapshot plus the time it was first written."""

    model_config = ConfigDict(frozen=True)

    key: str
    snapshot: Tuple[FeedItem, ...] = ()
    timestamp: float


class FeedCache:
    """In-memory cache that retains a single entry at a time."""

    def __init__(self, ttl_seconds: float, clock: Optional[Callable[[], float]] = None):
        """
        Initialize the feed cache.

        Args:
            ttl_seconds: Entry lifetime; an entry this old or older is a miss
            clock: Monotonic time source, defaults to time.monotonic
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._entry: Optional[CacheEntry] = None

    @property
    def entry(self) -> Optional[CacheEntry]:
        return self._entry

    def get(self, key: str) -> Optional[Tuple[FeedItem, ...]]:
        """
        Return the cached snapshot for key, or None on a miss.

        Args:
            key: Query identity key

        Returns:
            Tuple of feed items, or None when the slot holds another key or has expired
        """
        entry = self._entry
        if entry is None or entry.key != key:
            logger.debug(f"Feed cache miss for key '{key}'")
            return None

        age = self._clock() - entry.timestamp
        if age >= self.ttl_seconds:
            logger.info(
                f"Feed cache entry for key '{key}' expired ({age:.0f}s >= {self.ttl_seconds}s)"
            )
            return None

        logger.info(f"Feed cache hit for key '{key}' ({len(entry.snapshot)} items)")
        return entry.snapshot

    def put(self, key: str, snapshot: Iterable[FeedItem]) -> None:
        """Replace the slot with a fresh entry stamped now."""
        items = tuple(snapshot)
        if self._entry is not None and self._entry.key != key:
            logger.debug(f"Feed cache slot replaced: '{self._entry.key}' -> '{key}'")
        self._entry = CacheEntry(key=key, snapshot=items, timestamp=self._clock())

    def append(self, key: str, items: Iterable[FeedItem]) -> bool:
        """
        Append items to the stored snapshot without touching its timestamp.

        Args:
            key: Query identity key the items belong to
            items: New feed items, in feed order

        Returns:
            True if the slot held this key and was updated, False otherwise
        """
        entry = self._entry
        if entry is None or entry.key != key:
            return False

        self._entry = entry.model_copy(
            update={"snapshot": entry.snapshot + tuple(items)}
        )
        return True
