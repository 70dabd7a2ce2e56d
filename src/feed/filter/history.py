"""
History functionality for the feed engine.

This module turns the consumption history into what the engine needs from it:
the activation gate and the set of already-watched titles.
"""

from typing import Sequence, Set
from feed.data.models import HistoryItem
from feed.filter.deduplication import normalize_title
from utils.common_utils import get_logger

logger = get_logger(__name__)


class HistoryManager:
    """Core manager for deriving feed inputs from watch history."""

    def __init__(self, min_history_items: int = 2):
        """
        Initialize history manager.

        Args:
            min_history_items: History length needed before a feed is built
        """
        self.min_history_items = min_history_items
        logger.info(
            f"HistoryManager initialized (min_history_items={min_history_items})"
        )

    def has_history(self, history: Sequence[HistoryItem]) -> bool:
        return len(history) >= self.min_history_items

    def get_watched_titles(self, history: Sequence[HistoryItem]) -> Set[str]:
        """
        Collect normalized titles from the history.

        Args:
            history: Past interactions

        Returns:
            Set of normalized titles, empty titles left out
        """
        watched = {normalize_title(item.title) for item in history}
        watched.discard("")
        logger.debug(f"Collected {len(watched)} watched titles from history")
        return watched
