"""
Mixer module for the feed engine.

This module merges the per-query candidate lists of one page into a single feed
order, round-robin by source, dropping titles that are already in the seen set.
"""

from typing import List, Sequence, Set
from feed.data.models import FeedItem, SourceResult
from feed.filter.deduplication import normalize_title
from utils.common_utils import get_logger, time_execution

logger = get_logger(__name__)


class MixerManager:
    """Service for interleaving candidates from different queries."""

    def __init__(self):
        """Initialize mixer service."""
        logger.info("MixerManager initialized")

    @time_execution
    def interleave(
        self, results: Sequence[SourceResult], seen_titles: Set[str]
    ) -> List[FeedItem]:
        """
        Interleave per-query results into one ordered list of feed items.

        Takes position 0 of every source, then position 1 of every source, and so
        on. A candidate whose normalized title is in seen_titles is skipped;
        otherwise it is emitted with its source label and its title is added to
        seen_titles, which also collapses duplicates inside a single source.

        Args:
            results: Per-query results for one page, in query order
            seen_titles: Normalized titles to exclude; updated in place

        Returns:
            Feed items in interleave order
        """
        interleaved = []
        skipped = 0
        longest = max((len(result.candidates) for result in results), default=0)

        for position in range(longest):
            for result in results:
                if position >= len(result.candidates):
                    continue

                candidate = result.candidates[position]
                title = normalize_title(candidate.title)
                if not title or title in seen_titles:
                    skipped += 1
                    continue

                seen_titles.add(title)
                interleaved.append(FeedItem.from_candidate(candidate, result.label))

        logger.debug(
            f"Interleaved {len(interleaved)} items from {len(results)} sources "
            f"({skipped} skipped as seen)"
        )
        return interleaved
