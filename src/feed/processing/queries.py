"""
Query generation from watch history.

Turns the consumption history into the ordered list of upstream queries a feed
fans out on.
"""

import random
from collections import OrderedDict
from typing import Callable, List, Optional, Sequence

from feed.data.models import HistoryItem, QueryDescriptor
from utils.common_utils import get_logger

logger = get_logger(__name__)

# Any callable history -> queries can stand in for the default generator
QueryGenerator = Callable[[Sequence[HistoryItem]], List[QueryDescriptor]]


class HistoryQueryGenerator:
    """Builds one query per (tag, type) pair the user watches most."""

    def __init__(
        self,
        max_queries: int = 4,
        max_page_start: int = 36,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize query generator.

        Args:
            max_queries: Maximum number of queries to return
            max_page_start: Upper bound (inclusive) for the random start offset
            rng: Random source for start offsets, injectable for tests
        """
        self.max_queries = max_queries
        self.max_page_start = max_page_start
        self.rng = rng or random.Random()

    def __call__(self, history: Sequence[HistoryItem]) -> List[QueryDescriptor]:
        """
        Generate queries from history (most recent entry first).

        Each (tag, type) pair is weighted by the recency of the entries that carry
        it: the most recent entry counts 1, the oldest close to 0. Entries without
        a tag contribute nothing.

        Args:
            history: Past interactions, most recent first

        Returns:
            Queries ordered by weight, ties broken by first appearance
        """
        total = len(history)
        weights = OrderedDict()
        labels = {}

        for idx, item in enumerate(history):
            tag = (item.tag or "").strip()
            if not tag:
                continue
            pair = (tag, item.type)
            recency_score = 1 - (idx / total) if total > 1 else 1
            weights[pair] = weights.get(pair, 0.0) + recency_score
            labels.setdefault(pair, item.title)

        # sorted() is stable, so equal weights keep first-appearance order
        ranked = sorted(weights.items(), key=lambda kv: kv[1], reverse=True)

        queries = []
        for (tag, content_type), _ in ranked[: self.max_queries]:
            queries.append(
                QueryDescriptor(
                    tag=tag,
                    type=content_type,
                    label=f"Because you watched {labels[(tag, content_type)]}",
                    page_start=self.rng.randint(0, self.max_page_start),
                )
            )

        logger.info(
            f"Generated {len(queries)} queries from {total} history items: "
            f"{[q.identity for q in queries]}"
        )
        return queries
