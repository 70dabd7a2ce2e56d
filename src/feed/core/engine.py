"""
Main feed engine module.

This module provides the FeedEngine class that drives one feed instance: it fans
out the active queries, interleaves and deduplicates their results, keeps the
single-slot cache in step, and serves incremental "load next page" requests.
"""

import asyncio
import datetime
from typing import List, Optional, Protocol, Sequence, Set

from utils.common_utils import get_logger
from feed.core.config import FeedConfig, create_config
from feed.core import state as transitions
from feed.core.state import FeedState
from feed.core.pagination import FeedView, ScrollAnchors, ScrollProps
from feed.data.cache import FeedCache, make_cache_key
from feed.data.models import FeedItem, HistoryItem, QueryDescriptor, SourceResult
from feed.filter.deduplication import DeduplicationManager
from feed.filter.history import HistoryManager
from feed.processing.mixer import MixerManager
from feed.processing.queries import HistoryQueryGenerator, QueryGenerator

logger = get_logger(__name__)


class CatalogSource(Protocol):
    """Anything that can fetch one page of candidates for one query."""

    async def fetch(self, query: QueryDescriptor, page: int) -> SourceResult:
        ...


class FeedEngine:
    """Feed aggregation engine for one consumer session."""

    def __init__(
        self,
        catalog_client: CatalogSource,
        query_generator: Optional[QueryGenerator] = None,
        config: Optional[FeedConfig] = None,
        cache: Optional[FeedCache] = None,
    ):
        """
        Initialize feed engine.

        Args:
            catalog_client: Upstream client used for every (query, page) fetch
            query_generator: Callable history -> queries, defaults to HistoryQueryGenerator
            config: FeedConfig instance or None to use default config
            cache: FeedCache owned by this engine, created from config if None
        """
        start_time = datetime.datetime.now()

        self.config = config if config is not None else create_config()
        self.catalog_client = catalog_client
        self.query_generator = query_generator or HistoryQueryGenerator(
            max_queries=self.config.max_queries,
            max_page_start=self.config.max_page_start,
        )
        self.cache = cache or FeedCache(ttl_seconds=self.config.cache_ttl_seconds)

        self.history_manager = HistoryManager(
            min_history_items=self.config.min_history_items
        )
        self.mixer_manager = MixerManager()
        self.deduplication_manager = DeduplicationManager()

        self._state = FeedState()
        self._history_length = 0
        self._watched_titles: Set[str] = set()
        self._queries: List[QueryDescriptor] = []
        self._cache_key: Optional[str] = None
        self._generation = 0
        self._pending: Optional[asyncio.Task] = None

        init_time = (datetime.datetime.now() - start_time).total_seconds()
        logger.info(f"FeedEngine initialized in {init_time:.3f} seconds")

    @property
    def state(self) -> FeedState:
        return self._state

    @property
    def queries(self) -> List[QueryDescriptor]:
        return list(self._queries)

    @property
    def cache_key(self) -> Optional[str]:
        return self._cache_key

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def has_history(self) -> bool:
        return self._history_length >= self.config.min_history_items

    def _cancel_pending(self):
        """Cancel the in-flight page task, if any."""
        if self._pending is not None and not self._pending.done():
            logger.info("Cancelling in-flight page fetch for superseded feed")
            self._pending.cancel()
        self._pending = None

    async def _fetch_page(
        self, queries: Sequence[QueryDescriptor], page: int, seen_titles: Set[str]
    ) -> List[FeedItem]:
        """
        Fetch one page for every query concurrently and interleave the results.

        A query whose fetch raises contributes an empty result; it never fails
        the whole page.

        Args:
            queries: Active query descriptors
            page: Zero-based page number
            seen_titles: Normalized titles to exclude; updated in place

        Returns:
            Interleaved feed items for the page
        """
        results = await asyncio.gather(
            *(self.catalog_client.fetch(query, page) for query in queries),
            return_exceptions=True,
        )

        page_results = []
        for query, result in zip(queries, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, Exception):
                logger.warning(
                    f"Query {query.identity} failed on page {page}: {result}"
                )
                result = SourceResult(label=query.label)
            page_results.append(result)

        return self.mixer_manager.interleave(page_results, seen_titles)

    async def refresh(self, history: Sequence[HistoryItem]) -> FeedState:
        """
        Start a feed instance for the given history (initial load).

        Supersedes any load still in flight: its result is discarded when it
        arrives. Serves the cached snapshot when the query identity matches and
        the entry is fresh; otherwise fetches page 0.

        Args:
            history: Past interactions, most recent first

        Returns:
            FeedState after the initial load
        """
        history = list(history)
        self._generation += 1
        generation = self._generation
        self._cancel_pending()

        self._history_length = len(history)
        self._watched_titles = self.history_manager.get_watched_titles(history)
        self._queries = []
        self._cache_key = None

        if not self.history_manager.has_history(history):
            logger.info(
                f"History has {len(history)} items, need {self.config.min_history_items}; feed is empty"
            )
            self._state = transitions.exhausted_empty()
            return self._state

        queries = list(self.query_generator(history))
        if not queries:
            logger.info("No queries generated from history; feed is empty")
            self._state = transitions.exhausted_empty()
            return self._state

        key = make_cache_key(queries)
        self._queries = queries
        self._cache_key = key

        cached = self.cache.get(key)
        if cached is not None:
            self._state = transitions.from_cache(cached)
            return self._state

        self._state = transitions.begin_initial()
        task = asyncio.create_task(
            self._fetch_page(queries, 0, set(self._watched_titles))
        )
        self._pending = task

        try:
            items = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.info(f"Initial load for generation {generation} superseded")
                return self._state
            self._state = transitions.fail_initial(self._state)
            raise
        except Exception as e:
            logger.error(f"Initial feed load failed: {e}", exc_info=True)
            if generation == self._generation:
                self._state = transitions.fail_initial(self._state)
            return self._state
        finally:
            if self._pending is task:
                self._pending = None

        if generation != self._generation:
            logger.info(f"Discarding initial page for stale generation {generation}")
            return self._state

        self._state = transitions.complete_initial(
            items, len(queries), self.config.min_items_per_query
        )
        self.cache.put(key, items)
        logger.info(
            f"Initial page loaded: {len(items)} items from {len(queries)} queries, "
            f"has_more={self._state.has_more}"
        )
        return self._state

    async def load_more(self, page: int) -> FeedState:
        """
        Fetch the given page and append its new titles to the feed.

        Dropped (not queued) while another load is in flight, and a no-op once
        the feed is exhausted. Failures leave items and has_more unchanged.

        Args:
            page: Page number to fetch, supplied by the scroll trigger

        Returns:
            FeedState after the page was applied
        """
        state = self._state
        if state.loading:
            logger.debug(f"Load-more for page {page} dropped: load already in flight")
            return state
        if not transitions.can_load_more(state) or not self._queries:
            logger.debug(f"Load-more for page {page} ignored in state {state.status.value}")
            return state

        generation = self._generation
        queries = list(self._queries)
        key = self._cache_key

        seen_titles = self.deduplication_manager.build_seen_set(
            self._watched_titles, state.items
        )
        self._state = transitions.begin_more(state)
        task = asyncio.create_task(self._fetch_page(queries, page, seen_titles))
        self._pending = task

        try:
            fetched = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.info(f"Load-more for page {page} superseded")
                return self._state
            self._state = transitions.fail_more(self._state)
            raise
        except Exception as e:
            logger.error(f"Load-more for page {page} failed: {e}", exc_info=True)
            if generation == self._generation:
                self._state = transitions.fail_more(self._state)
            return self._state
        finally:
            if self._pending is task:
                self._pending = None

        if generation != self._generation:
            logger.info(f"Discarding page {page} for stale generation {generation}")
            return self._state

        unique_new = self.deduplication_manager.filter_new_items(
            self._state.items, fetched
        )
        self._state = transitions.complete_more(self._state, page, unique_new)
        if unique_new and key is not None:
            self.cache.append(key, unique_new)

        logger.info(
            f"Page {page} loaded: {len(unique_new)} new items, "
            f"total={len(self._state.items)}, has_more={self._state.has_more}"
        )
        return self._state

    def scroll_props(self) -> ScrollProps:
        """Props for the scroll/visibility trigger."""
        state = self._state
        return ScrollProps(
            has_more=state.has_more,
            loading=state.loading,
            current_page=state.page,
            on_load_more=self.load_more,
        )

    def view(self) -> FeedView:
        """Current feed in the shape the rendering layer consumes."""
        state = self._state
        return FeedView(
            items=list(state.items),
            loading=state.loading,
            has_more=state.has_more,
            has_history=self.has_history,
            current_page=state.page,
            scroll_anchors=ScrollAnchors.for_feed(len(state.items), state.page),
        )
