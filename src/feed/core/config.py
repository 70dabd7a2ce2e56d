"""
Configuration module for the feed engine.

This module handles loading and managing configuration settings for the feed engine
and the upstream catalog client.
"""

import os
from utils.common_utils import get_logger, env_int, env_float

logger = get_logger(__name__)

DEFAULT_CATALOG_BASE_URL = "http://localhost:3000/api/douban"


class FeedConfig:
    """Configuration class for the feed engine."""

    # Feed parameters
    CACHE_TTL_SECONDS = 30 * 60
    PAGE_SIZE = 18  # items requested per query per page
    MIN_HISTORY_ITEMS = 2
    MIN_ITEMS_PER_QUERY = 2  # initial page must reach this many items per query
    MAX_QUERIES = 4
    MAX_PAGE_START = 36
    CATALOG_TIMEOUT_SECONDS = 10.0

    def __init__(
        self,
        cache_ttl_seconds=None,
        page_size=None,
        min_history_items=None,
        min_items_per_query=None,
        max_queries=None,
        max_page_start=None,
        catalog_base_url=None,
        catalog_timeout_seconds=None,
    ):
        """
        Initialize feed configuration.

        Explicit arguments win over environment variables, which win over the
        class defaults.

        Args:
            cache_ttl_seconds: Lifetime of the cached feed snapshot
            page_size: Number of items requested per query per page
            min_history_items: History length needed before a feed is built
            min_items_per_query: Items per query the first page must reach
                for the feed to stay open
            max_queries: Maximum number of generated queries
            max_page_start: Upper bound for the randomized start offset
            catalog_base_url: Base URL of the upstream catalog service
            catalog_timeout_seconds: Transport timeout for catalog requests
        """
        self.cache_ttl_seconds = self._pick(
            cache_ttl_seconds,
            env_int("FEED_CACHE_TTL_SECONDS", self.CACHE_TTL_SECONDS),
        )
        self.page_size = self._pick(
            page_size, env_int("FEED_PAGE_SIZE", self.PAGE_SIZE)
        )
        self.min_history_items = self._pick(
            min_history_items,
            env_int("FEED_MIN_HISTORY_ITEMS", self.MIN_HISTORY_ITEMS),
        )
        self.min_items_per_query = self._pick(
            min_items_per_query,
            env_int("FEED_MIN_ITEMS_PER_QUERY", self.MIN_ITEMS_PER_QUERY),
        )
        self.max_queries = self._pick(
            max_queries, env_int("FEED_MAX_QUERIES", self.MAX_QUERIES)
        )
        self.max_page_start = self._pick(
            max_page_start, env_int("FEED_MAX_PAGE_START", self.MAX_PAGE_START)
        )
        self.catalog_base_url = self._pick(
            catalog_base_url,
            os.environ.get("CATALOG_BASE_URL") or DEFAULT_CATALOG_BASE_URL,
        ).rstrip("/")
        self.catalog_timeout_seconds = self._pick(
            catalog_timeout_seconds,
            env_float("CATALOG_TIMEOUT_SECONDS", self.CATALOG_TIMEOUT_SECONDS),
        )

        logger.debug(
            f"FeedConfig loaded: ttl={self.cache_ttl_seconds}s, page_size={self.page_size}, "
            f"min_history={self.min_history_items}, catalog={self.catalog_base_url}"
        )

    @staticmethod
    def _pick(explicit, fallback):
        return explicit if explicit is not None else fallback


def create_config(**overrides):
    """
    Create and initialize a feed configuration.

    Args:
        **overrides: Keyword arguments forwarded to FeedConfig

    Returns:
        FeedConfig: Initialized configuration object
    """
    return FeedConfig(**overrides)
