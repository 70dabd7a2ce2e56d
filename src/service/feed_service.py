"""
Feed service layer.

This module provides a service layer that owns one FeedEngine per consumer
session and a shared upstream catalog client.
"""

from collections import OrderedDict
from typing import Optional, Sequence

from utils.common_utils import get_logger, env_int
from feed.clients.catalog import CatalogClient
from feed.core.config import FeedConfig, create_config
from feed.core.engine import FeedEngine
from feed.core.pagination import FeedView, InfiniteScroll
from feed.data.models import HistoryItem

logger = get_logger(__name__)

# Oldest sessions are dropped beyond this many live feeds
MAX_SESSIONS = env_int("FEED_MAX_SESSIONS", 1000)


class SessionNotFound(KeyError):
    """Raised when a session id has no feed."""


class FeedSessionService:
    """Service for handling feed requests across sessions."""

    _instance = None

    def __init__(
        self,
        config: Optional[FeedConfig] = None,
        catalog_client: Optional[CatalogClient] = None,
        max_sessions: int = MAX_SESSIONS,
    ):
        """
        Initialize feed session service.

        Args:
            config: FeedConfig shared by every session's engine
            catalog_client: Upstream client shared by every engine
            max_sessions: Number of live sessions kept before evicting the oldest
        """
        self.config = config or create_config()
        self.catalog_client = catalog_client or CatalogClient(
            base_url=self.config.catalog_base_url,
            page_size=self.config.page_size,
            timeout=self.config.catalog_timeout_seconds,
        )
        self.max_sessions = max_sessions
        self._engines = OrderedDict()

    @classmethod
    def get_instance(cls):
        """Get singleton instance of FeedSessionService."""
        if cls._instance is None:
            logger.info("Creating new FeedSessionService instance")
            cls._instance = cls()
        return cls._instance

    @classmethod
    async def shutdown_instance(cls):
        """Close the singleton's upstream client and forget it."""
        if cls._instance is not None:
            await cls._instance.catalog_client.aclose()
            cls._instance = None

    def _get_or_create_engine(self, session_id: str) -> FeedEngine:
        engine = self._engines.get(session_id)
        if engine is None:
            logger.info(f"Creating feed engine for session {session_id}")
            engine = FeedEngine(catalog_client=self.catalog_client, config=self.config)
            self._engines[session_id] = engine
            while len(self._engines) > self.max_sessions:
                evicted, _ = self._engines.popitem(last=False)
                logger.info(f"Evicted feed session {evicted}")
        else:
            self._engines.move_to_end(session_id)
        return engine

    def get_engine(self, session_id: str) -> FeedEngine:
        engine = self._engines.get(session_id)
        if engine is None:
            raise SessionNotFound(session_id)
        return engine

    async def refresh(self, session_id: str, history: Sequence[HistoryItem]) -> FeedView:
        """
        Run the initial load for a session.

        Args:
            session_id: Consumer session id
            history: Consumption history, most recent first

        Returns:
            FeedView after the load
        """
        engine = self._get_or_create_engine(session_id)
        await engine.refresh(history)
        return engine.view()

    async def load_more(self, session_id: str, page: Optional[int] = None) -> FeedView:
        """
        Load another page for a session.

        Without an explicit page, the session's scroll trigger decides whether a
        next page is requested at all.

        Args:
            session_id: Consumer session id
            page: Page number, or None for the page after the current one

        Returns:
            FeedView after the load
        """
        engine = self.get_engine(session_id)
        if page is None:
            await InfiniteScroll(engine.scroll_props).on_visible()
        else:
            await engine.load_more(page)
        return engine.view()

    def get_view(self, session_id: str) -> FeedView:
        return self.get_engine(session_id).view()

    def drop_session(self, session_id: str) -> None:
        if self._engines.pop(session_id, None) is None:
            raise SessionNotFound(session_id)
        logger.info(f"Dropped feed session {session_id}")
