"""
Core components of the feed engine.

This submodule contains the engine, its configuration, the feed state machine and
the pagination surface.
"""

from feed.core.engine import FeedEngine
from feed.core.config import FeedConfig, create_config
from feed.core.state import FeedState, FeedStatus
from feed.core.pagination import FeedView, InfiniteScroll, ScrollAnchors, ScrollProps

__all__ = [
    "FeedEngine",
    "FeedConfig",
    "create_config",
    "FeedState",
    "FeedStatus",
    "FeedView",
    "InfiniteScroll",
    "ScrollAnchors",
    "ScrollProps",
]
