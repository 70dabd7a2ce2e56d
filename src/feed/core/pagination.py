"""
Pagination surface of the feed engine.

The engine does not decide when to paginate. It hands ScrollProps to a scroll or
visibility trigger, which calls back with the next page number, and it exposes a
FeedView for the rendering layer.
"""

from typing import Awaitable, Callable, List, NamedTuple
from pydantic import BaseModel, Field

from feed.data.models import FeedItem
from utils.common_utils import get_logger

logger = get_logger(__name__)

# Distance from the end of the feed where prefetching should start
PREFETCH_DISTANCE = 6


class ScrollProps(NamedTuple):
    has_more: bool
    loading: bool
    current_page: int
    on_load_more: Callable[[int], Awaitable[object]]


class ScrollAnchors(BaseModel):
    """Item indexes where the renderer places its visibility sentinels."""

    prefetch_index: int = 0
    load_more_index: int = 0
    next_page: int = 1

    @classmethod
    def for_feed(cls, item_count: int, current_page: int) -> "ScrollAnchors":
        return cls(
            prefetch_index=max(0, item_count - PREFETCH_DISTANCE),
            load_more_index=item_count,
            next_page=current_page + 1,
        )


class FeedView(BaseModel):
    """Shape handed to the rendering layer."""

    items: List[FeedItem] = Field(default_factory=list)
    loading: bool = False
    has_more: bool = False
    has_history: bool = False
    current_page: int = 0
    scroll_anchors: ScrollAnchors = Field(default_factory=ScrollAnchors)


class InfiniteScroll:
    """Visibility trigger: asks for the next page when a sentinel comes into view."""

    def __init__(self, props_provider: Callable[[], ScrollProps]):
        """
        Initialize the trigger.

        Args:
            props_provider: Returns the feed's current ScrollProps
        """
        self._props_provider = props_provider

    async def on_visible(self) -> bool:
        """
        Handle a sentinel becoming visible.

        Returns:
            True if a load-more was requested, False if the feed is loading or exhausted
        """
        props = self._props_provider()
        if not props.has_more or props.loading:
            logger.debug(
                f"Scroll trigger ignored (has_more={props.has_more}, loading={props.loading})"
            )
            return False

        await props.on_load_more(props.current_page + 1)
        return True
