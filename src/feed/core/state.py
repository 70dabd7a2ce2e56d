"""
Feed state and its transitions.

FeedState is an immutable value. Every transition is a plain function that takes
the current state and returns the next one, so the engine only ever swaps one
value for another.

    idle -> loading_initial -> ready <-> loading_more -> exhausted
"""

from enum import Enum
from typing import Sequence, Tuple
from pydantic import BaseModel, ConfigDict

from feed.data.models import FeedItem


class FeedStatus(str, Enum):
    IDLE = "idle"
    LOADING_INITIAL = "loading_initial"
    READY = "ready"
    LOADING_MORE = "loading_more"
    EXHAUSTED = "exhausted"


class FeedState(BaseModel):
    """Observable state of one feed instance."""

    model_config = ConfigDict(frozen=True)

    items: Tuple[FeedItem, ...] = ()
    page: int = 0
    has_more: bool = True
    status: FeedStatus = FeedStatus.IDLE

    @property
    def loading(self) -> bool:
        return self.status in (FeedStatus.LOADING_INITIAL, FeedStatus.LOADING_MORE)


def exhausted_empty() -> FeedState:
    """Terminal empty feed: no history, or no queries to run."""
    return FeedState(has_more=False, status=FeedStatus.EXHAUSTED)


def begin_initial() -> FeedState:
    return FeedState(status=FeedStatus.LOADING_INITIAL)


def from_cache(snapshot: Sequence[FeedItem]) -> FeedState:
    """
    Ready state built from a cached snapshot.

    has_more is reopened regardless of how the cached feed ended, and the cursor
    starts again at page 0.
    """
    return FeedState(items=tuple(snapshot), has_more=True, status=FeedStatus.READY)


def complete_initial(
    items: Sequence[FeedItem], query_count: int, min_items_per_query: int = 2
) -> FeedState:
    """
    Apply the first page.

    The feed stays open only if the page holds at least min_items_per_query
    items per active query.
    """
    has_more = len(items) >= min_items_per_query * query_count
    return FeedState(
        items=tuple(items),
        page=0,
        has_more=has_more,
        status=FeedStatus.READY if has_more else FeedStatus.EXHAUSTED,
    )


def fail_initial(state: FeedState) -> FeedState:
    """Initial fetch failed: keep whatever was shown and leave the feed open."""
    return state.model_copy(update={"has_more": True, "status": FeedStatus.READY})


def can_load_more(state: FeedState) -> bool:
    return state.status == FeedStatus.READY and state.has_more


def begin_more(state: FeedState) -> FeedState:
    return state.model_copy(update={"status": FeedStatus.LOADING_MORE})


def complete_more(
    state: FeedState, page: int, new_items: Sequence[FeedItem]
) -> FeedState:
    """
    Apply a load-more page whose items are already known to be unique.

    An empty page exhausts the feed without moving the cursor.
    """
    if not new_items:
        return state.model_copy(
            update={"has_more": False, "status": FeedStatus.EXHAUSTED}
        )
    return state.model_copy(
        update={
            "items": state.items + tuple(new_items),
            "page": page,
            "status": FeedStatus.READY,
        }
    )


def fail_more(state: FeedState) -> FeedState:
    """Load-more failed: back to ready with items and has_more untouched."""
    return state.model_copy(update={"status": FeedStatus.READY})
