"""
Models for the feed service API.

This module defines Pydantic models for API requests and responses.
"""

from typing import List, Optional
from pydantic import BaseModel, Field, model_validator

from feed.core.pagination import FeedView, ScrollAnchors
from feed.data.models import FeedItem, HistoryItem


class FeedRequest(BaseModel):
    """Feed refresh request model."""

    history: List[HistoryItem] = Field(
        default_factory=list,
        description="Consumption history, most recent first",
    )


class LoadMoreRequest(BaseModel):
    """Load-more request model."""

    page: Optional[int] = Field(
        default=None,
        ge=1,
        description="Page to fetch (defaults to the page after the current one)",
    )


class FeedResponse(BaseModel):
    """Feed response model."""

    items: List[FeedItem] = Field(
        default_factory=list, description="Feed items in display order"
    )
    loading: bool = False
    has_more: bool = False
    has_history: bool = False
    current_page: int = 0
    scroll_anchors: ScrollAnchors = Field(default_factory=ScrollAnchors)
    error: str = Field(default="", description="Error message (empty string for success)")

    @model_validator(mode="after")
    def ensure_safe_response(self):
        """Ensure response is safe for feed consumption."""
        if self.items is None:
            self.items = []
        if self.error is None:
            self.error = ""
        return self

    @classmethod
    def from_view(cls, view: FeedView) -> "FeedResponse":
        return cls(**view.model_dump())


def create_safe_response(error: Optional[str] = None) -> dict:
    """Create a safe response dictionary that will never break the feed."""
    return FeedResponse(error=error or "").model_dump(mode="json")
