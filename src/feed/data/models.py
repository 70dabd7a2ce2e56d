"""
Data models for the feed engine.

Query descriptors, upstream candidates, feed items and history records. All
models are immutable once built; a feed's query set and its emitted items never
change underneath the consumer.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class QueryDescriptor(BaseModel):
    """One upstream recommendation query, fixed for a feed's lifetime."""

    model_config = ConfigDict(frozen=True)

    tag: str
    type: str = "movie"
    label: str = ""
    page_start: int = Field(default=0, ge=0)

    @property
    def identity(self) -> str:
        """tag:type pair, without the randomized start offset."""
        return f"{self.tag}:{self.type}"


class Candidate(BaseModel):
    """One item returned by the upstream catalog."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    title: str
    cover: str = ""
    rate: str = ""
    url: str = ""

    @field_validator("id", "title", "cover", "rate", "url", mode="before")
    @classmethod
    def coerce_to_string(cls, value):
        """Upstream sends ids and ratings as numbers or null."""
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class FeedItem(Candidate):
    """A candidate tagged with the label of the query that produced it."""

    source_label: str = ""

    @classmethod
    def from_candidate(cls, candidate: Candidate, source_label: str) -> "FeedItem":
        return cls(**candidate.model_dump(), source_label=source_label)


class SourceResult(BaseModel):
    """Candidates returned by one query for one page."""

    model_config = ConfigDict(frozen=True)

    label: str
    candidates: List[Candidate] = Field(default_factory=list)


class HistoryItem(BaseModel):
    """One past interaction supplied by the history store."""

    model_config = ConfigDict(frozen=True)

    title: str
    tag: Optional[str] = None
    type: str = "movie"
    watched_at: Optional[int] = Field(
        default=None, description="Epoch seconds of the interaction (optional)"
    )
