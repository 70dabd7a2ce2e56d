import asyncio

import pytest

from feed.core.config import FeedConfig
from feed.core.engine import FeedEngine
from feed.data.cache import FeedCache
from feed.data.models import Candidate, HistoryItem, QueryDescriptor, SourceResult


def make_candidate(title, idx=None):
    return Candidate(
        id=str(idx if idx is not None else abs(hash(title)) % 100000),
        title=title,
        cover=f"https://img.example.com/{title}.jpg",
        rate="7.5",
        url=f"https://catalog.example.com/subject/{title}",
    )


def make_history(*titles):
    return [HistoryItem(title=title, tag="drama") for title in titles]


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class FakeCatalog:
    """Catalog double: pages[(tag, page)] -> list of titles, or an exception to raise."""

    def __init__(self, pages=None):
        self.pages = pages or {}
        self.calls = []
        self.gates = {}

    async def fetch(self, query, page):
        self.calls.append((query.tag, page, query.page_start))
        gate = self.gates.get(query.tag)
        if gate is not None:
            await gate.wait()
        value = self.pages.get((query.tag, page), [])
        if isinstance(value, Exception):
            raise value
        return SourceResult(
            label=query.label,
            candidates=[make_candidate(title, i) for i, title in enumerate(value)],
        )


class StaticQueries:
    """Query generator returning the same tags with a new page_start on every call."""

    def __init__(self, *tags):
        self.tags = tags
        self.call_count = 0

    def __call__(self, history):
        self.call_count += 1
        return [
            QueryDescriptor(
                tag=tag,
                type="movie",
                label=f"More {tag}",
                page_start=self.call_count * 3,
            )
            for tag in self.tags
        ]


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return FeedConfig(
        cache_ttl_seconds=1800,
        page_size=18,
        min_history_items=2,
        min_items_per_query=2,
        max_queries=4,
        max_page_start=0,
    )


@pytest.fixture
def make_engine(config, clock):
    def _make(catalog, *tags, query_generator=None):
        return FeedEngine(
            catalog_client=catalog,
            query_generator=query_generator or StaticQueries(*tags),
            config=config,
            cache=FeedCache(ttl_seconds=config.cache_ttl_seconds, clock=clock),
        )

    return _make
