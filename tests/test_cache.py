from feed.data.cache import FeedCache, make_cache_key
from feed.data.models import FeedItem, QueryDescriptor

from conftest import FakeClock


def item(title):
    return FeedItem(id=title, title=title, source_label="A")


def test_cache_key_ignores_page_start_and_keeps_order():
    first = [
        QueryDescriptor(tag="sci-fi", type="movie", label="x", page_start=3),
        QueryDescriptor(tag="drama", type="tv", label="y", page_start=12),
    ]
    second = [
        QueryDescriptor(tag="sci-fi", type="movie", label="x", page_start=30),
        QueryDescriptor(tag="drama", type="tv", label="y", page_start=0),
    ]

    assert make_cache_key(first) == "sci-fi:movie|drama:tv"
    assert make_cache_key(first) == make_cache_key(second)
    assert make_cache_key(list(reversed(first))) != make_cache_key(first)


def test_hit_within_ttl():
    clock = FakeClock()
    cache = FeedCache(ttl_seconds=60, clock=clock)
    cache.put("k", [item("a"), item("b")])

    clock.now += 59.9

    assert [i.title for i in cache.get("k")] == ["a", "b"]


def test_expired_at_exactly_ttl():
    clock = FakeClock()
    cache = FeedCache(ttl_seconds=60, clock=clock)
    cache.put("k", [item("a")])

    clock.now += 60

    assert cache.get("k") is None


def test_other_key_is_a_miss():
    cache = FeedCache(ttl_seconds=60, clock=FakeClock())
    cache.put("k", [item("a")])

    assert cache.get("other") is None


def test_new_key_replaces_unexpired_entry():
    cache = FeedCache(ttl_seconds=60, clock=FakeClock())
    cache.put("first", [item("a")])
    cache.put("second", [item("b")])

    assert cache.get("first") is None
    assert [i.title for i in cache.get("second")] == ["b"]


def test_append_keeps_timestamp():
    clock = FakeClock()
    cache = FeedCache(ttl_seconds=60, clock=clock)
    cache.put("k", [item("a")])
    stamped = cache.entry.timestamp

    clock.now += 30
    assert cache.append("k", [item("b")]) is True

    assert cache.entry.timestamp == stamped
    assert [i.title for i in cache.get("k")] == ["a", "b"]

    clock.now += 30
    assert cache.get("k") is None


def test_append_to_other_key_is_ignored():
    cache = FeedCache(ttl_seconds=60, clock=FakeClock())
    cache.put("k", [item("a")])

    assert cache.append("other", [item("b")]) is False
    assert [i.title for i in cache.get("k")] == ["a"]


def test_empty_cache():
    cache = FeedCache(ttl_seconds=60, clock=FakeClock())
    assert cache.get("k") is None
    assert cache.append("k", [item("a")]) is False

    cache.put("k", [])
    assert cache.get("k") == ()
