import asyncio

from feed.core.state import FeedStatus
from feed.filter.deduplication import normalize_title

from conftest import FakeCatalog, StaticQueries, make_history, run

HISTORY = make_history("Watched A", "Watched B")


def titles(state):
    return [item.title for item in state.items]


def six_each(*tags):
    return {(tag, 0): [f"{tag}{i}" for i in range(6)] for tag in tags}


def test_short_history_gives_empty_feed_without_network(make_engine):
    catalog = FakeCatalog(six_each("A"))
    engine = make_engine(catalog, "A")

    state = run(engine.refresh(make_history("only one")))
    view = engine.view()

    assert view.has_history is False
    assert view.items == []
    assert view.has_more is False
    assert state.status == FeedStatus.EXHAUSTED
    assert catalog.calls == []


def test_empty_query_set_gives_empty_feed(make_engine):
    catalog = FakeCatalog()
    engine = make_engine(catalog, query_generator=lambda history: [])

    state = run(engine.refresh(HISTORY))

    assert state.status == FeedStatus.EXHAUSTED
    assert state.has_more is False
    assert engine.view().has_history is True
    assert catalog.calls == []


def test_three_queries_interleave_into_eighteen_items(make_engine):
    catalog = FakeCatalog(six_each("A", "B", "C"))
    engine = make_engine(catalog, "A", "B", "C")

    state = run(engine.refresh(HISTORY))

    assert len(state.items) == 18
    assert state.has_more is True
    assert titles(state)[:6] == ["A0", "B0", "C0", "A1", "B1", "C1"]
    assert [item.source_label for item in state.items[:3]] == ["More A", "More B", "More C"]


def test_initial_page_below_threshold_exhausts(make_engine):
    catalog = FakeCatalog({("A", 0): ["a0", "a1", "a2"], ("B", 0): [], ("C", 0): ["c0"]})
    engine = make_engine(catalog, "A", "B", "C")

    state = run(engine.refresh(HISTORY))

    assert len(state.items) == 4
    assert state.has_more is False


def test_watched_titles_are_excluded(make_engine):
    catalog = FakeCatalog({("A", 0): ["watched a", "New One", "Other"]})
    engine = make_engine(catalog, "A")

    state = run(engine.refresh(HISTORY))

    assert titles(state) == ["New One", "Other"]


def test_failing_source_degrades_feed(make_engine):
    pages = six_each("A", "C")
    pages[("B", 0)] = RuntimeError("upstream down")
    catalog = FakeCatalog(pages)
    engine = make_engine(catalog, "A", "B", "C")

    state = run(engine.refresh(HISTORY))

    assert len(state.items) == 12
    assert {item.source_label for item in state.items} == {"More A", "More C"}
    assert state.has_more is True


def test_load_more_with_only_duplicates_exhausts(make_engine):
    pages = six_each("A", "B", "C")
    pages.update({(tag, 1): [f"{tag}{i}" for i in range(6)] for tag in "ABC"})
    catalog = FakeCatalog(pages)
    engine = make_engine(catalog, "A", "B", "C")

    async def scenario():
        await engine.refresh(HISTORY)
        return await engine.load_more(1)

    state = run(scenario())

    assert len(state.items) == 18
    assert state.has_more is False
    assert state.page == 0
    assert state.status == FeedStatus.EXHAUSTED


def test_exhaustion_is_idempotent(make_engine):
    catalog = FakeCatalog(six_each("A", "B"))
    engine = make_engine(catalog, "A", "B")

    async def scenario():
        await engine.refresh(HISTORY)
        first = await engine.load_more(1)
        calls_after_first = len(catalog.calls)
        second = await engine.load_more(1)
        return first, second, calls_after_first

    first, second, calls_after_first = run(scenario())

    assert first.has_more is False
    assert second.has_more is False
    assert second.items == first.items
    assert len(catalog.calls) == calls_after_first


def test_load_more_appends_unique_items_and_advances_cursor(make_engine):
    pages = six_each("A", "B")
    pages[("A", 1)] = ["A5", "a6", "A7"]
    pages[("B", 1)] = ["B6", "A7 ", "watched b"]
    catalog = FakeCatalog(pages)
    engine = make_engine(catalog, "A", "B")

    async def scenario():
        await engine.refresh(HISTORY)
        return await engine.load_more(1)

    state = run(scenario())

    # round 0: A5 already shown, B6 new; round 1: a6 and "A7 " new; round 2: all seen
    assert titles(state)[12:] == ["B6", "a6", "A7 "]
    assert state.page == 1
    assert state.has_more is True
    assert state.status == FeedStatus.READY


def test_titles_stay_unique_across_many_pages(make_engine):
    pages = {}
    for page in range(5):
        for tag in "ABC":
            # every page repeats half of the previous page's titles
            pages[(tag, page)] = [f"{tag}{(page * 3 + i) % 12}" for i in range(6)]
    catalog = FakeCatalog(pages)
    engine = make_engine(catalog, "A", "B", "C")

    async def scenario():
        await engine.refresh(HISTORY)
        for page in range(1, 5):
            await engine.load_more(page)
        return engine.state

    state = run(scenario())
    normalized = [normalize_title(item.title) for item in state.items]

    assert len(normalized) == len(set(normalized))


def test_load_more_page_is_supplied_by_caller(make_engine):
    catalog = FakeCatalog(six_each("A"))
    catalog.pages[("A", 4)] = ["far away"]
    engine = make_engine(catalog, "A")

    async def scenario():
        await engine.refresh(HISTORY)
        return await engine.load_more(4)

    state = run(scenario())

    assert ("A", 4, 3) in catalog.calls
    assert state.page == 4
    assert titles(state)[-1] == "far away"


def test_cache_hit_serves_snapshot_without_network(make_engine, clock):
    catalog = FakeCatalog(six_each("A", "B"))
    generator = StaticQueries("A", "B")
    engine = make_engine(catalog, query_generator=generator)

    async def scenario():
        first = await engine.refresh(HISTORY)
        calls = len(catalog.calls)
        clock.now += 60
        second = await engine.refresh(HISTORY)
        return first, second, calls

    first, second, calls = run(scenario())

    assert second.items == first.items
    assert len(catalog.calls) == calls
    assert second.has_more is True
    assert second.status == FeedStatus.READY
    # offsets differed between the two generations, the key did not
    assert generator.call_count == 2


def test_cache_hit_reopens_exhausted_feed(make_engine):
    catalog = FakeCatalog({("A", 0): ["only"]})
    engine = make_engine(catalog, "A")

    async def scenario():
        first = await engine.refresh(HISTORY)
        second = await engine.refresh(HISTORY)
        return first, second

    first, second = run(scenario())

    assert first.has_more is False
    assert second.has_more is True
    assert titles(second) == ["only"]


def test_cache_expiry_refetches(make_engine, clock, config):
    catalog = FakeCatalog(six_each("A"))
    engine = make_engine(catalog, "A")

    async def scenario():
        await engine.refresh(HISTORY)
        catalog.pages[("A", 0)] = [f"fresh{i}" for i in range(6)]
        clock.now += config.cache_ttl_seconds + 0.001
        return await engine.refresh(HISTORY)

    state = run(scenario())

    assert titles(state) == [f"fresh{i}" for i in range(6)]
    assert len([call for call in catalog.calls if call[1] == 0]) == 2


def test_load_more_updates_cached_snapshot(make_engine):
    pages = six_each("A")
    pages[("A", 1)] = ["A6", "A7"]
    catalog = FakeCatalog(pages)
    engine = make_engine(catalog, "A")

    async def scenario():
        await engine.refresh(HISTORY)
        await engine.load_more(1)
        return await engine.refresh(HISTORY)

    state = run(scenario())

    assert titles(state) == [f"A{i}" for i in range(8)]
    assert engine.cache.entry.key == "A:movie"


def test_different_query_set_replaces_cache(make_engine):
    catalog = FakeCatalog(six_each("A", "B"))
    by_history = {
        "first": StaticQueries("A"),
        "second": StaticQueries("B"),
    }
    engine = make_engine(
        catalog, query_generator=lambda history: by_history[history[0].title](history)
    )

    async def scenario():
        await engine.refresh(make_history("first", "x"))
        await engine.refresh(make_history("second", "x"))
        return await engine.refresh(make_history("first", "x"))

    state = run(scenario())

    assert titles(state)[0] == "A0"
    assert len([call for call in catalog.calls if call[0] == "A"]) == 2


def test_concurrent_load_more_is_dropped(make_engine):
    pages = six_each("A", "B")
    pages[("A", 1)] = ["A6"]
    pages[("B", 1)] = ["B6"]
    catalog = FakeCatalog(pages)
    engine = make_engine(catalog, "A", "B")

    async def scenario():
        await engine.refresh(HISTORY)
        gate = asyncio.Event()
        catalog.gates["A"] = gate
        first = asyncio.create_task(engine.load_more(1))
        await asyncio.sleep(0)
        during = engine.state
        dropped = await engine.load_more(2)
        gate.set()
        final = await first
        return during, dropped, final

    during, dropped, final = run(scenario())

    assert during.loading is True
    assert dropped.status == FeedStatus.LOADING_MORE
    assert [call for call in catalog.calls if call[1] == 2] == []
    assert len([call for call in catalog.calls if call[1] == 1]) == 2
    assert titles(final)[-2:] == ["A6", "B6"]


def test_load_more_failure_is_swallowed(make_engine):
    catalog = FakeCatalog(six_each("A"))
    engine = make_engine(catalog, "A")

    def broken(results, seen_titles):
        raise RuntimeError("mixer exploded")

    async def scenario():
        before = await engine.refresh(HISTORY)
        engine.mixer_manager.interleave = broken
        after = await engine.load_more(1)
        return before, after

    before, after = run(scenario())

    assert after == before
    assert after.status == FeedStatus.READY
    assert after.has_more is True


def test_refresh_discards_superseded_initial_load(make_engine):
    catalog = FakeCatalog({**six_each("fast"), ("slow", 0): ["stale0", "stale1"]})
    by_history = {
        "slow": StaticQueries("slow"),
        "fast": StaticQueries("fast"),
    }
    engine = make_engine(
        catalog, query_generator=lambda history: by_history[history[0].title](history)
    )

    async def scenario():
        gate = asyncio.Event()
        catalog.gates["slow"] = gate
        first = asyncio.create_task(engine.refresh(make_history("slow", "x")))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert engine.state.status == FeedStatus.LOADING_INITIAL
        second = await engine.refresh(make_history("fast", "x"))
        gate.set()
        await first
        return second

    second = run(scenario())

    assert titles(second) == [f"fast{i}" for i in range(6)]
    assert titles(engine.state) == titles(second)
    assert engine.cache.entry.key == "fast:movie"
    assert engine.generation == 2


def test_refresh_during_load_more_discards_page(make_engine):
    pages = six_each("A")
    pages[("A", 1)] = ["late"]
    catalog = FakeCatalog(pages)
    engine = make_engine(catalog, "A")

    async def scenario():
        await engine.refresh(HISTORY)
        gate = asyncio.Event()
        catalog.gates["A"] = gate
        pending = asyncio.create_task(engine.load_more(1))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        refreshed = await engine.refresh(HISTORY)  # served from cache
        gate.set()
        await pending
        return refreshed

    refreshed = run(scenario())

    assert "late" not in titles(engine.state)
    assert engine.state == refreshed


def test_scroll_props_and_view(make_engine):
    catalog = FakeCatalog(six_each("A", "B"))
    engine = make_engine(catalog, "A", "B")

    run(engine.refresh(HISTORY))
    props = engine.scroll_props()
    view = engine.view()

    assert props.has_more is True
    assert props.loading is False
    assert props.current_page == 0
    assert view.has_history is True
    assert view.scroll_anchors.load_more_index == 12
    assert view.scroll_anchors.prefetch_index == 6
    assert view.scroll_anchors.next_page == 1
