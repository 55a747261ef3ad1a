import pytest

from tab_hoarder.archive.models import SessionTab, Stats
from tab_hoarder.archive.store import ArchiveStore
from tab_hoarder.errors import NotFoundError, StoreIOError, ValidationError
from tab_hoarder.tab_policy.eviction import MS_PER_DAY
from tab_hoarder.tab_policy.taxonomy import REASON_AGE, REASON_CAPACITY, UNCATEGORIZED


def _add(store, url, title="", **kwargs):
    return store.add_archived(url, title, **kwargs)


def _stats_rows(store) -> int:
    return store._conn.execute("SELECT COUNT(*) FROM stats").fetchone()[0]


def test_add_archived_assigns_id_timestamp_and_domain(store, clock):
    record = _add(store, "https://Shop.Example.com/item?id=1", "Item", topic="shopping", topic_confidence=0.8)

    assert record.id >= 1
    assert record.archived_at == clock.now
    assert record.last_accessed == clock.now
    assert record.domain == "shop.example.com"
    assert store.get_archived(record.id) == record


def test_add_archived_keeps_source_last_accessed(store):
    record = _add(store, "https://example.com", last_accessed=1234)
    assert record.last_accessed == 1234


def test_add_archived_rejects_bad_input_before_writing(store):
    with pytest.raises(ValidationError):
        _add(store, "not-a-url")
    with pytest.raises(ValidationError):
        _add(store, "https://example.com", reason="bored")
    with pytest.raises(ValidationError):
        _add(store, "https://example.com", topic_confidence=1.5)
    assert store.list_archived() == []


def test_list_archived_is_newest_first_with_filters(store, clock):
    first = _add(store, "https://amazon.com/cart", "Cart", topic="shopping")
    clock.advance_days(1)
    second = _add(store, "https://docs.python.org/3/", "Python Docs", topic="reference")
    clock.advance_days(1)
    third = _add(store, "https://amazon.com/orders", "Your Orders", topic="shopping")

    assert [t.id for t in store.list_archived()] == [third.id, second.id, first.id]
    assert [t.id for t in store.list_archived(topic="shopping")] == [third.id, first.id]
    assert [t.id for t in store.list_archived(domain="amazon.com")] == [third.id, first.id]
    assert [t.id for t in store.list_archived(search="PYTHON")] == [second.id]
    assert [t.id for t in store.list_archived(search="orders")] == [third.id]
    assert [t.id for t in store.list_archived(topic="shopping", search="cart")] == [first.id]
    assert [t.id for t in store.list_archived(limit=2)] == [third.id, second.id]
    assert len(store.list_archived(limit=0)) == 3


def test_list_archived_breaks_same_timestamp_ties_by_newest_id(store):
    a = _add(store, "https://a.example")
    b = _add(store, "https://b.example")
    assert [t.id for t in store.list_archived()] == [b.id, a.id]


def test_delete_archived_is_safe_for_missing_ids(store):
    record = _add(store, "https://example.com")
    assert store.delete_archived(record.id) is True
    assert store.delete_archived(record.id) is False
    assert store.delete_archived(999) is False
    with pytest.raises(NotFoundError):
        store.require_archived(record.id)


def test_ids_are_never_reused_after_delete_or_reset(store):
    seen = set()
    for round_ in range(3):
        records = [_add(store, f"https://example.com/{round_}/{i}") for i in range(3)]
        store.delete_archived(records[-1].id)
        if round_ == 1:
            store.reset()
        for record in records:
            assert record.id not in seen
            seen.add(record.id)
    live_ids = [t.id for t in store.list_archived()]
    assert len(live_ids) == len(set(live_ids))


def test_sweep_removes_only_records_older_than_horizon(store, clock):
    old = _add(store, "https://old.example")
    clock.advance_days(5)
    edge = _add(store, "https://edge.example")
    clock.advance_days(5)
    fresh = _add(store, "https://fresh.example")

    removed = store.sweep(5)

    assert removed == 1
    survivors = {t.id: t for t in store.list_archived()}
    assert set(survivors) == {edge.id, fresh.id}
    assert survivors[edge.id] == edge
    cutoff = clock.now - 5 * MS_PER_DAY
    assert all(t.archived_at >= cutoff for t in survivors.values())
    assert old.id not in survivors


def test_sweep_rejects_negative_days(store):
    with pytest.raises(ValidationError):
        store.sweep(-1)


def test_sessions_round_trip_newest_first(store, clock):
    tabs = [
        SessionTab(url="https://a.example", title="A", pinned=True),
        SessionTab(url="https://b.example", title="B", fav_icon_url="https://b.example/favicon.ico"),
    ]
    first = store.save_session("  Morning  ", tabs)
    clock.advance_days(1)
    second = store.save_session("Evening", tabs[:1])

    assert first.name == "Morning"
    assert first.tab_count == len(first.tabs) == 2
    assert [s.id for s in store.list_sessions()] == [second.id, first.id]
    assert store.get_session(first.id) == first
    assert store.delete_session(first.id) is True
    assert store.delete_session(first.id) is False
    with pytest.raises(NotFoundError):
        store.require_session(first.id)


def test_save_session_requires_a_name(store):
    with pytest.raises(ValidationError):
        store.save_session("   ", [])
    assert store.list_sessions() == []


def test_get_stats_defaults_without_writing(store):
    assert store.get_stats() == Stats(0, 0, 0)
    assert _stats_rows(store) == 0


def test_update_stats_merges_named_fields_only(store):
    store.update_stats(total_archived=5, sessions_saved=2)
    updated = store.update_stats(total_restored=1)

    assert updated == Stats(total_archived=5, total_restored=1, sessions_saved=2)
    with pytest.raises(ValidationError):
        store.update_stats(bogus=1)
    with pytest.raises(ValidationError):
        store.update_stats(total_archived=-1)


def test_increment_stats_accumulates_in_the_store(store):
    store.increment_stats(total_archived=1)
    store.increment_stats(total_archived=1, total_restored=1)
    assert store.get_stats() == Stats(total_archived=2, total_restored=1, sessions_saved=0)
    with pytest.raises(ValidationError):
        store.increment_stats(total_archived=-1)


def test_increments_from_two_connections_are_not_lost(tmp_path):
    path = tmp_path / "archive.sqlite3"
    with ArchiveStore(path) as a, ArchiveStore(path) as b:
        for _ in range(5):
            a.increment_stats(total_archived=1)
            b.increment_stats(total_archived=1)
        assert a.get_stats().total_archived == 10
        assert b.get_stats().total_archived == 10


def test_topic_counts_buckets_empty_topics_as_uncategorized(store):
    _add(store, "https://a.example", topic="shopping")
    _add(store, "https://b.example", topic="")
    _add(store, "https://c.example", topic="shopping")
    _add(store, "https://d.example", topic="reading")

    assert store.topic_counts() == {"shopping": 2, UNCATEGORIZED: 1, "reading": 1}


def test_top_domains_orders_by_count_then_most_recent(store, clock):
    for domain in ["a.example", "b.example", "b.example", "c.example", "a.example"]:
        _add(store, f"https://{domain}/x")
        clock.advance_days(0.01)

    assert store.top_domains() == [("a.example", 2), ("b.example", 2), ("c.example", 1)]
    assert store.top_domains(limit=1) == [("a.example", 2)]


def test_clear_archive_and_reset(store):
    _add(store, "https://a.example", reason=REASON_AGE)
    _add(store, "https://b.example", reason=REASON_CAPACITY)
    store.save_session("S", [])
    store.increment_stats(total_archived=2)

    assert store.clear_archive() == 2
    assert store.list_sessions() != []

    store.reset()
    assert store.list_sessions() == []
    assert store.get_stats() == Stats()


def test_file_store_persists_across_connections(tmp_path):
    path = tmp_path / "nested" / "archive.sqlite3"
    with ArchiveStore(path) as store:
        record = store.add_archived("https://example.com", "Example")
    with ArchiveStore(path) as reopened:
        assert reopened.get_archived(record.id) == record


def test_sqlite_errors_surface_as_store_io_errors(store):
    store.close()
    with pytest.raises(StoreIOError):
        store.list_archived()
    with pytest.raises(StoreIOError):
        store.add_archived("https://example.com")


def test_unopenable_path_raises_store_io_error(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    with pytest.raises((StoreIOError, OSError)):
        ArchiveStore(blocker / "archive.sqlite3")
