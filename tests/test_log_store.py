from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from telemetry_hub.errors import StoreError
from telemetry_hub.models import LogMessage
from telemetry_hub.services.log_store import LogStore
from tests.conftest import START


def count_logs(db):
    return db.scalar(select(func.count(LogMessage.id)))


def test_append_assigns_increasing_ids(db):
    store = LogStore(db)
    first = store.append(7, START, "boot")
    second = store.append(3, START - timedelta(minutes=5), "older capture, later upload")
    assert second > first


def test_append_batch_returns_ids_in_order(db):
    ids = LogStore(db).append_batch(7, [(START, "a"), (START, "b"), (START, "c")])
    assert ids == sorted(ids)
    assert len(set(ids)) == 3


def test_append_batch_does_not_deduplicate(db):
    LogStore(db).append_batch(7, [(START, "same"), (START, "same")])
    assert count_logs(db) == 2


def test_append_batch_empty_is_noop(db):
    assert LogStore(db).append_batch(7, []) == []
    assert count_logs(db) == 0


def test_append_batch_is_all_or_nothing(db, monkeypatch):
    store = LogStore(db)

    def broken_flush(*args, **kwargs):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(db, "flush", broken_flush)
    with pytest.raises(StoreError):
        store.append_batch(7, [(START, "a"), (START, "b")])
    monkeypatch.undo()

    assert count_logs(db) == 0


def test_range_after_filters_by_id_and_cutoff(db):
    store = LogStore(db)
    old_id = store.append(1, START - timedelta(minutes=10), "old")
    store.append(1, START, "at cutoff")
    newer_id = store.append(2, START - timedelta(minutes=9), "newer id")

    logs = store.range_after(old_id, START, limit=100)

    assert [log.id for log in logs] == [newer_id]


def test_range_after_orders_by_id_not_timestamp(db):
    store = LogStore(db)
    late = store.append(1, START - timedelta(minutes=1), "captured late")
    early = store.append(2, START - timedelta(minutes=30), "captured early")

    logs = store.range_after(0, START, limit=100)

    assert [log.id for log in logs] == [late, early]


def test_range_after_respects_limit(db):
    store = LogStore(db)
    ids = store.append_batch(1, [(START - timedelta(minutes=1), f"line {i}") for i in range(5)])

    logs = store.range_after(0, START, limit=2)

    assert [log.id for log in logs] == ids[:2]


def test_known_node_ids_are_distinct(db):
    store = LogStore(db)
    store.append_batch(9, [(START, "x"), (START, "y")])
    store.append(4, START, "z")
    assert store.known_node_ids() == [4, 9]


def test_purge_never_deletes_at_or_after_threshold(db):
    store = LogStore(db)
    store.append(1, START - timedelta(seconds=1), "expired")
    store.append(1, START, "exactly at threshold")
    store.append(1, START + timedelta(seconds=1), "fresh")

    assert store.purge_older_than(START, batch_size=100) == 1
    remaining = [log.message for log in store.range_after(0, START + timedelta(days=1), 100)]
    assert remaining == ["exactly at threshold", "fresh"]


def test_purge_is_bounded_and_repeatable(db):
    store = LogStore(db)
    store.append_batch(1, [(START - timedelta(hours=1), f"old {i}") for i in range(7)])
    store.append(1, START, "keep")

    removed = []
    while True:
        count = store.purge_older_than(START, batch_size=3)
        removed.append(count)
        if count == 0:
            break

    assert removed == [3, 3, 1, 0]
    assert count_logs(db) == 1
