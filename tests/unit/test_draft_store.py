"""Unit tests for debounced draft persistence with an activation delay."""

from __future__ import annotations

from datetime import datetime
import json
from pathlib import Path

import pytest

from castory.drafts.kv import FileKeyValueStore, MemoryKeyValueStore
from castory.drafts.store import DraftPersistence, read_draft, use_draft_persistence
from castory.errors import PersistenceError
from tests.fakes import ManualScheduler

KEY = "castory:draft:news-podcast"


def _persistence(
    store: MemoryKeyValueStore,
    scheduler: ManualScheduler,
) -> DraftPersistence:
    """Build persistence with the default 0.5s debounce and 0.75s activation."""

    return DraftPersistence(
        store,
        KEY,
        scheduler=scheduler,
        now=lambda: datetime(2026, 1, 2, 3, 4, 5),
    )


def test_activation_must_exceed_debounce() -> None:
    """An activation delay not longer than the debounce window is rejected."""

    with pytest.raises(ValueError):
        DraftPersistence(MemoryKeyValueStore(), KEY, debounce_seconds=0.5, activation_delay_seconds=0.5)


def test_hydration_state_is_not_written_before_activation() -> None:
    """The initial state settles inside the activation window and stays unwritten."""

    store = MemoryKeyValueStore()
    store.set(KEY, json.dumps({"topic": "restored"}))
    scheduler = ManualScheduler()
    persistence = use_draft_persistence(store, KEY, {"topic": None}, scheduler=scheduler)

    scheduler.advance(0.6)

    assert json.loads(store.get(KEY) or "{}") == {"topic": "restored"}
    assert persistence.active is False
    assert persistence.last_saved is None


def test_change_inside_activation_window_is_not_observed_early() -> None:
    """A change made right after start must not reach the store before activation."""

    store = MemoryKeyValueStore()
    scheduler = ManualScheduler()
    persistence = _persistence(store, scheduler)
    persistence.start()

    scheduler.advance(0.1)
    persistence.update({"topic": "ai"})
    scheduler.advance(0.6)

    assert scheduler.now == pytest.approx(0.7)
    assert store.get(KEY) is None

    scheduler.advance(0.05)
    assert persistence.active is True
    assert store.get(KEY) is None

    scheduler.advance(0.5)
    assert json.loads(store.get(KEY) or "{}") == {"topic": "ai"}


def test_change_after_activation_lands_within_one_debounce_window() -> None:
    """After activation, a change is written once the debounce window elapses."""

    store = MemoryKeyValueStore()
    scheduler = ManualScheduler()
    persistence = _persistence(store, scheduler)
    persistence.start()
    scheduler.advance(1.0)

    persistence.update({"script": "draft text"})
    scheduler.advance(0.49)
    assert store.get(KEY) is None

    scheduler.advance(0.01)
    assert json.loads(store.get(KEY) or "{}") == {"script": "draft text"}
    assert persistence.last_saved == datetime(2026, 1, 2, 3, 4, 5)


def test_rapid_changes_are_coalesced_into_one_write() -> None:
    """Each change re-arms the debounce; only the last state is written."""

    writes: list[str] = []

    class _CountingStore(MemoryKeyValueStore):
        def set(self, key: str, value: str) -> None:
            writes.append(value)
            super().set(key, value)

    store = _CountingStore()
    scheduler = ManualScheduler()
    persistence = _persistence(store, scheduler)
    persistence.start()
    scheduler.advance(1.0)

    for index in range(5):
        persistence.update({"title": f"t{index}"})
        scheduler.advance(0.2)
    scheduler.advance(0.5)

    assert len(writes) == 1
    assert json.loads(writes[0]) == {"title": "t4"}


def test_quota_failures_are_swallowed() -> None:
    """A full store keeps the previous draft and never raises to the caller."""

    store = MemoryKeyValueStore(quota_bytes=40)
    scheduler = ManualScheduler()
    persistence = _persistence(store, scheduler)
    persistence.start()
    scheduler.advance(1.0)

    persistence.update({"script": "x" * 200})
    scheduler.advance(0.5)

    assert store.get(KEY) is None
    assert persistence.last_saved is None


def test_unparseable_or_failing_reads_are_treated_as_no_draft() -> None:
    """Corrupt or unreadable drafts read as absent."""

    store = MemoryKeyValueStore()
    store.set(KEY, "{not json")
    assert read_draft(store, KEY) is None

    store.set(KEY, json.dumps(["not", "a", "mapping"]))
    assert read_draft(store, KEY) is None

    class _BrokenStore(MemoryKeyValueStore):
        def get(self, key: str) -> str | None:
            raise PersistenceError("storage disabled")

    assert read_draft(_BrokenStore(), KEY) is None


def test_discard_removes_entry_and_resets_last_saved() -> None:
    """Discard deletes the draft and clears the saved marker."""

    store = MemoryKeyValueStore()
    scheduler = ManualScheduler()
    persistence = _persistence(store, scheduler)
    persistence.start()
    scheduler.advance(1.0)
    persistence.update({"topic": "ai"})
    scheduler.advance(0.5)
    assert persistence.last_saved is not None

    persistence.discard()

    assert store.get(KEY) is None
    assert persistence.last_saved is None


def test_discard_without_draft_is_a_no_op() -> None:
    """Discarding twice, or with nothing saved, never raises."""

    persistence = _persistence(MemoryKeyValueStore(), ManualScheduler())

    persistence.discard()
    persistence.discard()


def test_discard_cancels_pending_write() -> None:
    """A debounced write armed before discard must not resurrect the draft."""

    store = MemoryKeyValueStore()
    scheduler = ManualScheduler()
    persistence = _persistence(store, scheduler)
    persistence.start()
    scheduler.advance(1.0)
    persistence.update({"topic": "ai"})

    persistence.discard()
    scheduler.advance(1.0)

    assert store.get(KEY) is None


def test_close_stops_further_writes_and_flush_writes_immediately() -> None:
    """Flush skips the debounce; close cancels everything afterwards."""

    store = MemoryKeyValueStore()
    scheduler = ManualScheduler()
    persistence = _persistence(store, scheduler)
    persistence.start()
    scheduler.advance(1.0)

    persistence.update({"topic": "first"})
    persistence.flush()
    assert json.loads(store.get(KEY) or "{}") == {"topic": "first"}

    persistence.close()
    persistence.update({"topic": "second"})
    scheduler.advance(1.0)
    assert json.loads(store.get(KEY) or "{}") == {"topic": "first"}


def test_file_store_roundtrip_and_missing_remove(tmp_path: Path) -> None:
    """The file-backed store keeps one file per key and tolerates missing removals."""

    store = FileKeyValueStore(tmp_path / "drafts")
    assert store.get(KEY) is None

    store.set(KEY, '{"step": 2}')
    assert store.get(KEY) == '{"step": 2}'
    assert len(list((tmp_path / "drafts").iterdir())) == 1

    store.remove(KEY)
    store.remove(KEY)
    assert store.get(KEY) is None


def test_file_store_quota_raises_persistence_error(tmp_path: Path) -> None:
    """Oversized values are rejected the way browser storage rejects them."""

    store = FileKeyValueStore(tmp_path, quota_bytes=10)

    with pytest.raises(PersistenceError, match="Quota exceeded"):
        store.set(KEY, "x" * 100)
