# tests/test_lease_store.py

from __future__ import annotations

from pathlib import Path

from pulsegrid.leases.lease_models import PendingAssignment
from pulsegrid.leases.lease_store import LeaseStore

NOW = 1_700_000_000.0
LEASE = 600.0


def _pending(task_id: int, worker_id: int, assigned_at: float) -> PendingAssignment:
    return PendingAssignment(task_id, worker_id, assigned_at, assigned_at + LEASE)


def test_purge_removes_only_open_expired_rows(tmp_path: Path) -> None:
    store = LeaseStore(tmp_path / "leases.sqlite3")
    store.insert_assignments(
        [
            _pending(1, 1, NOW - 2000),  # expired, open -> purged
            _pending(2, 1, NOW - 2000),  # expired, completed -> kept
            _pending(3, 1, NOW - 60),  # still open -> kept
        ]
    )
    assert store.complete_oldest_open(2, 1)

    assert store.purge_stale(now_ts=NOW) == 1
    assert sorted(a.task_id for a in store.list_assignments()) == [2, 3]


def test_completion_flips_oldest_open_row_once(tmp_path: Path) -> None:
    store = LeaseStore(tmp_path / "leases.sqlite3")
    # Two open leases for the same pair, as a racing double cycle can produce.
    store.insert_assignments([_pending(1, 7, NOW - 100), _pending(1, 7, NOW - 50)])
    older, newer = store.list_assignments(task_id=1, worker_id=7)

    assert store.complete_oldest_open(1, 7)
    rows = {a.id: a for a in store.list_assignments()}
    assert rows[older.id].completed is True
    assert rows[newer.id].completed is False

    assert store.complete_oldest_open(1, 7)
    assert store.complete_oldest_open(1, 7) is False
    assert all(a.completed for a in store.list_assignments())


def test_completion_without_open_lease_changes_nothing(tmp_path: Path) -> None:
    store = LeaseStore(tmp_path / "leases.sqlite3")
    store.insert_assignments([_pending(1, 1, NOW)])
    before = store.list_assignments()

    assert store.complete_oldest_open(1, 2) is False
    assert store.complete_oldest_open(9, 1) is False
    assert store.list_assignments() == before


def test_completed_rows_never_reopen(tmp_path: Path) -> None:
    store = LeaseStore(tmp_path / "leases.sqlite3")
    store.insert_assignments([_pending(1, 1, NOW)])
    store.complete_oldest_open(1, 1)

    # Further cycles (purge + insert) and completions leave the row completed.
    store.purge_stale(now_ts=NOW + 10 * LEASE)
    store.insert_assignments([_pending(1, 1, NOW + 10 * LEASE)])
    store.complete_oldest_open(1, 1)

    assert [a.completed for a in store.list_assignments()] == [True, True]


def test_recent_assignment_lookback(tmp_path: Path) -> None:
    store = LeaseStore(tmp_path / "leases.sqlite3")
    store.insert_assignments([_pending(1, 1, NOW - 600)])

    assert store.has_recent_assignment(1, 1, since_ts=NOW - 1800)
    assert not store.has_recent_assignment(1, 1, since_ts=NOW - 300)
    assert not store.has_recent_assignment(1, 2, since_ts=NOW - 1800)


def test_stats_and_open_leases(tmp_path: Path) -> None:
    store = LeaseStore(tmp_path / "leases.sqlite3")
    store.insert_assignments(
        [
            _pending(1, 1, NOW - 60),  # active
            _pending(2, 1, NOW - 60),  # completed below
            _pending(3, 1, NOW - 5000),  # expired
            _pending(4, 2, NOW - 60),  # active, other worker
        ]
    )
    store.complete_oldest_open(2, 1)

    st = store.stats(now_ts=NOW)
    assert (st.total, st.active, st.completed, st.expired) == (4, 2, 1, 1)

    open_for_1 = store.list_open_for_worker(1, now_ts=NOW)
    assert [a.task_id for a in open_for_1] == [1]


def test_insert_nothing_is_a_noop(tmp_path: Path) -> None:
    store = LeaseStore(tmp_path / "leases.sqlite3")
    assert store.insert_assignments([]) == 0
    assert store.count_assignments() == 0


def test_guard_is_exclusive_until_released_or_expired(tmp_path: Path) -> None:
    store = LeaseStore(tmp_path / "leases.sqlite3")

    assert store.try_acquire_guard("a", now_ts=NOW, ttl_seconds=60)
    assert not store.try_acquire_guard("b", now_ts=NOW + 30, ttl_seconds=60)

    # Only the holder can release.
    store.release_guard("b")
    assert not store.try_acquire_guard("b", now_ts=NOW + 30, ttl_seconds=60)

    store.release_guard("a")
    assert store.try_acquire_guard("b", now_ts=NOW + 31, ttl_seconds=60)

    # b never releases; its guard lapses after the TTL.
    assert store.try_acquire_guard("c", now_ts=NOW + 31 + 60, ttl_seconds=60)
