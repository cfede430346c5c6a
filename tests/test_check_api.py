# tests/test_check_api.py

from __future__ import annotations

from datetime import datetime

from pulsegrid.checks.check_api import worker_performance, worker_stats
from pulsegrid.leases.lease_api import assignment_stats, open_leases_for_worker
from pulsegrid.leases.lease_models import PendingAssignment

from .fakes import add_tasks, add_workers

OWNER = 999


def _submit(state, task_id: int, identity: str, status: str, latency: float, ts: float) -> None:
    state.ingestion.submit(
        task_id=task_id,
        worker_identity=identity,
        status=status,
        latency=latency,
        timestamp=ts,
        origin_proof="sig",
    )


def test_performance_is_sorted_by_activity_with_rounded_aggregates(state, clock) -> None:
    w0, w1, w2 = add_workers(state, 3)
    t0, t1 = add_tasks(state, 2, owner_id=OWNER)
    (foreign,) = add_tasks(state, 1, owner_id=5)
    now = clock.now

    _submit(state, t0, "key-w0", "up", 100, now - 300)
    _submit(state, t1, "key-w0", "up", 200, now - 200)
    _submit(state, t0, "key-w0", "down", 301, now - 100)
    _submit(state, t1, "key-w1", "down", 50, 0)
    _submit(state, t0, "key-w2", "up", 10, now - 50)
    _submit(state, t1, "key-w2", "up", 20, now - 40)
    _submit(state, foreign, "key-w2", "down", 999, now)

    perf = worker_performance(state, OWNER)

    assert [p.worker_id for p in perf] == [w0, w2, w1]
    first, second, third = perf

    assert first.username == "w0"
    assert first.identity == "key-w0"
    assert first.total_checks == 3
    assert first.up_percent == 67
    assert first.avg_latency_ms == 200
    assert first.last_check_at == now - 100

    # The other owner's task does not count.
    assert second.total_checks == 2
    assert second.up_percent == 100
    assert second.avg_latency_ms == 15
    assert second.last_check_at == now - 40

    assert third.total_checks == 1
    assert third.up_percent == 0
    assert third.avg_latency_ms == 50
    assert third.last_check_at == 0.0


def test_performance_for_owner_without_checks(state) -> None:
    add_workers(state, 1)
    add_tasks(state, 2, owner_id=OWNER)

    assert worker_performance(state, OWNER) == []
    assert worker_performance(state, 12345) == []


def test_checks_today_start_at_local_midnight(state, clock) -> None:
    (worker_id,) = add_workers(state, 1)
    (task_id,) = add_tasks(state, 1)
    midnight = (
        datetime.fromtimestamp(clock.now)
        .astimezone()
        .replace(hour=0, minute=0, second=0, microsecond=0)
        .timestamp()
    )

    _submit(state, task_id, "key-w0", "up", 80, midnight - 60)
    _submit(state, task_id, "key-w0", "up", 80, midnight - 86_400)
    _submit(state, task_id, "key-w0", "up", 80, midnight)
    _submit(state, task_id, "key-w0", "down", 80, clock.now)

    stats = worker_stats(state, worker_id)

    assert stats.worker_id == worker_id
    assert stats.total_checks == 4
    assert stats.checks_today == 2
    assert worker_stats(state, worker_id + 1).total_checks == 0


def test_open_leases_skip_missing_tasks_and_expire(state, clock) -> None:
    (worker_id,) = add_workers(state, 1)
    (task_id,) = add_tasks(state, 1)
    state.generator.run()
    state.lease_store.insert_assignments(
        [PendingAssignment(424242, worker_id, clock.now, clock.now + 600)]
    )

    raw = state.lease_store.list_open_for_worker(worker_id, now_ts=clock.now)
    assert len(raw) == 2
    assert all(a.is_open(clock.now) for a in raw)

    (lease,) = open_leases_for_worker(state, worker_id)
    assert lease.task_id == task_id
    assert lease.url == "https://site0.example"
    assert lease.name == "site0"
    assert lease.expires_at == clock.now + 600

    st = assignment_stats(state)
    assert (st.total, st.active, st.completed, st.expired) == (2, 2, 0, 0)

    clock.advance(minutes=11)

    assert open_leases_for_worker(state, worker_id) == []
    assert not any(a.is_open(clock.now) for a in state.lease_store.list_assignments())
    st = assignment_stats(state)
    assert (st.active, st.expired) == (0, 2)
