# src/pulsegrid/checks/check_api.py

from __future__ import annotations

from datetime import datetime

from ..core.state import AppState
from .check_models import CheckStatus, WorkerPerformance, WorkerStats


def _local_midnight(now_ts: float) -> float:
    d = datetime.fromtimestamp(now_ts).astimezone()
    return d.replace(hour=0, minute=0, second=0, microsecond=0).timestamp()


def worker_stats(state: AppState, worker_id: int, *, now_ts: float | None = None) -> WorkerStats:
    """Total checks by a worker, and how many of them are timestamped today (local time)."""
    if now_ts is None:
        now_ts = state.check_store.now()
    return WorkerStats(
        worker_id=int(worker_id),
        total_checks=state.check_store.count_checks(worker_id=worker_id),
        checks_today=state.check_store.count_checks(
            worker_id=worker_id, since_ts=_local_midnight(now_ts)
        ),
    )


def worker_performance(state: AppState, owner_id: int) -> list[WorkerPerformance]:
    """
    Per-worker aggregates over every check of the owner's tasks.

    Sorted by most active worker first.
    """
    task_ids = [t.id for t in state.directory.list_tasks_for_owner(owner_id)]
    checks = state.check_store.list_checks_for_tasks(task_ids)

    acc: dict[int, dict[str, float]] = {}
    for c in checks:
        s = acc.setdefault(c.worker_id, {"total": 0, "up": 0, "latency": 0.0, "last": c.timestamp})
        s["total"] += 1
        if c.status == CheckStatus.UP:
            s["up"] += 1
        s["latency"] += c.latency_ms
        s["last"] = max(s["last"], c.timestamp)

    out: list[WorkerPerformance] = []
    for worker_id, s in acc.items():
        worker = state.directory.get_worker(worker_id)
        total = int(s["total"])
        out.append(
            WorkerPerformance(
                worker_id=worker_id,
                username=worker.username if worker else f"#{worker_id}",
                identity=worker.identity if worker else None,
                total_checks=total,
                up_percent=round(100 * s["up"] / total),
                avg_latency_ms=round(s["latency"] / total),
                last_check_at=s["last"],
            )
        )

    out.sort(key=lambda p: p.total_checks, reverse=True)
    return out
