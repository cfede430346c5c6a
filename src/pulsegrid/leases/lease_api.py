# src/pulsegrid/leases/lease_api.py

from __future__ import annotations

import logging

from ..core.state import AppState
from .lease_models import AssignmentStats, OpenLease

logger = logging.getLogger(__name__)


def assignment_stats(state: AppState, *, now_ts: float | None = None) -> AssignmentStats:
    """Counts of total / active / completed / expired assignments."""
    if now_ts is None:
        now_ts = state.lease_store.now()
    return state.lease_store.stats(now_ts=now_ts)


def open_leases_for_worker(
    state: AppState, worker_id: int, *, now_ts: float | None = None
) -> list[OpenLease]:
    """
    Leases a worker may currently work on, with the task's url/name attached.

    Leases whose task has since been removed from the catalog are skipped.
    """
    if now_ts is None:
        now_ts = state.lease_store.now()

    out: list[OpenLease] = []
    for a in state.lease_store.list_open_for_worker(worker_id, now_ts=now_ts):
        task = state.directory.get_task(a.task_id)
        if task is None:
            logger.debug("Open lease %s points at missing task %s", a.id, a.task_id)
            continue
        out.append(
            OpenLease(
                assignment_id=a.id,
                task_id=a.task_id,
                url=task.url,
                name=task.name,
                assigned_at=a.assigned_at,
                expires_at=a.expires_at,
            )
        )
    return out
