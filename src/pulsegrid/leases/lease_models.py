# src/pulsegrid/leases/lease_models.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

REASON_NO_WORKERS = "no workers"
REASON_NO_TASKS = "no tasks"
REASON_IN_PROGRESS = "generation in progress"


@dataclass(frozen=True, slots=True)
class Assignment:
    """
    One worker offered one task for one verification cycle.

    expires_at is fixed at creation; completed only ever goes False -> True.
    """

    id: int
    task_id: int
    worker_id: int
    assigned_at: float
    expires_at: float
    completed: bool

    def is_open(self, now_ts: float) -> bool:
        return not self.completed and self.expires_at > now_ts

    def is_stale(self, now_ts: float) -> bool:
        return not self.completed and self.expires_at < now_ts


@dataclass(frozen=True, slots=True)
class PendingAssignment:
    """An assignment computed by the generator but not yet persisted."""

    task_id: int
    worker_id: int
    assigned_at: float
    expires_at: float


@dataclass(frozen=True, slots=True)
class OpenLease:
    assignment_id: int
    task_id: int
    url: str
    name: str | None
    assigned_at: float
    expires_at: float


@dataclass(frozen=True, slots=True)
class AssignmentStats:
    total: int
    active: int
    completed: int
    expired: int


@dataclass(frozen=True, slots=True)
class GenerationResult:
    success: bool
    assignments_created: int = 0
    workers_involved: int = 0
    reason: str | None = None

    @classmethod
    def failed(cls, reason: str) -> GenerationResult:
        return cls(success=False, reason=reason)

    def as_dict(self) -> dict[str, Any]:
        if not self.success:
            return {"success": False, "reason": self.reason}
        return {
            "success": True,
            "assignments_created": self.assignments_created,
            "workers_involved": self.workers_involved,
        }
