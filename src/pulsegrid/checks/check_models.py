# src/pulsegrid/checks/check_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class CheckStatus(StrEnum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True, slots=True)
class CheckResult:
    """A worker's observation of a task at a point in time. Never mutated."""

    id: int
    task_id: int
    worker_id: int
    status: CheckStatus
    latency_ms: float
    timestamp: float
    origin_proof: str
    created_at: float


@dataclass(frozen=True, slots=True)
class WorkerStats:
    worker_id: int
    total_checks: int
    checks_today: int


@dataclass(frozen=True, slots=True)
class WorkerPerformance:
    worker_id: int
    username: str
    identity: str | None
    total_checks: int
    up_percent: int
    avg_latency_ms: int
    last_check_at: float | None
