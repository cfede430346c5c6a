# src/pulsegrid/directory/directory_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class WorkerRole(StrEnum):
    """
    Who a worker is.

    Notes:
    - "worker" is a dedicated checker.
    - "owner" owns monitored tasks; an owner becomes eligible only after
      registering an identity (opt-in).
    """

    WORKER = "worker"
    OWNER = "owner"

    @classmethod
    def from_db(cls, raw: str | None) -> WorkerRole:
        if not raw:
            return cls.OWNER
        try:
            return cls(raw)
        except Exception:
            return cls.OWNER


@dataclass(frozen=True, slots=True)
class MonitoredTask:
    id: int
    owner_id: int
    created_at: float

    # Configuration fields, opaque to assignment logic.
    url: str
    name: str | None = None


@dataclass(frozen=True, slots=True)
class Worker:
    id: int
    username: str
    role: WorkerRole
    identity: str | None
    created_at: float


def is_eligible(worker: Worker) -> bool:
    """A worker may receive leases if it has an identity and is a worker or an opted-in owner."""
    if not (worker.identity or "").strip():
        return False
    return worker.role in (WorkerRole.WORKER, WorkerRole.OWNER)
