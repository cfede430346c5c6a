# src/pulsegrid/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the catalog/registry/stores swappable and makes testing easier.
"""

from typing import Any, Callable, Iterable, Protocol

Clock = Callable[[], float]
# Returns UTC epoch seconds, like time.time().


class TaskCatalog(Protocol):
    """Monitored targets. Owned by an external collaborator."""

    def list_all(self) -> list[Any]: ...
    def get_task(self, task_id: int) -> Any | None: ...


class WorkerRegistry(Protocol):
    """Workers that may receive leases. Owned by an external collaborator."""

    def list_eligible(self, predicate: Callable[[Any], bool]) -> list[Any]: ...
    def find_by_identity(self, identity: str) -> Any | None: ...
    def get_worker(self, worker_id: int) -> Any | None: ...


class AssignmentRepo(Protocol):
    # Generator API
    def purge_stale(self, *, now_ts: float) -> int: ...
    def has_recent_assignment(self, task_id: int, worker_id: int, *, since_ts: float) -> bool: ...
    def insert_assignments(self, pending: Iterable[Any]) -> int: ...

    # Completion API
    def complete_oldest_open(self, task_id: int, worker_id: int) -> bool: ...

    # Generation guard
    def try_acquire_guard(self, holder_id: str, *, now_ts: float, ttl_seconds: float) -> bool: ...
    def release_guard(self, holder_id: str) -> None: ...

    # Introspection
    def stats(self, *, now_ts: float) -> Any: ...
    def list_open_for_worker(self, worker_id: int, *, now_ts: float) -> list[Any]: ...


class CheckRepo(Protocol):
    def add_check(
            self,
            *,
            task_id: int,
            worker_id: int,
            status: Any,
            latency_ms: float,
            timestamp: float,
            origin_proof: str,
    ) -> Any: ...

    def count_checks(self, *, worker_id: int | None = None, since_ts: float | None = None) -> int: ...
    def list_checks_for_tasks(self, task_ids: Iterable[int]) -> list[Any]: ...
