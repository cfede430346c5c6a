# src/pulsegrid/leases/generator.py

from __future__ import annotations

"""
Assignment generator.

One cycle:
- purge stale leases (open and already expired),
- load the task catalog and the eligible workers,
- compute a per-worker quota,
- shuffle the tasks and deal them out worker by worker,
  skipping pairs that were assigned inside the cooldown window,
- bulk insert the new leases.

Steps are separate store operations, not one transaction. Two overlapping
cycles can both assign the same pair; the optional generation guard makes
that unlikely, the cooldown check makes it harmless.
"""

import logging
import math
import random
import time
import uuid
from dataclasses import dataclass

from ..core.ports import AssignmentRepo, Clock, TaskCatalog, WorkerRegistry
from ..directory.directory_models import MonitoredTask, Worker, is_eligible
from ..errors import StoreError
from .lease_models import (
    REASON_IN_PROGRESS,
    REASON_NO_TASKS,
    REASON_NO_WORKERS,
    GenerationResult,
    PendingAssignment,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GeneratorPolicy:
    lease_seconds: float = 10 * 60.0
    cooldown_seconds: float = 30 * 60.0
    max_per_worker: int = 5
    use_generation_guard: bool = True
    guard_ttl_seconds: float = 120.0

    @classmethod
    def from_settings(cls, settings) -> GeneratorPolicy:
        return cls(
            lease_seconds=float(getattr(settings, "lease_minutes", 10)) * 60.0,
            cooldown_seconds=float(getattr(settings, "cooldown_minutes", 30)) * 60.0,
            max_per_worker=max(1, int(getattr(settings, "max_per_worker", 5))),
            use_generation_guard=bool(getattr(settings, "generation_guard", True)),
            guard_ttl_seconds=float(getattr(settings, "generation_guard_seconds", 120.0)),
        )


def compute_quota(n_tasks: int, n_workers: int, max_per_worker: int = 5) -> int:
    """Per-worker target for one cycle: min(max_per_worker, ceil(tasks / workers))."""
    if n_tasks <= 0 or n_workers <= 0:
        return 0
    return min(int(max_per_worker), math.ceil(n_tasks / n_workers))


def shuffled(items: list[MonitoredTask], rng: random.Random) -> list[MonitoredTask]:
    """Uniform Fisher-Yates permutation of a copy of items."""
    out = list(items)
    for i in range(len(out) - 1, 0, -1):
        j = rng.randint(0, i)
        out[i], out[j] = out[j], out[i]
    return out


class AssignmentGenerator:
    def __init__(
        self,
        catalog: TaskCatalog,
        registry: WorkerRegistry,
        leases: AssignmentRepo,
        *,
        policy: GeneratorPolicy | None = None,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._catalog = catalog
        self._registry = registry
        self._leases = leases
        self.policy = policy or GeneratorPolicy()
        self._clock: Clock = clock or time.time
        self._rng = rng or random.Random()

    def run(self) -> GenerationResult:
        """
        Run one generation cycle.

        Never raises for store failures: they come back as
        GenerationResult(success=False, reason=...).
        """
        holder_id = uuid.uuid4().hex
        now_ts = self._clock()

        if self.policy.use_generation_guard:
            try:
                acquired = self._leases.try_acquire_guard(
                    holder_id, now_ts=now_ts, ttl_seconds=self.policy.guard_ttl_seconds
                )
            except StoreError as e:
                logger.error("Generation guard unavailable: %s", e)
                return GenerationResult.failed(str(e))
            if not acquired:
                logger.info("Another generation cycle is in progress; skipping")
                return GenerationResult.failed(REASON_IN_PROGRESS)

        try:
            return self._run_cycle(now_ts)
        except StoreError as e:
            logger.error("Generation cycle failed: %s", e)
            return GenerationResult.failed(str(e))
        finally:
            if self.policy.use_generation_guard:
                try:
                    self._leases.release_guard(holder_id)
                except StoreError:
                    # The guard expires on its own after guard_ttl_seconds.
                    logger.warning("release_guard failed holder=%s", holder_id, exc_info=True)

    def _run_cycle(self, now_ts: float) -> GenerationResult:
        logger.info("Starting assignment cycle")

        purged = self._leases.purge_stale(now_ts=now_ts)

        tasks: list[MonitoredTask] = self._catalog.list_all()
        workers: list[Worker] = self._registry.list_eligible(is_eligible)
        logger.info(
            "Loaded %d tasks, %d eligible workers (purged %d stale leases)",
            len(tasks),
            len(workers),
            purged,
        )

        if not workers:
            logger.warning("No workers available for assignments")
            return GenerationResult.failed(REASON_NO_WORKERS)

        if not tasks:
            logger.warning("No tasks to assign")
            return GenerationResult.failed(REASON_NO_TASKS)

        quota = compute_quota(len(tasks), len(workers), self.policy.max_per_worker)
        logger.debug("Quota %d tasks per worker", quota)

        pending = self._deal(shuffled(tasks, self._rng), workers, quota, now_ts)

        created = self._leases.insert_assignments(pending)
        logger.info("Created %d assignments for %d workers", created, len(workers))

        return GenerationResult(
            success=True,
            assignments_created=created,
            workers_involved=len(workers),
        )

    def _deal(
        self,
        deck: list[MonitoredTask],
        workers: list[Worker],
        quota: int,
        now_ts: float,
    ) -> list[PendingAssignment]:
        """
        Walk the shuffled deck with one shared cursor.

        Every candidate consumes a slot of the worker's quota, including the
        ones skipped by the cooldown check; the skipped task is not offered
        to this worker again in this pass.
        """
        since_ts = now_ts - self.policy.cooldown_seconds
        expires_at = now_ts + self.policy.lease_seconds

        pending: list[PendingAssignment] = []
        cursor = 0

        for worker in workers:
            given = 0
            for _ in range(quota):
                if cursor >= len(deck):
                    break
                task = deck[cursor]
                cursor += 1

                if self._leases.has_recent_assignment(task.id, worker.id, since_ts=since_ts):
                    logger.debug("Cooldown: task %s recently assigned to worker %s", task.id, worker.id)
                    continue

                pending.append(
                    PendingAssignment(
                        task_id=task.id,
                        worker_id=worker.id,
                        assigned_at=now_ts,
                        expires_at=expires_at,
                    )
                )
                given += 1

            logger.debug("Assigned %d tasks to worker %s", given, worker.username)

        return pending
