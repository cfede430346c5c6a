# src/pulsegrid/leases/completion.py

from __future__ import annotations

import logging

from ..core.ports import AssignmentRepo

logger = logging.getLogger(__name__)


class CompletionRecorder:
    """Marks one open lease as fulfilled when a matching result arrives."""

    def __init__(self, leases: AssignmentRepo) -> None:
        self._leases = leases

    def complete(self, task_id: int, worker_id: int) -> bool:
        """
        Flip the oldest open (task, worker) lease to completed.

        Returns False when there is no open lease for the pair; that is an
        expected outcome, not an error.
        """
        flipped = self._leases.complete_oldest_open(task_id, worker_id)
        if flipped:
            logger.info("Marked assignment completed task=%s worker=%s", task_id, worker_id)
        else:
            logger.debug("No open assignment to complete task=%s worker=%s", task_id, worker_id)
        return flipped
