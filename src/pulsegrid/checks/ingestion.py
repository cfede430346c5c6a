# src/pulsegrid/checks/ingestion.py

"""
Check ingestion.

Two stages:
1. validate and persist the worker's CheckResult (failures reach the caller),
2. ask the completion recorder to close the matching lease.

Stage 2 is best-effort: its outcome is logged and never changes whether the
submission succeeded.

The origin proof is verified upstream; here it is only required to be present.
"""

from __future__ import annotations

import logging
import math
import numbers
from datetime import datetime, timezone
from typing import Any

from ..core.ports import CheckRepo, TaskCatalog, WorkerRegistry
from ..errors import ValidationError
from ..leases.completion import CompletionRecorder
from .check_models import CheckResult, CheckStatus

logger = logging.getLogger(__name__)


def _require(value: Any, field: str) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"Missing required field: {field}", field=field)


def parse_status(raw: Any) -> CheckStatus:
    if isinstance(raw, CheckStatus):
        return raw
    try:
        return CheckStatus(str(raw).strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in CheckStatus)
        raise ValidationError(f"status must be one of: {allowed}", field="status") from None


def parse_latency(raw: Any) -> float:
    if isinstance(raw, bool) or not isinstance(raw, numbers.Real):
        raise ValidationError("latency must be a number", field="latency")
    latency = float(raw)
    if not math.isfinite(latency) or latency <= 0:
        raise ValidationError("latency must be positive", field="latency")
    return latency


def parse_task_id(raw: Any) -> int:
    """Integer ids, or their decimal string form. Bools and fractional floats are rejected."""
    if isinstance(raw, bool):
        raise ValidationError("task_id must be an integer id", field="task_id")
    if isinstance(raw, float) and not raw.is_integer():
        raise ValidationError("task_id must be an integer id", field="task_id")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError("task_id must be an integer id", field="task_id") from None


def parse_timestamp(raw: Any) -> float:
    """Accept epoch seconds, a datetime (naive = UTC) or an ISO-8601 string."""
    if isinstance(raw, datetime):
        dt = raw
    elif isinstance(raw, bool):
        raise ValidationError("timestamp has an invalid type", field="timestamp")
    elif isinstance(raw, numbers.Real):
        ts = float(raw)
        if not math.isfinite(ts) or ts < 0:
            raise ValidationError("timestamp is out of range", field="timestamp")
        return ts
    elif isinstance(raw, str):
        text = raw.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError("timestamp is not ISO-8601", field="timestamp") from None
    else:
        raise ValidationError("timestamp has an invalid type", field="timestamp")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


class CheckIngestion:
    def __init__(
        self,
        catalog: TaskCatalog,
        registry: WorkerRegistry,
        checks: CheckRepo,
        completion: CompletionRecorder,
    ) -> None:
        self._catalog = catalog
        self._registry = registry
        self._checks = checks
        self._completion = completion

    def submit(
        self,
        *,
        task_id: Any,
        worker_identity: Any,
        status: Any,
        latency: Any,
        timestamp: Any,
        origin_proof: Any,
    ) -> CheckResult:
        """
        Validate, persist, then request completion of the matching lease.

        Raises ValidationError (nothing written) for bad input and StoreError
        if the check itself cannot be stored.
        """
        for value, field in (
            (task_id, "task_id"),
            (worker_identity, "worker_identity"),
            (status, "status"),
            (latency, "latency"),
            (timestamp, "timestamp"),
            (origin_proof, "origin_proof"),
        ):
            _require(value, field)

        check_status = parse_status(status)
        latency_ms = parse_latency(latency)
        ts = parse_timestamp(timestamp)

        if not isinstance(origin_proof, str):
            raise ValidationError("origin_proof must be a string", field="origin_proof")

        tid = parse_task_id(task_id)

        if self._catalog.get_task(tid) is None:
            raise ValidationError(f"Unknown task: {tid}", field="task_id")

        worker = self._registry.find_by_identity(str(worker_identity))
        if worker is None:
            raise ValidationError("Unknown worker identity", field="worker_identity")

        check = self._checks.add_check(
            task_id=tid,
            worker_id=worker.id,
            status=check_status,
            latency_ms=latency_ms,
            timestamp=ts,
            origin_proof=origin_proof.strip(),
        )
        logger.info(
            "Check stored id=%s task=%s worker=%s status=%s latency=%.0fms",
            check.id,
            tid,
            worker.id,
            check_status.value,
            latency_ms,
        )

        self._notify_completion(tid, worker.id)
        return check

    def _notify_completion(self, task_id: int, worker_id: int) -> None:
        try:
            self._completion.complete(task_id, worker_id)
        except Exception:
            logger.exception("Completion marking failed task=%s worker=%s", task_id, worker_id)
