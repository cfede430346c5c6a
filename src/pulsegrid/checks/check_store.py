# src/pulsegrid/checks/check_store.py

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable
from pathlib import Path

from ..core.ports import Clock
from ..core.sqlite_base import SQLiteStore
from .check_models import CheckResult, CheckStatus

logger = logging.getLogger(__name__)


class CheckStore(SQLiteStore):
    """
    Append-only SQLite store for check results.

    There is no update or delete method on purpose.
    """

    def __init__(self, db_path: str | Path = "pulsegrid.sqlite3", *, clock: Clock | None = None) -> None:
        super().__init__(db_path, clock=clock)
        try:
            total = self.count_checks()
        except Exception:
            total = -1
        logger.info("CheckStore ready db=%s total=%s", self._db_path, total)

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        cur = conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS checks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                task_id INTEGER NOT NULL,
                worker_id INTEGER NOT NULL,
                status TEXT NOT NULL,
                latency_ms REAL NOT NULL,
                timestamp REAL NOT NULL,
                origin_proof TEXT NOT NULL,
                created_at REAL NOT NULL
            )
            """
        )
        cur.execute("CREATE INDEX IF NOT EXISTS idx_checks_worker_ts ON checks(worker_id, timestamp)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_checks_task ON checks(task_id)")

    @staticmethod
    def _row_to_check(row: sqlite3.Row) -> CheckResult:
        return CheckResult(
            id=int(row["id"]),
            task_id=int(row["task_id"]),
            worker_id=int(row["worker_id"]),
            status=CheckStatus(row["status"]),
            latency_ms=float(row["latency_ms"]),
            timestamp=float(row["timestamp"]),
            origin_proof=str(row["origin_proof"]),
            created_at=float(row["created_at"]),
        )

    def add_check(
        self,
        *,
        task_id: int,
        worker_id: int,
        status: CheckStatus,
        latency_ms: float,
        timestamp: float,
        origin_proof: str,
    ) -> CheckResult:
        created_at = self._clock()
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO checks(
                    task_id, worker_id, status, latency_ms, timestamp, origin_proof, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    int(task_id),
                    int(worker_id),
                    CheckStatus(status).value,
                    float(latency_ms),
                    float(timestamp),
                    origin_proof,
                    created_at,
                ),
            )
            rowid = cur.lastrowid
        if rowid is None:
            raise RuntimeError("SQLite did not return lastrowid for checks insert")

        logger.debug("Check added id=%s task=%s worker=%s status=%s", rowid, task_id, worker_id, status)
        return CheckResult(
            id=int(rowid),
            task_id=int(task_id),
            worker_id=int(worker_id),
            status=CheckStatus(status),
            latency_ms=float(latency_ms),
            timestamp=float(timestamp),
            origin_proof=origin_proof,
            created_at=created_at,
        )

    def count_checks(self, *, worker_id: int | None = None, since_ts: float | None = None) -> int:
        clauses: list[str] = []
        params: list[float] = []
        if worker_id is not None:
            clauses.append("worker_id = ?")
            params.append(int(worker_id))
        if since_ts is not None:
            clauses.append("timestamp >= ?")
            params.append(float(since_ts))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._connect() as conn:
            (n,) = conn.execute(f"SELECT COUNT(*) FROM checks {where}", params).fetchone()
            return int(n)

    def list_checks_for_tasks(self, task_ids: Iterable[int]) -> list[CheckResult]:
        ids = [int(t) for t in task_ids]
        if not ids:
            return []

        placeholders = ",".join("?" for _ in ids)
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM checks WHERE task_id IN ({placeholders}) ORDER BY timestamp ASC, id ASC",
                ids,
            ).fetchall()
            return [self._row_to_check(r) for r in rows]
