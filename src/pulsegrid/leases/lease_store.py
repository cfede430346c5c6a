# src/pulsegrid/leases/lease_store.py

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable
from pathlib import Path

from ..core.ports import Clock
from ..core.sqlite_base import SQLiteStore
from .lease_models import Assignment, AssignmentStats, PendingAssignment

logger = logging.getLogger(__name__)

_GUARD_NAME = "generation"


class LeaseStore(SQLiteStore):
    """
    SQLite assignment store.

    Rows are created only by insert_assignments(), flipped only by
    complete_oldest_open() and deleted only by purge_stale(). There is
    deliberately no UNIQUE(task_id, worker_id): a pair accumulates history.

    The generation_guard table holds at most one row: a TTL lease that marks
    a generation cycle as in progress.
    """

    def __init__(self, db_path: str | Path = "pulsegrid.sqlite3", *, clock: Clock | None = None) -> None:
        super().__init__(db_path, clock=clock)
        try:
            total = self.count_assignments()
        except Exception:
            total = -1
        logger.info("LeaseStore ready db=%s total=%s", self._db_path, total)

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        cur = conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS assignments (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                task_id INTEGER NOT NULL,
                worker_id INTEGER NOT NULL,
                assigned_at REAL NOT NULL,
                expires_at REAL NOT NULL,
                completed INTEGER NOT NULL DEFAULT 0
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS generation_guard (
                name TEXT PRIMARY KEY,
                holder_id TEXT NOT NULL,
                acquired_at REAL NOT NULL,
                expires_at REAL NOT NULL
            )
            """
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_assignments_worker_completed "
            "ON assignments(worker_id, completed)"
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_assignments_task_assigned "
            "ON assignments(task_id, assigned_at)"
        )

    @staticmethod
    def _row_to_assignment(row: sqlite3.Row) -> Assignment:
        return Assignment(
            id=int(row["id"]),
            task_id=int(row["task_id"]),
            worker_id=int(row["worker_id"]),
            assigned_at=float(row["assigned_at"]),
            expires_at=float(row["expires_at"]),
            completed=bool(row["completed"]),
        )

    # ---- generator API ----

    def purge_stale(self, *, now_ts: float) -> int:
        """Delete open leases that expired before now_ts. Completed rows are kept."""
        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM assignments WHERE completed = 0 AND expires_at < ?",
                (float(now_ts),),
            )
            n = int(cur.rowcount or 0)
        if n:
            logger.debug("Purged %s stale assignments", n)
        return n

    def has_recent_assignment(self, task_id: int, worker_id: int, *, since_ts: float) -> bool:
        """True if the pair was assigned after since_ts (completed or not)."""
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT 1
                FROM assignments
                WHERE task_id = ?
                  AND worker_id = ?
                  AND assigned_at > ?
                LIMIT 1
                """,
                (int(task_id), int(worker_id), float(since_ts)),
            ).fetchone()
            return row is not None

    def insert_assignments(self, pending: Iterable[PendingAssignment]) -> int:
        """Bulk insert in one transaction. Returns the number of rows written."""
        rows = [
            (int(p.task_id), int(p.worker_id), float(p.assigned_at), float(p.expires_at))
            for p in pending
        ]
        if not rows:
            return 0

        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO assignments(task_id, worker_id, assigned_at, expires_at, completed)
                VALUES (?, ?, ?, ?, 0)
                """,
                rows,
            )
        return len(rows)

    # ---- completion API ----

    def complete_oldest_open(self, task_id: int, worker_id: int) -> bool:
        """
        Flip the oldest (task, worker, completed=0) row to completed=1.

        Single statement, so two racing submissions can never flip the same
        row twice; each flips at most one row. Returns True if a row flipped.
        """
        with self._connect() as conn:
            cur = conn.execute(
                """
                UPDATE assignments
                SET completed = 1
                WHERE completed = 0
                  AND id = (
                    SELECT id
                    FROM assignments
                    WHERE task_id = ?
                      AND worker_id = ?
                      AND completed = 0
                    ORDER BY assigned_at ASC, id ASC
                    LIMIT 1
                  )
                """,
                (int(task_id), int(worker_id)),
            )
            return cur.rowcount == 1

    # ---- generation guard ----

    def try_acquire_guard(self, holder_id: str, *, now_ts: float, ttl_seconds: float) -> bool:
        """
        Best-effort "generation in progress" lease.

        Takes the guard if nobody holds it or the current holder's lease has
        expired. Returns True if holder_id now owns it.
        """
        now = float(now_ts)
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO generation_guard(name, holder_id, acquired_at, expires_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(name) DO UPDATE
                SET holder_id = excluded.holder_id,
                    acquired_at = excluded.acquired_at,
                    expires_at = excluded.expires_at
                WHERE generation_guard.expires_at <= excluded.acquired_at
                """,
                (_GUARD_NAME, holder_id, now, now + max(0.0, float(ttl_seconds))),
            )
            return cur.rowcount == 1

    def release_guard(self, holder_id: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "DELETE FROM generation_guard WHERE name = ? AND holder_id = ?",
                (_GUARD_NAME, holder_id),
            )

    # ---- introspection ----

    def count_assignments(self) -> int:
        with self._connect() as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM assignments").fetchone()
            return int(n)

    def list_assignments(
        self, *, task_id: int | None = None, worker_id: int | None = None
    ) -> list[Assignment]:
        clauses: list[str] = []
        params: list[int] = []
        if task_id is not None:
            clauses.append("task_id = ?")
            params.append(int(task_id))
        if worker_id is not None:
            clauses.append("worker_id = ?")
            params.append(int(worker_id))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM assignments {where} ORDER BY assigned_at ASC, id ASC",
                params,
            ).fetchall()
            return [self._row_to_assignment(r) for r in rows]

    def stats(self, *, now_ts: float) -> AssignmentStats:
        now = float(now_ts)
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT
                    COUNT(*) AS total,
                    COALESCE(SUM(CASE WHEN completed = 0 AND expires_at > ? THEN 1 ELSE 0 END), 0) AS active,
                    COALESCE(SUM(CASE WHEN completed = 1 THEN 1 ELSE 0 END), 0) AS completed,
                    COALESCE(SUM(CASE WHEN completed = 0 AND expires_at < ? THEN 1 ELSE 0 END), 0) AS expired
                FROM assignments
                """,
                (now, now),
            ).fetchone()
        return AssignmentStats(
            total=int(row["total"]),
            active=int(row["active"]),
            completed=int(row["completed"]),
            expired=int(row["expired"]),
        )

    def list_open_for_worker(self, worker_id: int, *, now_ts: float) -> list[Assignment]:
        """Leases the worker may currently work on (not completed, not expired)."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT *
                FROM assignments
                WHERE worker_id = ?
                  AND completed = 0
                  AND expires_at > ?
                ORDER BY assigned_at ASC, id ASC
                """,
                (int(worker_id), float(now_ts)),
            ).fetchall()
            return [self._row_to_assignment(r) for r in rows]
