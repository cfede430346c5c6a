# src/pulsegrid/directory/directory_store.py

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable
from pathlib import Path

from ..core.ports import Clock
from ..core.sqlite_base import SQLiteStore
from .directory_models import MonitoredTask, Worker, WorkerRole, is_eligible

logger = logging.getLogger(__name__)


class DirectoryStore(SQLiteStore):
    """
    SQLite task catalog and worker registry.

    Both are owned by collaborators outside the assignment core (sign-up,
    site registration). The core only reads them through list_all() and
    list_eligible(); the write helpers exist for the CLI and tests.
    """

    def __init__(self, db_path: str | Path = "pulsegrid.sqlite3", *, clock: Clock | None = None) -> None:
        super().__init__(db_path, clock=clock)
        try:
            tasks, workers = self.count_tasks(), self.count_workers()
        except Exception:
            tasks, workers = -1, -1
        logger.info("DirectoryStore ready db=%s tasks=%s workers=%s", self._db_path, tasks, workers)

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        cur = conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS tasks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                owner_id INTEGER NOT NULL,
                url TEXT NOT NULL,
                name TEXT,
                created_at REAL NOT NULL
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS workers (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT NOT NULL UNIQUE,
                role TEXT NOT NULL DEFAULT 'owner',
                identity TEXT,
                created_at REAL NOT NULL
            )
            """
        )
        cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_owner ON tasks(owner_id)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_workers_identity ON workers(identity)")

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> MonitoredTask:
        return MonitoredTask(
            id=int(row["id"]),
            owner_id=int(row["owner_id"]),
            created_at=float(row["created_at"] or 0.0),
            url=str(row["url"] or ""),
            name=row["name"],
        )

    @staticmethod
    def _row_to_worker(row: sqlite3.Row) -> Worker:
        return Worker(
            id=int(row["id"]),
            username=str(row["username"]),
            role=WorkerRole.from_db(row["role"]),
            identity=row["identity"],
            created_at=float(row["created_at"] or 0.0),
        )

    # ---- tasks ----

    def count_tasks(self) -> int:
        with self._connect() as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)

    def add_task(self, *, owner_id: int, url: str, name: str | None = None) -> int:
        if not url or not url.strip():
            raise ValueError("url is required")

        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO tasks(owner_id, url, name, created_at) VALUES (?, ?, ?, ?)",
                (int(owner_id), url.strip(), (name or "").strip() or None, self._clock()),
            )
            rowid = cur.lastrowid
        if rowid is None:
            raise RuntimeError("SQLite did not return lastrowid for tasks insert")
        logger.debug("Task added id=%s owner=%s url=%s", rowid, owner_id, url)
        return int(rowid)

    def list_all(self) -> list[MonitoredTask]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM tasks ORDER BY id ASC").fetchall()
            return [self._row_to_task(r) for r in rows]

    def get_task(self, task_id: int) -> MonitoredTask | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),)).fetchone()
            return self._row_to_task(row) if row else None

    def list_tasks_for_owner(self, owner_id: int) -> list[MonitoredTask]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM tasks WHERE owner_id = ? ORDER BY id ASC", (int(owner_id),)
            ).fetchall()
            return [self._row_to_task(r) for r in rows]

    # ---- workers ----

    def count_workers(self) -> int:
        with self._connect() as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM workers").fetchone()
            return int(n)

    def add_worker(
        self,
        *,
        username: str,
        role: WorkerRole = WorkerRole.OWNER,
        identity: str | None = None,
    ) -> int:
        if not username or not username.strip():
            raise ValueError("username is required")

        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO workers(username, role, identity, created_at) VALUES (?, ?, ?, ?)",
                (username.strip(), WorkerRole(role).value, (identity or "").strip() or None, self._clock()),
            )
            rowid = cur.lastrowid
        if rowid is None:
            raise RuntimeError("SQLite did not return lastrowid for workers insert")
        logger.debug("Worker added id=%s username=%s role=%s", rowid, username, role)
        return int(rowid)

    def set_identity(self, worker_id: int, identity: str | None) -> None:
        """Register (or clear) a worker's identity; for owners this is the opt-in."""
        with self._connect() as conn:
            conn.execute(
                "UPDATE workers SET identity = ? WHERE id = ?",
                ((identity or "").strip() or None, int(worker_id)),
            )

    def list_workers(self) -> list[Worker]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM workers ORDER BY created_at ASC, id ASC").fetchall()
            return [self._row_to_worker(r) for r in rows]

    def list_eligible(self, predicate: Callable[[Worker], bool] = is_eligible) -> list[Worker]:
        """Workers passing the predicate, in registry (creation) order."""
        return [w for w in self.list_workers() if predicate(w)]

    def get_worker(self, worker_id: int) -> Worker | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM workers WHERE id = ?", (int(worker_id),)).fetchone()
            return self._row_to_worker(row) if row else None

    def find_by_identity(self, identity: str) -> Worker | None:
        if not identity or not identity.strip():
            return None
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM workers WHERE identity = ? ORDER BY id ASC LIMIT 1",
                (identity.strip(),),
            ).fetchone()
            return self._row_to_worker(row) if row else None
