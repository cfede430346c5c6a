# src/pulsegrid/core/sqlite_base.py

from __future__ import annotations

import contextlib
import sqlite3
import time
from collections.abc import Iterator
from pathlib import Path

from ..core.ports import Clock
from ..errors import StoreError


class SQLiteStore:
    """
    Shared plumbing for the SQLite-backed stores.

    Thread-safety:
    - each operation opens its own SQLite connection (no shared cursors),
      so the scheduler thread and the console thread can use one store.

    Any sqlite3.Error escaping an operation is re-raised as StoreError.
    """

    def __init__(self, db_path: str | Path, *, clock: Clock | None = None) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._clock: Clock = clock or time.time
        with self._connect() as conn:
            self._create_schema(conn)

    def now(self) -> float:
        """Current time according to the store's clock."""
        return self._clock()

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")

    @contextlib.contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection; commit on success, roll back and wrap sqlite errors on failure."""
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise StoreError(f"cannot open {self._db_path}: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            with contextlib.suppress(Exception):
                conn.rollback()
            raise StoreError(f"{type(self).__name__}: {e}") from e
        finally:
            conn.close()

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        raise NotImplementedError
