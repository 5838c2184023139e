"""
SQLite connection management for the content store.

``get_connection()`` opens a configured connection per unit of work:
  - WAL journal mode so the HTTP app can read while a pipeline writes.
  - A busy timeout to ride out short lock contention.
  - ``sqlite3.Row`` rows (dict-like access in repositories).
  - Commit on clean exit, rollback on exception.

``shared_connection()`` wraps an already-open connection in the same
commit/rollback contract without closing it; tests use it to run the store
against a single in-memory database.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

logger = logging.getLogger(__name__)


@contextmanager
def get_connection(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
) -> Generator[sqlite3.Connection, None, None]:
    """Context manager yielding a configured SQLite connection.

    Args:
        db_path: Database file path, or ``":memory:"``.  Parent directories
            are created as needed.
        wal_mode: Enable WAL journal mode.
        busy_timeout_ms: Lock wait before ``OperationalError``.

    Yields:
        An open ``sqlite3.Connection``; closed on exit.
    """
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=busy_timeout_ms / 1000)
    conn.row_factory = sqlite3.Row

    try:
        conn.execute(f"PRAGMA busy_timeout = {busy_timeout_ms};")
        if wal_mode and db_path != ":memory:":
            conn.execute("PRAGMA journal_mode = WAL;")

        yield conn
        conn.commit()

    except Exception:
        conn.rollback()
        raise

    finally:
        conn.close()


@contextmanager
def shared_connection(
    conn: sqlite3.Connection,
) -> Generator[sqlite3.Connection, None, None]:
    """Yield ``conn`` with commit/rollback semantics but leave it open."""
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
