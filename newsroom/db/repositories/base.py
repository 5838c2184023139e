"""
Base repository: shared SQL helpers and JSON column codecs.

Repositories receive an open ``sqlite3.Connection`` and never commit; the
caller's ``get_connection()`` / ``shared_connection()`` block owns the
transaction.  All SQL is explicit and repositories speak pydantic models.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any, Optional

logger = logging.getLogger(__name__)


class BaseRepository:
    """Shared execution helpers.

    Attributes:
        conn: The active ``sqlite3.Connection``.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def execute(
        self,
        sql: str,
        params: tuple[Any, ...] | dict[str, Any] = (),
    ) -> sqlite3.Cursor:
        logger.debug("SQL: %s", " ".join(sql.split()))
        return self.conn.execute(sql, params)

    def fetchone(
        self,
        sql: str,
        params: tuple[Any, ...] | dict[str, Any] = (),
    ) -> Optional[sqlite3.Row]:
        return self.execute(sql, params).fetchone()

    def fetchall(
        self,
        sql: str,
        params: tuple[Any, ...] | dict[str, Any] = (),
    ) -> list[sqlite3.Row]:
        return self.execute(sql, params).fetchall()


def dump_json(value: Any) -> Optional[str]:
    """Serialise a JSON column value; ``None`` stays SQL NULL."""
    if value is None:
        return None
    return json.dumps(value, separators=(",", ":"), sort_keys=True)


def load_json(raw: Optional[str], default: Any = None) -> Any:
    if raw is None or raw == "":
        return default
    return json.loads(raw)
