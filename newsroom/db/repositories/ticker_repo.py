"""
Repository for the ``tickers`` table.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Optional

from newsroom.db.repositories.base import BaseRepository
from newsroom.models.article import Ticker
from newsroom.utils.time_utils import parse_iso, to_iso

logger = logging.getLogger(__name__)


class TickerRepository(BaseRepository):
    """Read/write access to tracked tickers."""

    def upsert(self, ticker: Ticker) -> None:
        """Insert ``ticker`` or update its activity flag and priority.

        An existing ``last_article_at`` is kept unless ``ticker`` carries one.
        """
        self.execute(
            """
            INSERT INTO tickers (symbol, is_active, priority, last_article_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(symbol) DO UPDATE SET
                is_active = excluded.is_active,
                priority = excluded.priority,
                last_article_at = COALESCE(excluded.last_article_at, tickers.last_article_at);
            """,
            (
                ticker.symbol,
                int(ticker.is_active),
                ticker.priority,
                to_iso(ticker.last_article_at) if ticker.last_article_at else None,
            ),
        )

    def get(self, symbol: str) -> Optional[Ticker]:
        row = self.fetchone(
            "SELECT * FROM tickers WHERE symbol = ?;", (symbol.strip().upper(),)
        )
        return _row_to_ticker(row) if row else None

    def list_all(self) -> list[Ticker]:
        rows = self.fetchall("SELECT * FROM tickers ORDER BY symbol;")
        return [_row_to_ticker(r) for r in rows]

    def list_active(self) -> list[Ticker]:
        """Active tickers in selection order (priority, then staleness, then symbol)."""
        rows = self.fetchall(
            """
            SELECT * FROM tickers
            WHERE is_active = 1
            ORDER BY priority DESC,
                     last_article_at IS NOT NULL,
                     last_article_at ASC,
                     symbol ASC;
            """
        )
        return [_row_to_ticker(r) for r in rows]

    def set_last_article_at(self, symbol: str, published_at: datetime) -> bool:
        """Returns ``True`` if the ticker exists."""
        cursor = self.execute(
            "UPDATE tickers SET last_article_at = ? WHERE symbol = ?;",
            (to_iso(published_at), symbol.strip().upper()),
        )
        return cursor.rowcount > 0


def _row_to_ticker(row: sqlite3.Row) -> Ticker:
    return Ticker(
        symbol=row["symbol"],
        is_active=bool(row["is_active"]),
        priority=row["priority"],
        last_article_at=parse_iso(row["last_article_at"]) if row["last_article_at"] else None,
    )
