"""
SQLite-backed ``ContentStore``.

Each operation runs in its own short transaction obtained from the
``connect`` factory, so the store is safe to share between the HTTP app's
worker threads (one connection per call).
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import AbstractContextManager
from datetime import datetime
from functools import partial
from typing import Callable, Optional

from newsroom.config import DatabaseConfig
from newsroom.db.connection import get_connection, shared_connection
from newsroom.db.repositories.article_repo import ArticleRepository
from newsroom.db.schema import apply_schema
from newsroom.db.repositories.ticker_repo import TickerRepository
from newsroom.errors import PublishError
from newsroom.models.article import Article, Ticker

logger = logging.getLogger(__name__)

ConnectionFactory = Callable[[], AbstractContextManager[sqlite3.Connection]]


class SqliteContentStore:
    """Tickers and articles persisted in SQLite.

    Args:
        connect: Zero-argument factory returning a connection context manager.
    """

    def __init__(self, connect: ConnectionFactory) -> None:
        self._connect = connect

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> "SqliteContentStore":
        return cls(
            partial(
                get_connection,
                config.db_path,
                wal_mode=config.wal_mode,
                busy_timeout_ms=config.busy_timeout_ms,
            )
        )

    @classmethod
    def from_connection(cls, conn: sqlite3.Connection) -> "SqliteContentStore":
        """Store over one long-lived connection (in-memory databases)."""
        return cls(partial(shared_connection, conn))

    # ── Tickers ───────────────────────────────────────────────────────────────

    def upsert_ticker(self, ticker: Ticker) -> None:
        with self._connect() as conn:
            TickerRepository(conn).upsert(ticker)

    def get_ticker(self, symbol: str) -> Optional[Ticker]:
        with self._connect() as conn:
            return TickerRepository(conn).get(symbol)

    def list_tickers(self) -> list[Ticker]:
        with self._connect() as conn:
            return TickerRepository(conn).list_all()

    def list_active_tickers(self) -> list[Ticker]:
        with self._connect() as conn:
            return TickerRepository(conn).list_active()

    def set_last_article_at(self, symbol: str, published_at: datetime) -> bool:
        with self._connect() as conn:
            return TickerRepository(conn).set_last_article_at(symbol, published_at)

    # ── Articles ──────────────────────────────────────────────────────────────

    def count_articles(
        self, start: datetime, end: datetime, is_breaking: bool = False
    ) -> int:
        with self._connect() as conn:
            return ArticleRepository(conn).count_published(start, end, is_breaking)

    def insert_article(self, article: Article) -> Article:
        """Persist ``article`` and return it with ``article_id`` assigned.

        Raises:
            PublishError: On duplicate slug or any SQLite failure.
        """
        try:
            with self._connect() as conn:
                article_id = ArticleRepository(conn).insert(article)
        except PublishError:
            raise
        except sqlite3.Error as exc:
            raise PublishError(f"Content store write failed: {exc}") from exc
        logger.debug("Inserted article %d (%s)", article_id, article.slug)
        return article.model_copy(update={"article_id": article_id})

    def get_article(self, slug: str) -> Optional[Article]:
        with self._connect() as conn:
            return ArticleRepository(conn).get_by_slug(slug)

    def list_recent_articles(self, limit: int = 20) -> list[Article]:
        with self._connect() as conn:
            return ArticleRepository(conn).list_recent(limit=limit)

    def initialize(self) -> None:
        """Create tables and indexes if missing."""
        with self._connect() as conn:
            apply_schema(conn)
