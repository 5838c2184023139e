"""
Content store DDL.

Every statement uses ``IF NOT EXISTS`` so ``apply_schema()`` is idempotent.

Tables:
  1. tickers   symbols tracked for routine coverage
  2. articles  published articles (JSON columns for lists and snapshots)

Timestamps are ISO-8601 UTC strings written by ``time_utils.to_iso`` so that
lexical comparison in SQL equals time comparison.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

_DDL_TICKERS = """
CREATE TABLE IF NOT EXISTS tickers (
    symbol           TEXT    PRIMARY KEY,
    is_active        INTEGER NOT NULL DEFAULT 1,
    priority         INTEGER NOT NULL DEFAULT 0,
    last_article_at  TEXT,
    created_at       TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_TICKERS_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_tickers_selection
    ON tickers(is_active, priority DESC, last_article_at);
"""

_DDL_ARTICLES = """
CREATE TABLE IF NOT EXISTS articles (
    article_id       INTEGER PRIMARY KEY AUTOINCREMENT,
    slug             TEXT    NOT NULL UNIQUE,
    title            TEXT    NOT NULL,
    excerpt          TEXT,
    body_markdown    TEXT    NOT NULL,
    tickers          TEXT    NOT NULL DEFAULT '[]',
    tags             TEXT    NOT NULL DEFAULT '[]',
    is_breaking      INTEGER NOT NULL DEFAULT 0,
    status           TEXT    NOT NULL DEFAULT 'published',
    model            TEXT,
    prompt_version   TEXT,
    market_snapshot  TEXT,
    source_news      TEXT,
    stock_score      TEXT,
    published_at     TEXT    NOT NULL,
    created_at       TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_ARTICLES_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_articles_breaking_published
    ON articles(is_breaking, published_at);
"""

_ALL_DDL: list[str] = [
    _DDL_TICKERS,
    _DDL_TICKERS_INDEXES,
    _DDL_ARTICLES,
    _DDL_ARTICLES_INDEXES,
]

ALL_TABLE_NAMES = ["tickers", "articles"]


def apply_schema(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes on ``conn`` (idempotent)."""
    for ddl in _ALL_DDL:
        for statement in (s.strip() for s in ddl.split(";")):
            if statement:
                conn.execute(statement)
    conn.commit()
    logger.info("Schema applied: %d tables.", len(ALL_TABLE_NAMES))


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;"
    ).fetchall()
    return [row[0] for row in rows]


def get_existing_indexes(conn: sqlite3.Connection) -> list[str]:
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='index' ORDER BY name;"
    ).fetchall()
    return [row[0] for row in rows]
