"""
Tests for the repositories and SqliteContentStore.

What we test
------------
TickerRepository (through the store):
  - upsert inserts, then updates priority / activity.
  - upsert keeps an existing last_article_at when the new row has none.
  - list_active returns selection order and excludes inactive tickers.

ArticleRepository (through the store):
  - insert assigns an id; get_article round-trips JSON columns
    (tickers, tags, snapshot, score, source news).
  - Duplicate slug raises PublishError and leaves one row.
  - list_recent_articles is newest first.

get_connection():
  - Creates parent directories and commits on clean exit.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import FIXED_NOW, make_snapshot
from newsroom.config import DatabaseConfig
from newsroom.db.connection import get_connection
from newsroom.db.store import SqliteContentStore
from newsroom.errors import PublishError
from newsroom.models.article import Article, Ticker
from newsroom.scoring.scorer import SignalScorer


def _article(slug: str = "aapl-2025-03-14-153000-abcdefgh", **overrides) -> Article:
    params = dict(
        slug=slug,
        title="AAPL jumps",
        excerpt="Apple rallied.",
        body_markdown="# AAPL jumps",
        tickers=["AAPL"],
        tags=["market-update"],
        model="fake-model",
        prompt_version="v1",
        published_at=FIXED_NOW,
    )
    params.update(overrides)
    return Article(**params)


class TestTickers:
    def test_upsert_then_update(self, store):
        store.upsert_ticker(Ticker(symbol="aapl", priority=1))
        store.upsert_ticker(Ticker(symbol="AAPL", priority=7, is_active=False))
        ticker = store.get_ticker("AAPL")
        assert ticker.priority == 7
        assert ticker.is_active is False
        assert len(store.list_tickers()) == 1

    def test_upsert_keeps_last_article_at(self, store):
        store.upsert_ticker(Ticker(symbol="AAPL", last_article_at=FIXED_NOW))
        store.upsert_ticker(Ticker(symbol="AAPL", priority=3))
        assert store.get_ticker("AAPL").last_article_at == FIXED_NOW

    def test_list_active_order(self, store):
        store.upsert_ticker(Ticker(symbol="OLD", last_article_at=FIXED_NOW - timedelta(days=2)))
        store.upsert_ticker(Ticker(symbol="NEW", last_article_at=FIXED_NOW))
        store.upsert_ticker(Ticker(symbol="NEVER"))
        store.upsert_ticker(Ticker(symbol="TOP", priority=10, last_article_at=FIXED_NOW))
        store.upsert_ticker(Ticker(symbol="OFF", priority=99, is_active=False))
        symbols = [t.symbol for t in store.list_active_tickers()]
        assert symbols == ["TOP", "NEVER", "OLD", "NEW"]

    def test_set_last_article_at_reports_missing(self, store):
        assert store.set_last_article_at("NOPE", FIXED_NOW) is False


class TestArticles:
    def test_insert_assigns_id(self, store):
        stored = store.insert_article(_article())
        assert stored.article_id is not None
        assert stored.slug == "aapl-2025-03-14-153000-abcdefgh"

    def test_round_trip_json_columns(self, store):
        snapshot = make_snapshot("AAPL", change_pct=3.0, headlines=("Record profit",))
        score = SignalScorer().score(snapshot)
        store.insert_article(
            _article(
                market_snapshot=snapshot,
                stock_score=score,
                source_news=[n.model_dump(mode="json") for n in snapshot.news],
            )
        )
        loaded = store.get_article("aapl-2025-03-14-153000-abcdefgh")
        assert loaded.tickers == ["AAPL"]
        assert loaded.tags == ["market-update"]
        assert loaded.published_at == FIXED_NOW
        assert loaded.market_snapshot.latest_bar.close == pytest.approx(103.0)
        assert loaded.market_snapshot.change_percent == pytest.approx(3.0)
        assert loaded.stock_score == score
        assert loaded.source_news[0]["headline"] == "Record profit"

    def test_missing_slug_returns_none(self, store):
        assert store.get_article("nope") is None

    def test_duplicate_slug_raises_publish_error(self, store, in_memory_db):
        store.insert_article(_article())
        with pytest.raises(PublishError, match="already exists"):
            store.insert_article(_article(title="Another"))
        count = in_memory_db.execute("SELECT COUNT(*) FROM articles;").fetchone()[0]
        assert count == 1

    def test_list_recent_newest_first(self, store):
        store.insert_article(_article("a", published_at=FIXED_NOW - timedelta(hours=2)))
        store.insert_article(_article("b", published_at=FIXED_NOW))
        store.insert_article(_article("c", published_at=FIXED_NOW - timedelta(hours=1)))
        assert [a.slug for a in store.list_recent_articles()] == ["b", "c", "a"]


class TestFileBackedStore:
    def test_from_config_creates_database(self, tmp_path):
        db_path = tmp_path / "nested" / "newsroom.db"
        store = SqliteContentStore.from_config(DatabaseConfig(db_path=str(db_path)))
        store.initialize()
        store.upsert_ticker(Ticker(symbol="AAPL"))

        assert db_path.exists()
        with get_connection(str(db_path)) as conn:
            row = conn.execute("SELECT symbol FROM tickers;").fetchone()
        assert row["symbol"] == "AAPL"
