"""
Tests for newsroom/scheduling/ticker_scheduler.py.

What we test
------------
pick_next():
  - Highest priority wins.
  - Within a priority, never-covered tickers come first, then the stalest.
  - Symbol breaks exact ties, so the pick is deterministic.
  - Inactive tickers are never picked; ``None`` when nothing is active.

record_published():
  - Moves ``last_article_at``; repeating the call changes nothing.
  - Unknown symbols are ignored.

daily_routine_count():
  - Counts published non-breaking articles in [00:00, next 00:00) UTC.
  - Excludes breaking articles, drafts and other days.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from conftest import FIXED_NOW
from newsroom.models.article import Article, Ticker
from newsroom.scheduling.ticker_scheduler import TickerScheduler, selection_key


def _ts(hours_ago: float) -> datetime:
    return FIXED_NOW - timedelta(hours=hours_ago)


def _article(slug: str, published_at: datetime, is_breaking: bool = False, status: str = "published") -> Article:
    return Article(
        slug=slug,
        title=slug,
        body_markdown="body",
        tickers=["AAPL"],
        is_breaking=is_breaking,
        status=status,
        published_at=published_at,
    )


class TestPickNext:
    def test_none_when_no_tickers(self, store):
        assert TickerScheduler(store).pick_next() is None

    def test_none_when_all_inactive(self, store):
        store.upsert_ticker(Ticker(symbol="AAPL", is_active=False))
        assert TickerScheduler(store).pick_next() is None

    def test_priority_wins(self, store):
        store.upsert_ticker(Ticker(symbol="AAPL", priority=0))
        store.upsert_ticker(Ticker(symbol="MSFT", priority=5, last_article_at=_ts(1)))
        assert TickerScheduler(store).pick_next().symbol == "MSFT"

    def test_never_covered_before_covered(self, store):
        store.upsert_ticker(Ticker(symbol="AAPL", priority=1, last_article_at=_ts(100)))
        store.upsert_ticker(Ticker(symbol="ZM", priority=1))
        assert TickerScheduler(store).pick_next().symbol == "ZM"

    def test_stalest_first(self, store):
        store.upsert_ticker(Ticker(symbol="AAPL", last_article_at=_ts(1)))
        store.upsert_ticker(Ticker(symbol="MSFT", last_article_at=_ts(5)))
        store.upsert_ticker(Ticker(symbol="TSLA", last_article_at=_ts(3)))
        assert TickerScheduler(store).pick_next().symbol == "MSFT"

    def test_symbol_breaks_ties(self, store):
        for symbol in ("TSLA", "AAPL", "MSFT"):
            store.upsert_ticker(Ticker(symbol=symbol))
        scheduler = TickerScheduler(store)
        assert [scheduler.pick_next().symbol for _ in range(3)] == ["AAPL"] * 3

    def test_inactive_skipped(self, store):
        store.upsert_ticker(Ticker(symbol="AAPL", priority=9, is_active=False))
        store.upsert_ticker(Ticker(symbol="MSFT"))
        assert TickerScheduler(store).pick_next().symbol == "MSFT"

    def test_rotation_after_publish(self, store):
        store.upsert_ticker(Ticker(symbol="AAPL"))
        store.upsert_ticker(Ticker(symbol="MSFT"))
        scheduler = TickerScheduler(store)
        scheduler.record_published("AAPL", FIXED_NOW)
        assert scheduler.pick_next().symbol == "MSFT"
        scheduler.record_published("MSFT", FIXED_NOW + timedelta(minutes=10))
        assert scheduler.pick_next().symbol == "AAPL"


class TestSelectionKey:
    def test_matches_documented_order(self):
        tickers = [
            Ticker(symbol="C", priority=0),
            Ticker(symbol="B", priority=2, last_article_at=_ts(1)),
            Ticker(symbol="A", priority=2, last_article_at=_ts(2)),
            Ticker(symbol="D", priority=2),
        ]
        assert [t.symbol for t in sorted(tickers, key=selection_key)] == ["D", "A", "B", "C"]


class TestRecordPublished:
    def test_sets_last_article_at(self, store):
        store.upsert_ticker(Ticker(symbol="AAPL"))
        TickerScheduler(store).record_published("aapl", FIXED_NOW)
        assert store.get_ticker("AAPL").last_article_at == FIXED_NOW

    def test_idempotent(self, store):
        store.upsert_ticker(Ticker(symbol="AAPL"))
        scheduler = TickerScheduler(store)
        scheduler.record_published("AAPL", FIXED_NOW)
        first = store.get_ticker("AAPL")
        scheduler.record_published("AAPL", FIXED_NOW)
        assert store.get_ticker("AAPL") == first

    def test_unknown_symbol_is_ignored(self, store):
        TickerScheduler(store).record_published("NOPE", FIXED_NOW)
        assert store.get_ticker("NOPE") is None


class TestDailyRoutineCount:
    def test_window_bounds(self, store):
        count = TickerScheduler(store).daily_routine_count(FIXED_NOW)
        assert count.count == 0
        assert count.window_start == datetime(2025, 3, 14, tzinfo=timezone.utc)
        assert count.window_end == datetime(2025, 3, 15, tzinfo=timezone.utc)

    def test_counts_only_todays_published_routine(self, store):
        midnight = datetime(2025, 3, 14, tzinfo=timezone.utc)
        store.insert_article(_article("at-midnight", midnight))
        store.insert_article(_article("last-ms", midnight + timedelta(days=1, milliseconds=-1)))
        store.insert_article(_article("midday", FIXED_NOW))
        store.insert_article(_article("yesterday", midnight - timedelta(seconds=1)))
        store.insert_article(_article("tomorrow", midnight + timedelta(days=1)))
        store.insert_article(_article("breaking", FIXED_NOW, is_breaking=True))
        store.insert_article(_article("draft", FIXED_NOW, status="draft"))

        assert TickerScheduler(store).daily_routine_count(FIXED_NOW).count == 3

    def test_non_utc_now_uses_utc_day(self, store):
        store.insert_article(_article("late", datetime(2025, 3, 14, 23, 0, tzinfo=timezone.utc)))
        # 2025-03-15 01:00 at UTC+3 is still 2025-03-14 in UTC.
        local = datetime(2025, 3, 15, 1, 0, tzinfo=timezone(timedelta(hours=3)))
        assert TickerScheduler(store).daily_routine_count(local).count == 1
