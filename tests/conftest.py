"""
Shared pytest fixtures for the Market Newsroom test suite.

Provides:
  - ``in_memory_db``: A fresh in-memory SQLite connection with the schema
    applied. Created anew for each test that requests it.
  - ``store``: A ``SqliteContentStore`` over ``in_memory_db``.
  - Snapshot / bar factories and fake collaborators (market data,
    generator, world news source, cache invalidator) for pipeline tests.
"""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timezone
from typing import Generator, Optional

import pytest

from newsroom.config import AppConfig, PipelineConfig
from newsroom.db.schema import apply_schema
from newsroom.db.store import SqliteContentStore
from newsroom.errors import GenerationError, UpstreamFetchError
from newsroom.models.article import GeneratedContent
from newsroom.models.market import MarketSnapshot, PriceBar, TickerNews, WorldNewsArticle
from newsroom.pipeline.base import PipelineDeps

FIXED_NOW = datetime(2025, 3, 14, 15, 30, 0, tzinfo=timezone.utc)


# ── Factories ─────────────────────────────────────────────────────────────────

def make_bar(
    close: float = 100.0,
    open_: Optional[float] = None,
    high: Optional[float] = None,
    low: Optional[float] = None,
    volume: float = 500_000,
) -> PriceBar:
    open_ = close if open_ is None else open_
    return PriceBar(
        timestamp=FIXED_NOW,
        open=open_,
        high=max(open_, close) if high is None else high,
        low=min(open_, close) if low is None else low,
        close=close,
        volume=volume,
    )


def make_snapshot(
    symbol: str = "AAPL",
    change_pct: Optional[float] = None,
    volume: float = 500_000,
    previous_close: float = 100.0,
    bar: Optional[PriceBar] = None,
    headlines: tuple[str, ...] = (),
) -> MarketSnapshot:
    """Snapshot whose close sits ``change_pct`` percent from ``previous_close``.

    With ``change_pct=None`` and no ``bar`` the snapshot has no price data.
    """
    if bar is None and change_pct is not None:
        close = previous_close * (1 + change_pct / 100)
        bar = make_bar(close=close, open_=previous_close, volume=volume)
    return MarketSnapshot(
        symbol=symbol,
        latest_bar=bar,
        previous_close=previous_close if bar is not None else None,
        news=[TickerNews(headline=h) for h in headlines],
        fetched_at=FIXED_NOW,
    )


# ── Fakes ─────────────────────────────────────────────────────────────────────

class FakeMarketData:
    """Serves canned snapshots; symbols in ``failing`` raise ``UpstreamFetchError``."""

    def __init__(
        self,
        snapshots: Optional[dict[str, MarketSnapshot]] = None,
        failing: tuple[str, ...] = (),
    ) -> None:
        self.snapshots = snapshots or {}
        self.failing = set(failing)
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def fetch_snapshot(self, symbol: str) -> MarketSnapshot:
        with self._lock:
            self.calls.append(symbol)
        if symbol in self.failing:
            raise UpstreamFetchError(f"boom for {symbol}", provider="fake")
        return self.snapshots.get(symbol) or make_snapshot(symbol=symbol)


class FakeGenerator:
    """Deterministic ``ContentGenerator``; ``fail=True`` raises ``GenerationError``."""

    model = "fake-model"

    def __init__(self, fail: bool = False, fail_symbols: tuple[str, ...] = ()) -> None:
        self.fail = fail
        self.fail_symbols = set(fail_symbols)
        self.calls: list[tuple] = []

    def generate_stock_article(
        self, symbol: str, snapshot: MarketSnapshot, is_breaking: bool = False
    ) -> GeneratedContent:
        self.calls.append(("stock", symbol, is_breaking))
        if self.fail or symbol in self.fail_symbols:
            raise GenerationError("model unavailable")
        return GeneratedContent(
            title=f"{symbol} moves",
            excerpt=f"What happened to {symbol}.",
            body_markdown=f"Body about {symbol}.",
            model=self.model,
            prompt_version="v1",
        )

    def generate_world_news_article(
        self, news_items: list[WorldNewsArticle]
    ) -> GeneratedContent:
        self.calls.append(("world", len(news_items)))
        if self.fail:
            raise GenerationError("model unavailable")
        return GeneratedContent(
            title="World briefing",
            excerpt="Headlines.",
            body_markdown="\n".join(i.title for i in news_items),
            tags=["world-news"],
            model=self.model,
            prompt_version="v1",
        )

    def generate_macro_article(self, topic: str) -> GeneratedContent:
        self.calls.append(("macro", topic))
        if self.fail:
            raise GenerationError("model unavailable")
        return GeneratedContent(
            title=f"Macro: {topic}",
            excerpt="Macro.",
            body_markdown=f"About {topic}.",
            tags=["macro", topic],
            model=self.model,
            prompt_version="v1",
        )


class FakeNewsSource:
    """World news source with per-category canned headlines."""

    def __init__(
        self,
        by_category: Optional[dict[str, list[str]]] = None,
        breaking: Optional[list[str]] = None,
        failing: tuple[str, ...] = (),
    ) -> None:
        self.by_category = by_category or {}
        self.breaking = breaking or []
        self.failing = set(failing)

    def fetch_top_headlines(
        self, category: str, page_size: Optional[int] = None
    ) -> list[WorldNewsArticle]:
        if category in self.failing:
            raise UpstreamFetchError(f"{category} down", provider="fake")
        return [WorldNewsArticle(title=t) for t in self.by_category.get(category, [])]

    def fetch_breaking(self) -> list[WorldNewsArticle]:
        if "breaking" in self.failing:
            raise UpstreamFetchError("breaking down", provider="fake")
        return [WorldNewsArticle(title=t) for t in self.breaking]


class CancellingGenerator(FakeGenerator):
    """Sets ``cancel_event`` while writing the article for ``cancel_on``."""

    def __init__(self, cancel_event: threading.Event, cancel_on: str) -> None:
        super().__init__()
        self.cancel_event = cancel_event
        self.cancel_on = cancel_on

    def generate_stock_article(
        self, symbol: str, snapshot: MarketSnapshot, is_breaking: bool = False
    ) -> GeneratedContent:
        content = super().generate_stock_article(symbol, snapshot, is_breaking)
        if symbol == self.cancel_on:
            self.cancel_event.set()
        return content


class RecordingInvalidator:
    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    def invalidate(self, paths: list[str]) -> None:
        self.calls.append(list(paths))


# ── Database fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with the schema applied.

    ``check_same_thread`` is off because the HTTP tests run handlers in a
    worker thread. Connection is closed after the test.
    """
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    conn.row_factory = sqlite3.Row
    apply_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def store(in_memory_db: sqlite3.Connection) -> SqliteContentStore:
    return SqliteContentStore.from_connection(in_memory_db)


# ── Pipeline fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def app_config() -> AppConfig:
    """Default config with a small cap and a short watchlist."""
    return AppConfig(
        pipeline=PipelineConfig(
            daily_routine_cap=13,
            breaking_watchlist=["AAPL", "MSFT", "TSLA", "NVDA"],
            detection_workers=2,
        )
    )


@pytest.fixture
def invalidator() -> RecordingInvalidator:
    return RecordingInvalidator()


@pytest.fixture
def make_deps(app_config, store, invalidator):
    """Factory for ``PipelineDeps`` over the in-memory store and a fixed clock."""

    def _make(**overrides) -> PipelineDeps:
        params = dict(
            config=app_config,
            store=store,
            market_data=FakeMarketData(),
            generator=FakeGenerator(),
            news_source=FakeNewsSource(),
            invalidator=invalidator,
            clock=lambda: FIXED_NOW,
        )
        params.update(overrides)
        return PipelineDeps(**params)

    return _make
