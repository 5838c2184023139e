"""
Routine-coverage scheduling: which ticker next, and how many so far today.

Selection order (``pick_next``)
-------------------------------
    1. priority          descending
    2. last_article_at   ascending, never-covered (NULL) first
    3. symbol            ascending (final deterministic tiebreak)

Only active tickers are eligible.  The daily quota itself is enforced by the
routine pipeline; this component only reports the count for the current UTC
day window ``[00:00, next 00:00)``.

All state lives behind the ``ContentStore`` protocol, so tests can run the
scheduler against an in-memory SQLite store or a plain fake.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from newsroom.models.article import Article, Ticker
from newsroom.utils.time_utils import ensure_utc, utc_day_window

logger = logging.getLogger(__name__)


class ContentStore(Protocol):
    """Persistence boundary for tickers and published articles."""

    def list_active_tickers(self) -> list[Ticker]: ...

    def set_last_article_at(self, symbol: str, published_at: datetime) -> bool: ...

    def count_articles(
        self, start: datetime, end: datetime, is_breaking: bool = False
    ) -> int: ...

    def insert_article(self, article: Article) -> Article: ...


@dataclass(frozen=True)
class DailyCount:
    """Routine articles published in one UTC day window.

    Attributes:
        count:        Published non-breaking articles in the window.
        window_start: Inclusive window start (UTC midnight).
        window_end:   Exclusive window end (next UTC midnight).
    """

    count: int
    window_start: datetime
    window_end: datetime


def selection_key(ticker: Ticker) -> tuple:
    """Sort key implementing the routine selection order."""
    never_covered = ticker.last_article_at is None
    last = ensure_utc(ticker.last_article_at) if ticker.last_article_at else None
    return (
        -ticker.priority,
        0 if never_covered else 1,
        last.timestamp() if last else 0.0,
        ticker.symbol,
    )


class TickerScheduler:
    """Chooses the next ticker for routine coverage.

    Args:
        store: Content store holding tickers and articles.
    """

    def __init__(self, store: ContentStore) -> None:
        self.store = store

    def pick_next(self) -> Optional[Ticker]:
        candidates = [t for t in self.store.list_active_tickers() if t.is_active]
        if not candidates:
            return None
        return min(candidates, key=selection_key)

    def record_published(self, symbol: str, published_at: datetime) -> None:
        """Set ``last_article_at`` for ``symbol``.

        Idempotent: a repeat call with the same timestamp changes nothing.
        Unknown symbols are logged and ignored.
        """
        updated = self.store.set_last_article_at(
            symbol.strip().upper(), ensure_utc(published_at)
        )
        if not updated:
            logger.debug("record_published: ticker %s is not tracked", symbol)

    def daily_routine_count(self, now: datetime) -> DailyCount:
        window_start, window_end = utc_day_window(now)
        count = self.store.count_articles(window_start, window_end, is_breaking=False)
        return DailyCount(count=count, window_start=window_start, window_end=window_end)
