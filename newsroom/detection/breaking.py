"""
Breaking-event detection over a watchlist of symbols.

Rules (evaluated in order, first match wins, at most one event per symbol)
--------------------------------------------------------------------------
  1. Large move  : |change%| >= 5
                   severity high if >= 10, medium if >= 7, else low
  2. Volume spike: volume / baseline >= 3 AND |change%| >= 2
                   severity high if ratio >= 5, else medium

A symbol without a latest bar never qualifies.  ``baseline_volume`` is a
fixed placeholder (default 1,000,000); no historical average is computed.
Callers that have real per-symbol averages can pass their own.

Output is sorted by ``severity.weight * |price_change|`` descending, then by
symbol, so the concurrency of the fetch fan-out never affects ordering.
"""

from __future__ import annotations

import contextvars
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional, Protocol

from newsroom.errors import PipelineCancelled
from newsroom.models.events import BreakingNewsEvent
from newsroom.models.market import MarketSnapshot
from newsroom.taxonomy.signal_taxonomy import Severity

logger = logging.getLogger(__name__)

DEFAULT_BASELINE_VOLUME = 1_000_000

LARGE_MOVE_PCT = 5.0
MEDIUM_MOVE_PCT = 7.0
HIGH_MOVE_PCT = 10.0

VOLUME_SPIKE_RATIO = 3.0
HIGH_VOLUME_RATIO = 5.0
VOLUME_SPIKE_MIN_MOVE_PCT = 2.0


class MarketDataSource(Protocol):
    """Anything that can assemble a snapshot for a symbol."""

    def fetch_snapshot(self, symbol: str) -> MarketSnapshot: ...


def evaluate_snapshot(
    snapshot: MarketSnapshot,
    baseline_volume: float = DEFAULT_BASELINE_VOLUME,
) -> Optional[BreakingNewsEvent]:
    """Apply the detection rules to one snapshot.

    Returns:
        A ``BreakingNewsEvent`` or ``None`` when no rule matches.
    """
    bar = snapshot.latest_bar
    if bar is None:
        return None

    change_pct = snapshot.change_percent or 0.0
    magnitude = abs(change_pct)

    if magnitude >= LARGE_MOVE_PCT:
        if magnitude >= HIGH_MOVE_PCT:
            severity = Severity.HIGH
        elif magnitude >= MEDIUM_MOVE_PCT:
            severity = Severity.MEDIUM
        else:
            severity = Severity.LOW
        verb = "Surged" if change_pct >= 0 else "Plunged"
        return BreakingNewsEvent(
            symbol=snapshot.symbol,
            reason=f"{verb} {magnitude:.2f}% in recent trading",
            severity=severity,
            price_change=change_pct,
            market_data=snapshot,
        )

    volume_ratio = bar.volume / baseline_volume
    if volume_ratio >= VOLUME_SPIKE_RATIO and magnitude >= VOLUME_SPIKE_MIN_MOVE_PCT:
        return BreakingNewsEvent(
            symbol=snapshot.symbol,
            reason=(
                f"Unusual volume detected ({volume_ratio:.1f}x average) "
                f"with {magnitude:.2f}% price movement"
            ),
            severity=Severity.HIGH if volume_ratio >= HIGH_VOLUME_RATIO else Severity.MEDIUM,
            price_change=change_pct,
            volume_change=volume_ratio,
            market_data=snapshot,
        )

    return None


def rank_events(events: list[BreakingNewsEvent]) -> list[BreakingNewsEvent]:
    """Sort by ``rank_weight`` descending; ties broken by symbol."""
    return sorted(events, key=lambda e: (-e.rank_weight, e.symbol))


class BreakingEventDetector:
    """Fetches snapshots for a watchlist and emits ranked breaking events.

    Args:
        market_data: Snapshot source (``AlpacaMarketDataClient`` in production).
        baseline_volume: Volume treated as "average" by the spike rule.
        max_workers: Upper bound on concurrent snapshot fetches.
    """

    def __init__(
        self,
        market_data: MarketDataSource,
        baseline_volume: float = DEFAULT_BASELINE_VOLUME,
        max_workers: int = 5,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}.")
        self.market_data = market_data
        self.baseline_volume = baseline_volume
        self.max_workers = max_workers

    def detect(
        self,
        symbols: list[str],
        cancel_event: Optional[threading.Event] = None,
    ) -> list[BreakingNewsEvent]:
        """Scan ``symbols`` and return qualifying events, highest rank first.

        A symbol whose snapshot cannot be fetched is logged and skipped.

        Raises:
            PipelineCancelled: If ``cancel_event`` is set while scanning.
        """
        # Duplicates in the watchlist must not yield duplicate events.
        unique = list(dict.fromkeys(s.strip().upper() for s in symbols if s.strip()))
        if not unique:
            return []

        events: list[BreakingNewsEvent] = []
        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(unique)),
            thread_name_prefix="detect",
        )
        try:
            # Each task runs in a copy of the caller's context so worker log
            # records keep the pipeline run tags.
            futures = {
                executor.submit(contextvars.copy_context().run, self._scan_symbol, s): s
                for s in unique
            }
            for future in as_completed(futures):
                if cancel_event is not None and cancel_event.is_set():
                    raise PipelineCancelled("Breaking detection cancelled")
                symbol = futures[future]
                try:
                    event = future.result()
                except Exception as exc:
                    logger.warning("Skipping %s: snapshot fetch failed: %s", symbol, exc)
                    continue
                if event is not None:
                    events.append(event)
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

        ranked = rank_events(events)
        logger.info(
            "Breaking detection | scanned=%d | detected=%d", len(unique), len(ranked)
        )
        return ranked

    def _scan_symbol(self, symbol: str) -> Optional[BreakingNewsEvent]:
        snapshot = self.market_data.fetch_snapshot(symbol)
        return evaluate_snapshot(snapshot, baseline_volume=self.baseline_volume)


# ── Templated copy ────────────────────────────────────────────────────────────


def build_breaking_title(event: BreakingNewsEvent) -> str:
    if event.price_change >= LARGE_MOVE_PCT:
        return f"{event.symbol} Soars {event.price_change:.2f}% on Heavy Trading"
    if event.price_change <= -LARGE_MOVE_PCT:
        return (
            f"{event.symbol} Plunges {abs(event.price_change):.2f}% "
            "Amid Market Volatility"
        )
    return f"{event.symbol} Shows Unusual Activity: {event.reason}"


def build_breaking_excerpt(event: BreakingNewsEvent) -> str:
    if event.severity == Severity.HIGH:
        return (
            f"Breaking: {event.symbol} experiences significant movement with "
            f"{abs(event.price_change):.2f}% change. {event.reason}."
        )
    return f"{event.symbol} shows notable trading activity. {event.reason}."
