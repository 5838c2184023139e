"""
Stock scoring: converts a ``MarketSnapshot`` into a buy / hold / sell rating.

Score formula (weighted vote, range -100..100)
----------------------------------------------
    score = round( sum(sign(signal_i) * weight_i) / sum(weight_i) * 100 )

    where sign = +1 bullish, 0 neutral, -1 bearish and the five weights are
    momentum 25, volume 20, sentiment 25, range 15, trend 15 (total 100).

Rating (first match wins)
-------------------------
    1. BUY  : score >=  30
    2. SELL : score <= -30
    3. HOLD : everything else

Confidence
----------
    HIGH   : >= 4 signals share a non-neutral direction
    MEDIUM : >= 3 signals share a non-neutral direction
    LOW    : otherwise

Everything here is a pure function of its input.  The summary string is
presentation only; markdown rendering for articles lives in
``newsroom.scoring.formatting``.
"""

from __future__ import annotations

from typing import Sequence

from newsroom.models.market import MarketSnapshot
from newsroom.models.scoring import SignalResult, StockScore
from newsroom.scoring.signals import (
    DEFAULT_HIGH_VOLUME,
    analyze_momentum,
    analyze_news_sentiment,
    analyze_price_range,
    analyze_trend,
    analyze_volume,
)
from newsroom.taxonomy.signal_taxonomy import Confidence, Rating, SignalDirection

BUY_THRESHOLD = 30
SELL_THRESHOLD = -30


class SignalScorer:
    """Computes a ``StockScore`` from a snapshot.

    Args:
        high_volume: Volume threshold used by the volume indicator.
    """

    def __init__(self, high_volume: float = DEFAULT_HIGH_VOLUME) -> None:
        self.high_volume = high_volume

    def score(self, snapshot: MarketSnapshot) -> StockScore:
        signals = (
            analyze_momentum(snapshot),
            analyze_volume(snapshot, high_volume=self.high_volume),
            analyze_news_sentiment(snapshot),
            analyze_price_range(snapshot),
            analyze_trend(snapshot),
        )
        value = aggregate_score(signals)
        overall = determine_rating(value)
        confidence = determine_confidence(signals)
        return StockScore(
            overall=overall,
            score=value,
            confidence=confidence,
            signals=signals,
            summary=build_summary(overall, value, confidence, signals),
        )


def aggregate_score(signals: Sequence[SignalResult]) -> int:
    """Weighted vote of ``signals`` scaled to [-100, 100] and rounded.

    Rounds half away from zero so that +x and -x stay symmetric.
    """
    total_weight = sum(s.weight for s in signals)
    if total_weight <= 0:
        return 0
    weighted = sum(s.signal.value_sign * s.weight for s in signals)
    scaled = weighted / total_weight * 100
    magnitude = int(abs(scaled) + 0.5)
    return magnitude if scaled >= 0 else -magnitude


def determine_rating(score: int) -> Rating:
    if score >= BUY_THRESHOLD:
        return Rating.BUY
    if score <= SELL_THRESHOLD:
        return Rating.SELL
    return Rating.HOLD


def determine_confidence(signals: Sequence[SignalResult]) -> Confidence:
    bullish = sum(1 for s in signals if s.signal == SignalDirection.BULLISH)
    bearish = sum(1 for s in signals if s.signal == SignalDirection.BEARISH)
    agreeing = max(bullish, bearish)
    if agreeing >= 4:
        return Confidence.HIGH
    if agreeing >= 3:
        return Confidence.MEDIUM
    return Confidence.LOW


def build_summary(
    overall: Rating,
    score: int,
    confidence: Confidence,
    signals: Sequence[SignalResult],
) -> str:
    """Assemble a summary naming the signals that drove the rating.

    Returns strings such as::

        "**Buy Signal** (Score: +60) - Moderately bullish with some supporting
        signals. Positive factors: Price Momentum, Volume Analysis, Trend Analysis."
    """
    bullish = [s.name for s in signals if s.signal == SignalDirection.BULLISH]
    bearish = [s.name for s in signals if s.signal == SignalDirection.BEARISH]

    if overall == Rating.BUY:
        lean = {
            Confidence.HIGH: "Strong bullish indicators across multiple metrics.",
            Confidence.MEDIUM: "Moderately bullish with some supporting signals.",
            Confidence.LOW: "Slight bullish lean but signals are mixed.",
        }[confidence]
        summary = f"**Buy Signal** (Score: +{score}) - {lean}"
        if bullish:
            summary += f" Positive factors: {', '.join(bullish)}."
        return summary

    if overall == Rating.SELL:
        lean = {
            Confidence.HIGH: "Strong bearish indicators across multiple metrics.",
            Confidence.MEDIUM: "Moderately bearish with concerning signals.",
            Confidence.LOW: "Slight bearish lean but signals are mixed.",
        }[confidence]
        summary = f"**Sell Signal** (Score: {score}) - {lean}"
        if bearish:
            summary += f" Negative factors: {', '.join(bearish)}."
        return summary

    summary = (
        f"**Hold Signal** (Score: {score}) - "
        "Mixed signals suggest waiting for clearer direction."
    )
    if bullish and bearish:
        summary += f" Bullish: {', '.join(bullish)}. Bearish: {', '.join(bearish)}."
    return summary
