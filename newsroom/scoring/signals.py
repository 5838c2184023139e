"""
The five indicator analyzers behind ``SignalScorer``.

Each analyzer is a pure function of a ``MarketSnapshot`` and returns one
``SignalResult`` with a fixed weight:

    Price Momentum   25   change_percent bands (±0.5% mild, ±2% strong)
    Volume Analysis  20   bar volume vs. a high-volume threshold, with direction
    News Sentiment   25   keyword counts over headline + summary text
    Price Range      15   where the close sits inside the bar's high-low range
    Trend Analysis   15   open-to-close move confirmed by overall direction

Weights sum to 100.  Missing inputs (no bar, no news, no previous close)
always classify as neutral, never raise.
"""

from __future__ import annotations

from newsroom.models.market import MarketSnapshot
from newsroom.models.scoring import SignalResult
from newsroom.taxonomy.signal_taxonomy import SignalDirection

MOMENTUM_WEIGHT = 25
VOLUME_WEIGHT = 20
SENTIMENT_WEIGHT = 25
RANGE_WEIGHT = 15
TREND_WEIGHT = 15

DEFAULT_HIGH_VOLUME = 1_000_000

POSITIVE_KEYWORDS: tuple[str, ...] = (
    "surge", "gain", "rise", "beat", "exceed", "growth",
    "profit", "upgrade", "bullish", "strong", "record", "breakthrough",
)
NEGATIVE_KEYWORDS: tuple[str, ...] = (
    "fall", "drop", "decline", "miss", "loss", "downgrade",
    "bearish", "weak", "concern", "risk", "warning", "lawsuit",
)

# Sentiment needs a margin of more than this many keyword hits to lean.
_SENTIMENT_MARGIN = 2


def analyze_momentum(snapshot: MarketSnapshot) -> SignalResult:
    change_pct = snapshot.change_percent or 0.0

    if change_pct > 2:
        signal = SignalDirection.BULLISH
        description = f"Strong upward momentum (+{change_pct:.2f}%)"
    elif change_pct > 0.5:
        signal = SignalDirection.BULLISH
        description = f"Positive momentum (+{change_pct:.2f}%)"
    elif change_pct < -2:
        signal = SignalDirection.BEARISH
        description = f"Strong downward pressure ({change_pct:.2f}%)"
    elif change_pct < -0.5:
        signal = SignalDirection.BEARISH
        description = f"Negative momentum ({change_pct:.2f}%)"
    else:
        signal = SignalDirection.NEUTRAL
        description = f"Flat price action ({change_pct:.2f}%)"

    return SignalResult(
        name="Price Momentum", signal=signal, weight=MOMENTUM_WEIGHT, description=description
    )


def analyze_volume(
    snapshot: MarketSnapshot,
    high_volume: float = DEFAULT_HIGH_VOLUME,
) -> SignalResult:
    """Classify the bar's volume together with the direction of the move.

    Args:
        snapshot: Snapshot to classify.
        high_volume: Volume above which a session counts as heavy.  A fixed
            absolute threshold; no historical average is consulted.
    """
    bar = snapshot.latest_bar
    if bar is None:
        return SignalResult(
            name="Volume Analysis",
            signal=SignalDirection.NEUTRAL,
            weight=VOLUME_WEIGHT,
            description="Volume data unavailable",
        )

    change_pct = snapshot.change_percent or 0.0
    is_heavy = bar.volume > high_volume

    if is_heavy and change_pct > 0:
        signal = SignalDirection.BULLISH
        description = "High volume supporting price increase"
    elif is_heavy and change_pct < 0:
        signal = SignalDirection.BEARISH
        description = "High volume on price decline"
    elif not is_heavy and abs(change_pct) > 1:
        signal = SignalDirection.NEUTRAL
        description = "Price move on low volume - caution advised"
    else:
        signal = SignalDirection.NEUTRAL
        description = "Normal trading volume"

    return SignalResult(
        name="Volume Analysis", signal=signal, weight=VOLUME_WEIGHT, description=description
    )


def count_sentiment_keywords(texts: list[str]) -> tuple[int, int]:
    """Count keyword hits across ``texts``.

    Each keyword counts at most once per text (substring match, lower-cased).

    Returns:
        ``(positive_count, negative_count)``
    """
    positive = 0
    negative = 0
    for text in texts:
        lowered = text.lower()
        positive += sum(1 for kw in POSITIVE_KEYWORDS if kw in lowered)
        negative += sum(1 for kw in NEGATIVE_KEYWORDS if kw in lowered)
    return positive, negative


def analyze_news_sentiment(snapshot: MarketSnapshot) -> SignalResult:
    if not snapshot.news:
        return SignalResult(
            name="News Sentiment",
            signal=SignalDirection.NEUTRAL,
            weight=SENTIMENT_WEIGHT,
            description="No recent news to analyze",
        )

    texts = [f"{item.headline} {item.summary or ''}" for item in snapshot.news]
    positive, negative = count_sentiment_keywords(texts)

    if positive > negative + _SENTIMENT_MARGIN:
        signal = SignalDirection.BULLISH
        description = f"Positive news sentiment ({positive} bullish signals)"
    elif negative > positive + _SENTIMENT_MARGIN:
        signal = SignalDirection.BEARISH
        description = f"Negative news sentiment ({negative} bearish signals)"
    else:
        signal = SignalDirection.NEUTRAL
        description = "Mixed or neutral news sentiment"

    return SignalResult(
        name="News Sentiment", signal=signal, weight=SENTIMENT_WEIGHT, description=description
    )


def analyze_price_range(snapshot: MarketSnapshot) -> SignalResult:
    bar = snapshot.latest_bar
    if bar is None:
        return SignalResult(
            name="Price Range",
            signal=SignalDirection.NEUTRAL,
            weight=RANGE_WEIGHT,
            description="Price range data unavailable",
        )

    session_range = bar.high - bar.low
    if session_range <= 0:
        return SignalResult(
            name="Price Range",
            signal=SignalDirection.NEUTRAL,
            weight=RANGE_WEIGHT,
            description="No intraday range (high equals low)",
        )

    # 0 = closed at the low, 1 = closed at the high
    close_position = (bar.close - bar.low) / session_range

    if close_position > 0.7:
        signal = SignalDirection.BULLISH
        description = f"Closed near session high ({close_position:.0%} of range)"
    elif close_position < 0.3:
        signal = SignalDirection.BEARISH
        description = f"Closed near session low ({close_position:.0%} of range)"
    else:
        signal = SignalDirection.NEUTRAL
        description = f"Closed mid-range ({close_position:.0%} of range)"

    return SignalResult(
        name="Price Range", signal=signal, weight=RANGE_WEIGHT, description=description
    )


def analyze_trend(snapshot: MarketSnapshot) -> SignalResult:
    bar = snapshot.latest_bar
    if bar is None or bar.open <= 0:
        return SignalResult(
            name="Trend Analysis",
            signal=SignalDirection.NEUTRAL,
            weight=TREND_WEIGHT,
            description="Trend data unavailable",
        )

    change_pct = snapshot.change_percent or 0.0
    open_to_close = (bar.close - bar.open) / bar.open * 100

    if open_to_close > 1 and change_pct > 0:
        signal = SignalDirection.BULLISH
        description = "Uptrend confirmed - higher close than open"
    elif open_to_close < -1 and change_pct < 0:
        signal = SignalDirection.BEARISH
        description = "Downtrend confirmed - lower close than open"
    elif abs(open_to_close) < 0.5:
        signal = SignalDirection.NEUTRAL
        description = "Consolidation pattern - indecisive"
    else:
        signal = SignalDirection.NEUTRAL
        description = "Mixed signals in trend direction"

    return SignalResult(
        name="Trend Analysis", signal=signal, weight=TREND_WEIGHT, description=description
    )
