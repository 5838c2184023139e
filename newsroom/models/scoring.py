"""
Score models produced by ``SignalScorer``.

Both models are frozen.  A ``StockScore`` is request-scoped: it is always
recomputed from a ``MarketSnapshot`` and stored on an article only as a
record of what was published, never read back as authoritative state.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from newsroom.taxonomy.signal_taxonomy import Confidence, Rating, SignalDirection

SIGNAL_COUNT = 5


class SignalResult(BaseModel):
    """One classified indicator feeding the aggregate score.

    Attributes:
        name: Display name, e.g. ``"Price Momentum"``.
        signal: Bullish, neutral or bearish classification.
        weight: Positive weight of this indicator in the aggregate.
        description: One-line human-readable explanation.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    signal: SignalDirection
    weight: int
    description: str

    @field_validator("weight")
    @classmethod
    def validate_weight(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Signal weight must be positive, got {v}.")
        return v


class StockScore(BaseModel):
    """Aggregate rating for one snapshot.

    Attributes:
        overall: ``buy`` if score >= 30, ``sell`` if score <= -30, else ``hold``.
        score: Weighted score in [-100, 100].
        confidence: Signal agreement level.
        signals: Exactly five ``SignalResult`` in fixed indicator order.
        summary: Templated natural-language summary.
    """

    model_config = ConfigDict(frozen=True)

    overall: Rating
    score: int
    confidence: Confidence
    signals: tuple[SignalResult, ...]
    summary: str

    @field_validator("score")
    @classmethod
    def validate_score_range(cls, v: int) -> int:
        if not -100 <= v <= 100:
            raise ValueError(f"score must be in [-100, 100], got {v}.")
        return v

    @field_validator("signals")
    @classmethod
    def validate_signal_count(
        cls, v: tuple[SignalResult, ...]
    ) -> tuple[SignalResult, ...]:
        if len(v) != SIGNAL_COUNT:
            raise ValueError(f"Expected exactly {SIGNAL_COUNT} signals, got {len(v)}.")
        return v
