"""
Classification vocabularies for scores and breaking events.

  - ``SignalDirection``: per-indicator classification.
  - ``Rating``        : aggregate buy / hold / sell call.
  - ``Confidence``    : how strongly the five indicators agree.
  - ``Severity``      : breaking-event urgency, with its ranking weight.

This module has NO imports from any other ``newsroom`` package.
"""

from enum import StrEnum


class SignalDirection(StrEnum):
    """Direction of a single indicator."""

    BULLISH = "bullish"
    NEUTRAL = "neutral"
    BEARISH = "bearish"

    @property
    def value_sign(self) -> int:
        """+1 bullish, 0 neutral, -1 bearish."""
        return _DIRECTION_SIGN[self]


class Rating(StrEnum):
    """Aggregate rating derived from the weighted score."""

    BUY = "buy"
    HOLD = "hold"
    SELL = "sell"


class Confidence(StrEnum):
    """Agreement level among the indicator signals."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Severity(StrEnum):
    """Breaking-event severity."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def weight(self) -> int:
        """Ranking multiplier: high=3, medium=2, low=1."""
        return _SEVERITY_WEIGHT[self]


_DIRECTION_SIGN: dict[SignalDirection, int] = {
    SignalDirection.BULLISH: 1,
    SignalDirection.NEUTRAL: 0,
    SignalDirection.BEARISH: -1,
}

_SEVERITY_WEIGHT: dict[Severity, int] = {
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}
