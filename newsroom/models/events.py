"""
Breaking-event model emitted by ``BreakingEventDetector``.

Events are consumed once by the breaking pipeline and never persisted on
their own; the resulting article is the persisted artifact.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from newsroom.models.market import MarketSnapshot
from newsroom.taxonomy.signal_taxonomy import Severity
from newsroom.utils.time_utils import utcnow


class BreakingNewsEvent(BaseModel):
    """A symbol that crossed a move or volume threshold in one detection run.

    Attributes:
        symbol: Ticker symbol.
        reason: Human-readable trigger description.
        severity: ``high`` / ``medium`` / ``low``.
        price_change: Percent change vs. previous close (signed).
        volume_change: Volume ratio vs. the baseline, volume-spike events only.
        detected_at: UTC detection time.
        market_data: Snapshot the rules were evaluated against.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    reason: str
    severity: Severity
    price_change: float
    volume_change: Optional[float] = None
    detected_at: datetime = Field(default_factory=utcnow)
    market_data: MarketSnapshot

    @property
    def rank_weight(self) -> float:
        """``severity.weight * |price_change|``, the detector's sort key."""
        return self.severity.weight * abs(self.price_change)
