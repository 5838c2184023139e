"""
Market data models: price bars, ticker headlines, world headlines, snapshots.

``MarketSnapshot`` is the point-in-time bundle every downstream stage reads.
Its ``change`` / ``change_percent`` are computed properties, never inputs:
both are ``None`` unless a latest bar AND a non-zero previous close are
present, so a snapshot can never carry a partially computed change.

Field aliases match the Alpaca wire format (``o``, ``h``, ``l``, ``c``, ``v``,
``t``) so provider JSON validates directly; Python code uses the long names.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from newsroom.utils.time_utils import utcnow


class PriceBar(BaseModel):
    """One OHLCV bar for a symbol."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: datetime = Field(alias="t")
    open: float = Field(alias="o")
    high: float = Field(alias="h")
    low: float = Field(alias="l")
    close: float = Field(alias="c")
    volume: float = Field(alias="v")
    trade_count: Optional[int] = Field(default=None, alias="n")
    vwap: Optional[float] = Field(default=None, alias="vw")

    @field_validator("open", "high", "low", "close", "volume")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Prices and volume must be non-negative.")
        return v


class TickerNews(BaseModel):
    """A headline attached to one or more symbols by the market data provider."""

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    headline: str
    summary: Optional[str] = None
    author: Optional[str] = None
    created_at: Optional[datetime] = None
    url: Optional[str] = None
    symbols: list[str] = []
    source: Optional[str] = None


class WorldNewsArticle(BaseModel):
    """A general (non ticker-specific) headline from the world news source."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: Optional[str] = None
    source: str = ""
    url: str = ""
    image_url: Optional[str] = None
    published_at: Optional[datetime] = None
    content: Optional[str] = None


class MarketSnapshot(BaseModel):
    """Latest bar, previous close and recent headlines for one symbol.

    Attributes:
        symbol: Ticker symbol, upper-case.
        latest_bar: Most recent bar, or ``None`` if the provider had none.
        previous_close: Prior session close, or ``None`` if unavailable.
        news: Recent headlines (most recent first), possibly empty.
        fetched_at: UTC time the snapshot was assembled.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    latest_bar: Optional[PriceBar] = None
    previous_close: Optional[float] = None
    news: list[TickerNews] = []
    fetched_at: datetime = Field(default_factory=utcnow)

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("symbol must be non-empty.")
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def change(self) -> Optional[float]:
        """``latest_bar.close - previous_close``, or ``None`` if either is missing."""
        if self.latest_bar is None or not self.previous_close:
            return None
        return self.latest_bar.close - self.previous_close

    @computed_field  # type: ignore[prop-decorator]
    @property
    def change_percent(self) -> Optional[float]:
        """``change / previous_close * 100``, or ``None`` alongside ``change``."""
        change = self.change
        if change is None or not self.previous_close:
            return None
        return change / self.previous_close * 100
