"""
Alpaca market data client: latest bar, previous close and ticker headlines.

Endpoints (``https://data.alpaca.markets``)::

    GET /v2/stocks/{symbol}/bars/latest          -> {"bar": {...}}
    GET /v2/stocks/{symbol}/bars?timeframe=1Day  -> {"bars": [{...}]}
    GET /v1beta1/news?symbols=...                -> {"news": [{...}]}

Auth: ``APCA-API-KEY-ID`` / ``APCA-API-SECRET-KEY`` headers.

Every request carries a bounded timeout.  Transport errors, timeouts and
non-2xx answers are raised as ``UpstreamFetchError``; ``fetch_snapshot()``
catches those per part so a snapshot is always returned, with ``None`` /
empty fields for whatever could not be fetched.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from newsroom.config import MarketDataConfig
from newsroom.errors import ConfigurationError, UpstreamFetchError
from newsroom.models.market import MarketSnapshot, PriceBar, TickerNews
from newsroom.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

_PROVIDER = "alpaca"


class AlpacaMarketDataClient:
    """Synchronous Alpaca data client.

    Usage::

        with AlpacaMarketDataClient(key, secret, config.market_data) as client:
            snapshot = client.fetch_snapshot("AAPL")

    Args:
        api_key: Alpaca key id.
        api_secret: Alpaca secret key.
        config: Endpoint and limit settings.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).

    Raises:
        ConfigurationError: If either credential is missing.
    """

    def __init__(
        self,
        api_key: Optional[str],
        api_secret: Optional[str],
        config: Optional[MarketDataConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not api_key or not api_secret:
            raise ConfigurationError("ALPACA_API_KEY and ALPACA_API_SECRET must be set")
        self.config = config or MarketDataConfig()
        self._client = httpx.Client(
            headers={
                "APCA-API-KEY-ID": api_key,
                "APCA-API-SECRET-KEY": api_secret,
            },
            timeout=self.config.timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "AlpacaMarketDataClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ── Individual endpoints ──────────────────────────────────────────────────

    def fetch_latest_bar(self, symbol: str) -> Optional[PriceBar]:
        """Return the latest bar, or ``None`` if Alpaca has none (404)."""
        url = f"{self.config.data_url}/v2/stocks/{symbol}/bars/latest"
        data = self._get_json(url, allow_404=True)
        if not data or not data.get("bar"):
            return None
        return _parse_bar(data["bar"], symbol)

    def fetch_previous_close(
        self, symbol: str, today: Optional[date] = None
    ) -> Optional[float]:
        """Close of the most recent daily bar ending yesterday.

        Looks back ``previous_close_lookback_days`` days so weekends and
        holidays still find a session.
        """
        today = today or utcnow().date()
        end = today - timedelta(days=1)
        start = end - timedelta(days=self.config.previous_close_lookback_days)
        url = f"{self.config.data_url}/v2/stocks/{symbol}/bars"
        params = {
            "start": start.isoformat(),
            "end": end.isoformat(),
            "timeframe": "1Day",
            "limit": "1",
            "sort": "desc",
        }
        data = self._get_json(url, params=params, allow_404=True)
        bars = (data or {}).get("bars") or []
        if not bars:
            return None
        close = bars[0].get("c")
        return float(close) if close is not None else None

    def fetch_ticker_news(self, symbol: str, limit: Optional[int] = None) -> list[TickerNews]:
        """Most recent headlines tagged with ``symbol``, newest first."""
        params = {
            "symbols": symbol,
            "limit": str(limit or self.config.news_limit),
            "sort": "desc",
        }
        data = self._get_json(self.config.news_url, params=params)
        items: list[TickerNews] = []
        for raw in (data or {}).get("news") or []:
            try:
                items.append(TickerNews.model_validate(raw))
            except ValidationError as exc:
                logger.debug("Skipping malformed news item for %s: %s", symbol, exc)
        return items

    # ── Snapshot ──────────────────────────────────────────────────────────────

    def fetch_snapshot(self, symbol: str) -> MarketSnapshot:
        """Assemble a ``MarketSnapshot``, tolerating failure of any single part."""
        symbol = symbol.strip().upper()

        try:
            latest_bar = self.fetch_latest_bar(symbol)
        except UpstreamFetchError as exc:
            logger.warning("Latest bar unavailable for %s: %s", symbol, exc)
            latest_bar = None

        try:
            previous_close = self.fetch_previous_close(symbol)
        except UpstreamFetchError as exc:
            logger.warning("Previous close unavailable for %s: %s", symbol, exc)
            previous_close = None

        try:
            news = self.fetch_ticker_news(symbol)
        except UpstreamFetchError as exc:
            logger.warning("News unavailable for %s: %s", symbol, exc)
            news = []

        return MarketSnapshot(
            symbol=symbol,
            latest_bar=latest_bar,
            previous_close=previous_close,
            news=news,
        )

    # ── Private helpers ───────────────────────────────────────────────────────

    def _get_json(
        self,
        url: str,
        params: Optional[dict[str, str]] = None,
        allow_404: bool = False,
    ) -> Optional[dict[str, Any]]:
        try:
            resp = self._client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(f"Alpaca request failed: {exc}", provider=_PROVIDER) from exc

        if resp.status_code == 404 and allow_404:
            return None
        if resp.status_code >= 400:
            raise UpstreamFetchError(
                f"Alpaca API error: {resp.status_code} - {resp.text[:200]}",
                provider=_PROVIDER,
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamFetchError("Alpaca returned invalid JSON", provider=_PROVIDER) from exc


def _parse_bar(raw: dict[str, Any], symbol: str) -> PriceBar:
    try:
        return PriceBar.model_validate(raw)
    except ValidationError as exc:
        raise UpstreamFetchError(
            f"Malformed bar for {symbol}: {exc.error_count()} validation errors",
            provider=_PROVIDER,
        ) from exc
