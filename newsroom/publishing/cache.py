"""
Downstream cache invalidation after publishing.

The site that renders articles caches pages; after a publish the affected
paths are sent to its revalidation webhook as ``{"paths": [...]}``.  With no
webhook configured, invalidation is only logged.

Invalidation is best effort: failures are logged and never undo or fail a
publish.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import httpx

from newsroom.config import CacheConfig

logger = logging.getLogger(__name__)


class CacheInvalidator(Protocol):
    def invalidate(self, paths: list[str]) -> None: ...


def paths_for_article(tickers: list[str], slug: str) -> list[str]:
    """Pages that show an article: home, news index, the article, each stock page."""
    paths = ["/", "/news", f"/news/{slug}"]
    paths += [f"/stocks/{symbol.lower()}" for symbol in tickers]
    return paths


class LoggingCacheInvalidator:
    """No webhook configured: record what would have been invalidated."""

    def invalidate(self, paths: list[str]) -> None:
        logger.info("Cache invalidation (no webhook) | paths=%s", paths)


class WebhookCacheInvalidator:
    """POSTs paths to a revalidation webhook.

    Args:
        url: Webhook endpoint.
        secret: Sent as a Bearer token when set.
        timeout_seconds: Request timeout.
        transport: Optional httpx transport for tests.
    """

    def __init__(
        self,
        url: str,
        secret: Optional[str] = None,
        timeout_seconds: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.url = url
        headers = {"Authorization": f"Bearer {secret}"} if secret else {}
        self._client = httpx.Client(
            timeout=timeout_seconds, headers=headers, transport=transport
        )

    def invalidate(self, paths: list[str]) -> None:
        try:
            resp = self._client.post(self.url, json={"paths": paths})
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Cache invalidation failed | paths=%s | error=%s", paths, exc)
            return
        logger.info("Cache invalidated | paths=%s", paths)


def build_invalidator(
    config: CacheConfig, secret: Optional[str] = None
) -> CacheInvalidator:
    if config.revalidate_url:
        return WebhookCacheInvalidator(
            config.revalidate_url, secret=secret, timeout_seconds=config.timeout_seconds
        )
    return LoggingCacheInvalidator()
