"""
RSS world-news source, a key-less alternative to NewsAPI.

Feeds are configured per category in ``[news.rss_feeds]``; the ``breaking``
feed backs ``fetch_breaking()``.  Feeds are downloaded with httpx (bounded
timeout) and parsed with feedparser.
"""

from __future__ import annotations

import calendar
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import feedparser
import httpx

from newsroom.config import NewsConfig
from newsroom.errors import UpstreamFetchError
from newsroom.ingestion.newsapi_client import filter_breaking
from newsroom.models.market import WorldNewsArticle

logger = logging.getLogger(__name__)

_PROVIDER = "rss"


class RssNewsClient:
    """World-news source backed by RSS feeds.

    Usage::

        client = RssNewsClient(config.news)
        items = client.fetch_top_headlines("business")
    """

    def __init__(
        self,
        config: Optional[NewsConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.config = config or NewsConfig(provider="rss")
        self._client = httpx.Client(
            timeout=self.config.timeout_seconds,
            transport=transport,
            follow_redirects=True,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RssNewsClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def fetch_top_headlines(
        self, category: str, page_size: Optional[int] = None
    ) -> list[WorldNewsArticle]:
        feed_url = self.config.rss_feeds.get(category)
        if feed_url is None:
            logger.warning("No RSS feed configured for category '%s'", category)
            return []
        return self._fetch_feed(feed_url, limit=page_size or self.config.page_size)

    def fetch_breaking(self) -> list[WorldNewsArticle]:
        feed_url = self.config.rss_feeds.get("breaking") or self.config.rss_feeds.get("general")
        if feed_url is None:
            return []
        articles = self._fetch_feed(feed_url, limit=self.config.breaking_page_size)
        return filter_breaking(articles)

    def _fetch_feed(self, feed_url: str, limit: int) -> list[WorldNewsArticle]:
        try:
            resp = self._client.get(feed_url)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(f"RSS fetch failed for {feed_url}: {exc}", provider=_PROVIDER) from exc

        feed = feedparser.parse(resp.content)
        source_name = getattr(feed.feed, "title", "") or feed_url
        items: list[WorldNewsArticle] = []

        for entry in feed.entries[:limit]:
            title = getattr(entry, "title", "").strip()
            if not title:
                continue

            if getattr(entry, "published_parsed", None):
                ts = calendar.timegm(entry.published_parsed)
                published_at: Optional[datetime] = datetime.fromtimestamp(ts, tz=timezone.utc)
            else:
                published_at = None

            items.append(
                WorldNewsArticle(
                    title=title,
                    description=getattr(entry, "summary", None),
                    source=source_name,
                    url=getattr(entry, "link", ""),
                    published_at=published_at,
                )
            )

        return items
