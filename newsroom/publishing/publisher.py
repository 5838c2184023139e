"""
ArticlePublisher: persist, update ticker bookkeeping, invalidate caches.

Order matters: the article is written first; only a successful write moves
``last_article_at`` and triggers invalidation.  A write failure raises
``PublishError`` and leaves ticker state untouched.
"""

from __future__ import annotations

import logging
from typing import Optional

from newsroom.models.article import Article
from newsroom.publishing.cache import (
    CacheInvalidator,
    LoggingCacheInvalidator,
    paths_for_article,
)
from newsroom.scheduling.ticker_scheduler import ContentStore, TickerScheduler

logger = logging.getLogger(__name__)


class ArticlePublisher:
    """Writes finished articles to the content store.

    Args:
        store: Content store.
        invalidator: Downstream cache invalidator (defaults to logging only).
    """

    def __init__(
        self,
        store: ContentStore,
        invalidator: Optional[CacheInvalidator] = None,
    ) -> None:
        self.store = store
        self.scheduler = TickerScheduler(store)
        self.invalidator = invalidator or LoggingCacheInvalidator()

    def publish(self, article: Article, record_tickers: bool = True) -> Article:
        """Persist ``article`` and return it with its assigned id.

        Args:
            article: Finished article.
            record_tickers: Move ``last_article_at`` of every covered ticker.

        Raises:
            PublishError: If the content store rejects the write.
        """
        stored = self.store.insert_article(article)
        logger.info(
            "Published article | id=%s | slug=%s | breaking=%s",
            stored.article_id, stored.slug, stored.is_breaking,
        )

        if record_tickers:
            for symbol in stored.tickers:
                self.scheduler.record_published(symbol, stored.published_at)

        self.invalidator.invalidate(paths_for_article(stored.tickers, stored.slug))
        return stored
