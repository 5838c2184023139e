"""
World-news pipeline: one synthesized briefing from general headlines.

  1. Collect : breaking headlines + top headlines for each configured
               category.  A failing source is logged and skipped.
  2. Dedupe  : exact title match, first occurrence wins; cap ``max_items``.
  3. Generate: one article from the combined set (placeholder on failure).
  4. Publish : as breaking, no tickers; first 5 items kept as source news.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Optional

from newsroom.errors import ConfigurationError, UpstreamFetchError
from newsroom.generation.placeholder import build_world_news_placeholder
from newsroom.models.article import Article, GeneratedContent
from newsroom.models.market import WorldNewsArticle
from newsroom.pipeline.base import NewsroomPipeline, PipelineResult
from newsroom.pipeline.slugs import world_news_slug
from newsroom.utils.time_utils import to_iso

logger = logging.getLogger(__name__)

SOURCE_NEWS_LIMIT = 5


def dedupe_by_title(items: list[WorldNewsArticle]) -> list[WorldNewsArticle]:
    seen: set[str] = set()
    unique: list[WorldNewsArticle] = []
    for item in items:
        if item.title in seen:
            continue
        seen.add(item.title)
        unique.append(item)
    return unique


class WorldNewsPipeline(NewsroomPipeline):
    """One world-news briefing per invocation."""

    name = "world-news"

    def _execute(
        self,
        result: PipelineResult,
        cancel_event: Optional[threading.Event] = None,
        **kwargs: Any,
    ) -> None:
        source = self.deps.news_source
        if source is None:
            raise ConfigurationError("NEWSAPI_KEY is not configured")
        if self.deps.generator is None:
            raise ConfigurationError("GEMINI_API_KEY is not configured")

        # ── Step 1: Collect ───────────────────────────────────────────────────
        news_cfg = self.config.news
        collected: list[WorldNewsArticle] = []
        fetches = [("breaking", source.fetch_breaking)]
        fetches += [
            (category, lambda c=category: source.fetch_top_headlines(c, news_cfg.page_size))
            for category in news_cfg.categories
        ]
        for label, fetch in fetches:
            self.checkpoint(cancel_event)
            try:
                collected.extend(fetch())
            except UpstreamFetchError as exc:
                logger.warning("World news source '%s' failed: %s", label, exc)
                result.errors.append(f"{label}: {exc}")

        # ── Step 2: Dedupe ────────────────────────────────────────────────────
        unique = dedupe_by_title(collected)[: news_cfg.max_items]
        if not unique:
            result.mark_skipped("No news articles found", sourcesUsed=0)
            return

        # ── Step 3: Generate ──────────────────────────────────────────────────
        now = self.deps.clock()
        content = self._generate(unique, now)
        self.checkpoint(cancel_event)

        # ── Step 4: Publish ───────────────────────────────────────────────────
        article = Article(
            slug=world_news_slug(now),
            title=content.title,
            excerpt=content.excerpt,
            body_markdown=content.body_markdown,
            tickers=[],
            tags=content.tags,
            is_breaking=True,
            model=content.model,
            prompt_version=content.prompt_version,
            source_news=[
                item.model_dump(mode="json") for item in unique[:SOURCE_NEWS_LIMIT]
            ],
            published_at=now,
        )
        self.checkpoint(cancel_event)
        stored = self.publisher.publish(article, record_tickers=False)

        result.mark_created(
            created=True,
            article={
                "id": stored.article_id,
                "slug": stored.slug,
                "title": stored.title,
                "publishedAt": to_iso(stored.published_at),
            },
            sourcesUsed=len(unique),
        )

    def _generate(self, items: list[WorldNewsArticle], now: datetime) -> GeneratedContent:
        try:
            return self.deps.generator.generate_world_news_article(items)
        except Exception as exc:
            logger.warning("World news generation failed, using placeholder: %s", exc)
            return build_world_news_placeholder([i.title for i in items], now)
