"""
Breaking-news pipeline.

  1. Detect : scan the watchlist (bounded concurrent fetches), ranked events.
  2. Select : top ``breaking_max_events`` events.
  3. Per event, sequentially and in isolation:
       generate (templated title/excerpt fill any gap, placeholder body on
       failure) -> score -> publish.

No quota check: breaking articles bypass the daily routine cap.  One
event's failure is logged and recorded in ``errors``; the loop continues.
The run fails only if events were selected and none could be published;
with ``breaking_max_events = 0`` nothing is selected and the run is skipped.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Optional

from newsroom.detection.breaking import (
    BreakingEventDetector,
    build_breaking_excerpt,
    build_breaking_title,
)
from newsroom.errors import ConfigurationError, PipelineCancelled
from newsroom.generation.placeholder import build_placeholder_content
from newsroom.models.article import Article, GeneratedContent
from newsroom.models.events import BreakingNewsEvent
from newsroom.pipeline.base import NewsroomPipeline, PipelineResult
from newsroom.pipeline.routine import append_score_section
from newsroom.pipeline.slugs import breaking_slug

logger = logging.getLogger(__name__)

BREAKING_TAGS = ["breaking-news", "market-update"]


def event_summary(event: BreakingNewsEvent) -> dict[str, Any]:
    return {
        "symbol": event.symbol,
        "reason": event.reason,
        "severity": event.severity.value,
        "priceChange": event.price_change,
    }


class BreakingPipeline(NewsroomPipeline):
    """Up to ``breaking_max_events`` breaking articles per invocation."""

    name = "breaking"

    def _execute(
        self,
        result: PipelineResult,
        cancel_event: Optional[threading.Event] = None,
        symbols: Optional[list[str]] = None,
        **kwargs: Any,
    ) -> None:
        if self.deps.market_data is None:
            raise ConfigurationError("ALPACA_API_KEY and ALPACA_API_SECRET must be set")

        settings = self.config.pipeline
        detector = BreakingEventDetector(
            self.deps.market_data,
            baseline_volume=settings.baseline_volume,
            max_workers=settings.detection_workers,
        )
        events = detector.detect(symbols or list(settings.breaking_watchlist), cancel_event)

        if not events:
            result.mark_skipped(
                "No breaking news events detected",
                detected=0,
                created=0,
                events=[],
                articles=[],
                message="No breaking news events detected",
            )
            return

        selected = events[: settings.breaking_max_events]
        if not selected:
            result.mark_skipped(
                "Breaking article limit is 0",
                detected=len(events),
                created=0,
                events=[event_summary(e) for e in events],
                articles=[],
            )
            return

        articles: list[dict[str, Any]] = []
        for event in selected:
            self.checkpoint(cancel_event)
            try:
                stored = self._publish_event(event, cancel_event)
            except PipelineCancelled:
                raise
            except Exception as exc:
                logger.error(
                    "Failed to create breaking article for %s: %s", event.symbol, exc
                )
                result.errors.append(f"{event.symbol}: {exc}")
                continue
            articles.append({"id": stored.article_id, "slug": stored.slug, **event_summary(event)})

        payload = {
            "detected": len(events),
            "created": len(articles),
            "events": [event_summary(e) for e in events],
            "articles": articles,
        }
        if articles:
            result.mark_created(**payload)
        else:
            result.mark_failed("No breaking articles could be published", **payload)

    def _publish_event(
        self,
        event: BreakingNewsEvent,
        cancel_event: Optional[threading.Event],
    ) -> Article:
        now = self.deps.clock()
        snapshot = event.market_data
        content = self._generate(event, now)
        self.checkpoint(cancel_event)

        score = self.deps.scorer.score(snapshot)
        article = Article(
            slug=breaking_slug(event.symbol, now),
            title=content.title.strip() or build_breaking_title(event),
            excerpt=content.excerpt.strip() or build_breaking_excerpt(event),
            body_markdown=append_score_section(content.body_markdown, score),
            tickers=[event.symbol],
            tags=list(BREAKING_TAGS),
            is_breaking=True,
            model=content.model,
            prompt_version=content.prompt_version,
            market_snapshot=snapshot,
            source_news=[item.model_dump(mode="json") for item in snapshot.news],
            stock_score=score,
            published_at=now,
        )
        self.checkpoint(cancel_event)
        return self.publisher.publish(article)

    def _generate(self, event: BreakingNewsEvent, now: datetime) -> GeneratedContent:
        generator = self.deps.generator
        if generator is not None:
            try:
                return generator.generate_stock_article(
                    event.symbol, event.market_data, is_breaking=True
                )
            except Exception as exc:
                logger.warning(
                    "AI generation failed for breaking %s, using placeholder: %s",
                    event.symbol, exc,
                )
        else:
            logger.warning("Generator not configured; placeholder for breaking %s", event.symbol)

        placeholder = build_placeholder_content(event.symbol, now, is_breaking=True)
        return placeholder.model_copy(
            update={
                "title": build_breaking_title(event),
                "excerpt": build_breaking_excerpt(event),
            }
        )
