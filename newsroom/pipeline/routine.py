"""
Routine article pipeline.

  1. Quota   : unless ``is_breaking``, skip once today's routine count >= cap.
  2. Select  : explicit ``symbol`` or ``TickerScheduler.pick_next()``.
  3. Fetch   : market snapshot (when market data is configured).
  4. Generate: AI article, falling back to placeholder content when the
               generator is unconfigured or fails.
  5. Score   : stock score attached and rendered into the body.
  6. Publish : insert, move ``last_article_at``, invalidate caches.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Optional

from newsroom.errors import UpstreamFetchError
from newsroom.generation.placeholder import build_placeholder_content
from newsroom.models.article import Article, GeneratedContent
from newsroom.models.market import MarketSnapshot
from newsroom.models.scoring import StockScore
from newsroom.pipeline.base import NewsroomPipeline, PipelineResult
from newsroom.pipeline.slugs import routine_slug
from newsroom.scoring.formatting import format_score_for_article
from newsroom.utils.time_utils import to_iso

logger = logging.getLogger(__name__)


def append_score_section(body: str, score: Optional[StockScore]) -> str:
    if score is None:
        return body
    return f"{body.rstrip()}\n\n{format_score_for_article(score)}"


class RoutinePipeline(NewsroomPipeline):
    """One routine (or explicitly requested) stock article per invocation."""

    name = "routine"

    def _execute(
        self,
        result: PipelineResult,
        cancel_event: Optional[threading.Event] = None,
        symbol: Optional[str] = None,
        is_breaking: bool = False,
        **kwargs: Any,
    ) -> None:
        now = self.deps.clock()

        # ── Step 1: Quota ─────────────────────────────────────────────────────
        if not is_breaking:
            cap = self.config.pipeline.daily_routine_cap
            daily = self.scheduler.daily_routine_count(now)
            logger.info("Routine article count for today: %d/%d", daily.count, cap)
            if daily.count >= cap:
                result.mark_skipped(
                    "Daily cap reached",
                    cap=cap,
                    count=daily.count,
                    startIso=to_iso(daily.window_start),
                    endIso=to_iso(daily.window_end),
                )
                return

        # ── Step 2: Select ────────────────────────────────────────────────────
        if symbol and symbol.strip():
            symbol = symbol.strip().upper()
        else:
            ticker = self.scheduler.pick_next()
            if ticker is None:
                result.mark_skipped("No active tickers found")
                return
            symbol = ticker.symbol
        logger.info("Selected symbol: %s", symbol)

        # ── Steps 3-4: Fetch + generate ───────────────────────────────────────
        snapshot = self._fetch_snapshot(symbol)
        self.checkpoint(cancel_event)
        content = self._generate(symbol, snapshot, now, is_breaking)
        self.checkpoint(cancel_event)

        # ── Step 5: Score ─────────────────────────────────────────────────────
        score = self.deps.scorer.score(snapshot) if snapshot is not None else None

        # ── Step 6: Publish ───────────────────────────────────────────────────
        article = Article(
            slug=routine_slug(symbol, now),
            title=content.title,
            excerpt=content.excerpt,
            body_markdown=append_score_section(content.body_markdown, score),
            tickers=[symbol],
            tags=content.tags,
            is_breaking=is_breaking,
            model=content.model,
            prompt_version=content.prompt_version,
            market_snapshot=snapshot,
            source_news=(
                [item.model_dump(mode="json") for item in snapshot.news]
                if snapshot is not None else None
            ),
            stock_score=score,
            published_at=now,
        )
        self.checkpoint(cancel_event)
        stored = self.publisher.publish(article)

        result.mark_created(
            created=True,
            aiGenerated=not content.is_placeholder,
            article={
                "id": stored.article_id,
                "slug": stored.slug,
                "publishedAt": to_iso(stored.published_at),
                "symbol": symbol,
                "isBreaking": stored.is_breaking,
            },
        )

    def _fetch_snapshot(self, symbol: str) -> Optional[MarketSnapshot]:
        if self.deps.market_data is None:
            logger.warning("Market data credentials missing; no snapshot for %s", symbol)
            return None
        try:
            return self.deps.market_data.fetch_snapshot(symbol)
        except UpstreamFetchError as exc:
            logger.warning("Snapshot fetch failed for %s: %s", symbol, exc)
            return None

    def _generate(
        self,
        symbol: str,
        snapshot: Optional[MarketSnapshot],
        now: datetime,
        is_breaking: bool,
    ) -> GeneratedContent:
        generator = self.deps.generator
        if generator is None or snapshot is None:
            logger.warning(
                "Using placeholder content for %s | generator=%s | snapshot=%s",
                symbol, generator is not None, snapshot is not None,
            )
            return build_placeholder_content(symbol, now, is_breaking)
        try:
            return generator.generate_stock_article(symbol, snapshot, is_breaking=is_breaking)
        except Exception as exc:
            logger.warning("AI generation failed for %s, using placeholder: %s", symbol, exc)
            return build_placeholder_content(symbol, now, is_breaking)
