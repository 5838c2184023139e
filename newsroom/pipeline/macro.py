"""
Macro pipeline: an explainer article on one macroeconomic topic.

The topic comes from the request or is drawn at random from
``pipeline.macro_topics``.  Macro articles carry no tickers and are not
breaking, so they count toward the routine daily total; this pipeline does
not check the cap itself.
"""

from __future__ import annotations

import logging
import random
import threading
from datetime import datetime
from typing import Any, Optional

from newsroom.errors import ConfigurationError, InvalidRequestError
from newsroom.generation.placeholder import build_macro_placeholder
from newsroom.models.article import Article, GeneratedContent
from newsroom.pipeline.base import NewsroomPipeline, PipelineDeps, PipelineResult
from newsroom.pipeline.slugs import macro_slug
from newsroom.utils.time_utils import to_iso

logger = logging.getLogger(__name__)


class MacroPipeline(NewsroomPipeline):
    """One macro article per invocation.

    Args:
        deps: Pipeline dependencies.
        rng: Random source for topic selection.
    """

    name = "macro"

    def __init__(self, deps: PipelineDeps, rng: Optional[random.Random] = None) -> None:
        super().__init__(deps)
        self.rng = rng or random.Random()

    def _execute(
        self,
        result: PipelineResult,
        cancel_event: Optional[threading.Event] = None,
        topic: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        topics = list(self.config.pipeline.macro_topics)
        if topic is None:
            topic = self.rng.choice(topics)
        elif topic not in topics:
            raise InvalidRequestError(f"Unknown macro topic '{topic}'")

        if self.deps.generator is None:
            raise ConfigurationError("GEMINI_API_KEY is not configured")

        now = self.deps.clock()
        content = self._generate(topic, now)
        self.checkpoint(cancel_event)

        article = Article(
            slug=macro_slug(topic, now),
            title=content.title,
            excerpt=content.excerpt,
            body_markdown=content.body_markdown,
            tickers=[],
            tags=content.tags,
            is_breaking=False,
            model=content.model,
            prompt_version=content.prompt_version,
            published_at=now,
        )
        self.checkpoint(cancel_event)
        stored = self.publisher.publish(article, record_tickers=False)

        result.mark_created(
            created=True,
            topic=topic,
            article={
                "id": stored.article_id,
                "slug": stored.slug,
                "title": stored.title,
                "publishedAt": to_iso(stored.published_at),
            },
        )

    def _generate(self, topic: str, now: datetime) -> GeneratedContent:
        try:
            return self.deps.generator.generate_macro_article(topic)
        except Exception as exc:
            logger.warning("Macro generation failed for %s, using placeholder: %s", topic, exc)
            return build_macro_placeholder(topic, now)
