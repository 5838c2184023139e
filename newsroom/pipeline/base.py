"""
Shared pipeline machinery: result type, dependencies and the base class.

Every pipeline follows the same contract:
  1. Receive ``PipelineDeps`` at construction.
  2. ``run(cancel_event=None, **kwargs)`` is the sole public API.
  3. ``run()`` creates a ``PipelineResult``, calls ``_execute()`` and
     returns the result with a terminal status: ``created``, ``skipped``
     or ``failed``.

Error policy inside ``run()``:
  - ``ConfigurationError`` is re-raised (the HTTP layer answers 500).
  - ``InvalidRequestError`` is re-raised (the HTTP layer answers 400).
  - ``PipelineCancelled`` ends the run as ``failed``; nothing after the last
    checkpoint is persisted.
  - Any other exception ends the run as ``failed`` with its message, so a
    bare exception never reaches the caller.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional, Protocol
from uuid import uuid4

from newsroom.config import AppConfig, Secrets
from newsroom.detection.breaking import MarketDataSource
from newsroom.errors import (
    ConfigurationError,
    InvalidRequestError,
    PipelineCancelled,
)
from newsroom.generation.interface import ContentGenerator
from newsroom.models.market import WorldNewsArticle
from newsroom.publishing.cache import CacheInvalidator, LoggingCacheInvalidator
from newsroom.publishing.publisher import ArticlePublisher
from newsroom.scheduling.ticker_scheduler import ContentStore, TickerScheduler
from newsroom.scoring.scorer import SignalScorer
from newsroom.utils.logging import pipeline_context
from newsroom.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

VALID_TERMINAL_STATUSES = frozenset({"created", "skipped", "failed"})


class WorldNewsSource(Protocol):
    """General headline source (NewsAPI or RSS)."""

    def fetch_top_headlines(
        self, category: str, page_size: Optional[int] = None
    ) -> list[WorldNewsArticle]: ...

    def fetch_breaking(self) -> list[WorldNewsArticle]: ...


# ── Result type ───────────────────────────────────────────────────────────────

@dataclass
class PipelineResult:
    """Outcome of one pipeline invocation.

    Attributes:
        pipeline:    Pipeline name (``routine``, ``breaking``, ...).
        run_id:      Random id tying together the log lines of one run.
        status:      ``started`` while running, then ``created`` / ``skipped`` / ``failed``.
        reason:      Why the run was skipped.
        error:       Why the run failed.
        payload:     Endpoint-specific response fields (camelCase keys).
        errors:      Per-item failures that did not end the run.
        started_at:  UTC start time.
        finished_at: UTC end time.
    """

    pipeline:    str
    run_id:      str = field(default_factory=lambda: uuid4().hex[:12])
    status:      str = "started"
    reason:      Optional[str] = None
    error:       Optional[str] = None
    payload:     dict[str, Any] = field(default_factory=dict)
    errors:      list[str] = field(default_factory=list)
    started_at:  Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def ok(self) -> bool:
        return self.status != "failed"

    def mark_created(self, **payload: Any) -> None:
        self.status = "created"
        self.payload.update(payload)

    def mark_skipped(self, reason: str, **payload: Any) -> None:
        self.status = "skipped"
        self.reason = reason
        self.payload.update(payload)

    def mark_failed(self, error: str, **payload: Any) -> None:
        self.status = "failed"
        self.error = error
        self.payload.update(payload)

    def to_response(self) -> dict[str, Any]:
        """JSON body returned to the caller."""
        body: dict[str, Any] = {"ok": self.ok}
        if self.status == "skipped":
            body["skipped"] = True
            body["reason"] = self.reason
        elif self.status == "failed":
            body["error"] = self.error
        body.update(self.payload)
        if self.errors:
            body["errors"] = list(self.errors)
        return body


# ── Dependencies ──────────────────────────────────────────────────────────────

@dataclass
class PipelineDeps:
    """Collaborators shared by all pipelines.

    ``market_data``, ``generator`` and ``news_source`` are ``None`` when
    their credentials are not configured; each pipeline decides whether
    that means placeholder content or a ``ConfigurationError``.
    """

    config:      AppConfig
    store:       ContentStore
    market_data: Optional[MarketDataSource] = None
    generator:   Optional[ContentGenerator] = None
    news_source: Optional[WorldNewsSource] = None
    invalidator: CacheInvalidator = field(default_factory=LoggingCacheInvalidator)
    scorer:      SignalScorer = field(default_factory=SignalScorer)
    clock:       Callable[[], datetime] = utcnow


def build_dependencies(
    config: AppConfig,
    secrets: Secrets,
    store: Optional[ContentStore] = None,
) -> PipelineDeps:
    """Wire production collaborators from config and secrets."""
    # Imported here so that importing the pipeline package stays cheap for tests.
    from newsroom.db.store import SqliteContentStore
    from newsroom.generation.gemini_client import GeminiContentGenerator
    from newsroom.ingestion.alpaca_client import AlpacaMarketDataClient
    from newsroom.ingestion.newsapi_client import NewsAPIClient
    from newsroom.ingestion.rss_client import RssNewsClient
    from newsroom.publishing.cache import build_invalidator

    market_data = None
    if secrets.has_alpaca_keys:
        market_data = AlpacaMarketDataClient(
            secrets.alpaca_api_key, secrets.alpaca_api_secret, config.market_data
        )

    generator = None
    if secrets.gemini_api_key:
        generator = GeminiContentGenerator(secrets.gemini_api_key, config.generation)

    news_source: Optional[WorldNewsSource] = None
    if config.news.provider == "rss":
        news_source = RssNewsClient(config.news)
    elif secrets.newsapi_key:
        news_source = NewsAPIClient(secrets.newsapi_key, config.news)

    return PipelineDeps(
        config=config,
        store=store or SqliteContentStore.from_config(config.database),
        market_data=market_data,
        generator=generator,
        news_source=news_source,
        invalidator=build_invalidator(config.cache, secret=secrets.cron_secret),
        scorer=SignalScorer(high_volume=config.pipeline.baseline_volume),
    )


# ── Base class ────────────────────────────────────────────────────────────────

class NewsroomPipeline(ABC):
    """Abstract base for the article pipelines.

    Subclasses set ``name`` and implement ``_execute(result, cancel_event, **kwargs)``.
    """

    name: str

    def __init__(self, deps: PipelineDeps) -> None:
        self.deps = deps
        self.config = deps.config
        self.scheduler = TickerScheduler(deps.store)
        self.publisher = ArticlePublisher(deps.store, deps.invalidator)

    def run(
        self,
        cancel_event: Optional[threading.Event] = None,
        **kwargs: Any,
    ) -> PipelineResult:
        result = PipelineResult(pipeline=self.name, started_at=self.deps.clock())
        with pipeline_context(self.name, result.run_id):
            return self._run_logged(result, cancel_event, **kwargs)

    def _run_logged(
        self,
        result: PipelineResult,
        cancel_event: Optional[threading.Event],
        **kwargs: Any,
    ) -> PipelineResult:
        logger.info("Pipeline [%s] starting | run_id=%s", self.name, result.run_id)

        try:
            self._execute(result, cancel_event=cancel_event, **kwargs)

        except (ConfigurationError, InvalidRequestError) as exc:
            logger.error(
                "Pipeline [%s] rejected: %s | run_id=%s", self.name, exc, result.run_id
            )
            raise

        except PipelineCancelled as exc:
            result.mark_failed(f"Cancelled: {exc}")
            logger.warning(
                "Pipeline [%s] cancelled | run_id=%s", self.name, result.run_id
            )

        except Exception as exc:
            result.mark_failed(str(exc) or exc.__class__.__name__)
            logger.error(
                "Pipeline [%s] FAILED: %s | run_id=%s",
                self.name, exc, result.run_id, exc_info=True,
            )

        if result.status not in VALID_TERMINAL_STATUSES:
            result.mark_failed("Pipeline finished without a terminal status")
        result.finished_at = self.deps.clock()
        logger.info(
            "Pipeline [%s] %s | run_id=%s", self.name, result.status, result.run_id
        )
        return result

    @abstractmethod
    def _execute(
        self,
        result: PipelineResult,
        cancel_event: Optional[threading.Event] = None,
        **kwargs: Any,
    ) -> None:
        """Pipeline-specific work; must leave ``result`` in a terminal status."""
        ...

    @staticmethod
    def checkpoint(cancel_event: Optional[threading.Event]) -> None:
        """Raise ``PipelineCancelled`` if the run has been cancelled."""
        if cancel_event is not None and cancel_event.is_set():
            raise PipelineCancelled("Run cancelled by caller")
