"""
Content-store models: tracked tickers, generated content and articles.

``Ticker`` is owned by the content store; the scheduler's only mutation is
``last_article_at``.  ``Article`` is what the publisher persists.  Its slug
is unique per store (see ``newsroom.pipeline.slugs``).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from newsroom.models.market import MarketSnapshot
from newsroom.models.scoring import StockScore

VALID_ARTICLE_STATUSES = frozenset({"draft", "published"})


class Ticker(BaseModel):
    """A symbol tracked for routine coverage.

    Attributes:
        symbol: Upper-case ticker symbol (primary key).
        is_active: Inactive tickers are never picked.
        priority: Higher = more urgent.
        last_article_at: UTC time of the latest article, ``None`` if never covered.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    is_active: bool = True
    priority: int = 0
    last_article_at: Optional[datetime] = None

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("symbol must be non-empty.")
        return v


class GeneratedContent(BaseModel):
    """Output contract of a ``ContentGenerator``.

    ``model`` is ``None`` for placeholder (non-AI) content.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    excerpt: str
    body_markdown: str
    tags: list[str] = ["market-update"]
    model: Optional[str] = None
    prompt_version: str = "v0"

    @property
    def is_placeholder(self) -> bool:
        return self.model is None


class Article(BaseModel):
    """A published article as stored by the content store.

    Attributes:
        article_id: Auto-assigned DB PK; ``None`` before insertion.
        slug: Unique URL slug.
        tickers: Symbols covered (empty for world news / macro).
        is_breaking: Breaking articles bypass the daily routine cap.
        model: AI model name, ``None`` for placeholder content.
        market_snapshot: Snapshot the article was written from, if any.
        source_news: Raw headline dicts the article was written from, if any.
        stock_score: Rating computed at publish time, if any.
    """

    model_config = ConfigDict(frozen=True)

    article_id: Optional[int] = None
    slug: str
    status: str = "published"
    title: str
    excerpt: Optional[str] = None
    body_markdown: str
    tickers: list[str] = []
    tags: list[str] = []
    is_breaking: bool = False
    model: Optional[str] = None
    prompt_version: Optional[str] = None
    market_snapshot: Optional[MarketSnapshot] = None
    source_news: Optional[list[dict[str, Any]]] = None
    stock_score: Optional[StockScore] = None
    published_at: datetime

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in VALID_ARTICLE_STATUSES:
            raise ValueError(
                f"Unknown status '{v}'. Must be one of {sorted(VALID_ARTICLE_STATUSES)}."
            )
        return v

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        if not v or v != v.strip():
            raise ValueError("slug must be non-empty and unpadded.")
        return v
