"""
``ContentGenerator`` contract.

Implementations return ``GeneratedContent`` or raise ``GenerationError``;
any other failure mode (timeouts, malformed output, missing text) must be
converted to ``GenerationError`` so pipelines have a single fallback path.
"""

from __future__ import annotations

from typing import Protocol

from newsroom.models.article import GeneratedContent
from newsroom.models.market import MarketSnapshot, WorldNewsArticle


class ContentGenerator(Protocol):
    model: str

    def generate_stock_article(
        self, symbol: str, snapshot: MarketSnapshot, is_breaking: bool = False
    ) -> GeneratedContent: ...

    def generate_world_news_article(
        self, news_items: list[WorldNewsArticle]
    ) -> GeneratedContent: ...

    def generate_macro_article(self, topic: str) -> GeneratedContent: ...
