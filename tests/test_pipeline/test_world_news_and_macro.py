"""
Tests for newsroom/pipeline/world_news.py and newsroom/pipeline/macro.py.

What we test
------------
WorldNewsPipeline:
  - Missing news source or generator raises ConfigurationError.
  - Headlines are deduplicated by title (first wins) and capped at 10.
  - A failing source is recorded in ``errors`` and the run continues.
  - No headlines at all: skipped with sourcesUsed = 0.
  - Article is breaking, has no tickers and keeps 5 source items.

MacroPipeline:
  - Unknown topic raises InvalidRequestError.
  - Topic defaults to a random configured topic.
  - Macro articles count toward the routine daily total.
  - Generation failure falls back to a placeholder.
"""

from __future__ import annotations

import random

import pytest

from conftest import FIXED_NOW, FakeGenerator, FakeNewsSource
from newsroom.errors import ConfigurationError, InvalidRequestError
from newsroom.pipeline.macro import MacroPipeline
from newsroom.pipeline.world_news import WorldNewsPipeline, dedupe_by_title
from newsroom.models.market import WorldNewsArticle
from newsroom.scheduling.ticker_scheduler import TickerScheduler


class TestDedupeByTitle:
    def test_first_occurrence_wins(self):
        items = [
            WorldNewsArticle(title="A", source="first"),
            WorldNewsArticle(title="B"),
            WorldNewsArticle(title="A", source="second"),
        ]
        unique = dedupe_by_title(items)
        assert [i.title for i in unique] == ["A", "B"]
        assert unique[0].source == "first"


class TestWorldNewsPipeline:
    def test_requires_news_source(self, make_deps):
        with pytest.raises(ConfigurationError, match="NEWSAPI_KEY"):
            WorldNewsPipeline(make_deps(news_source=None)).run()

    def test_requires_generator(self, make_deps):
        with pytest.raises(ConfigurationError, match="GEMINI_API_KEY"):
            WorldNewsPipeline(make_deps(generator=None)).run()

    def test_dedupes_and_caps(self, store, make_deps):
        source = FakeNewsSource(
            breaking=["Rates cut", "Oil spikes"],
            by_category={
                "business": ["Oil spikes"] + [f"Business {i}" for i in range(6)],
                "general": ["Rates cut"] + [f"General {i}" for i in range(6)],
            },
        )
        generator = FakeGenerator()

        result = WorldNewsPipeline(make_deps(news_source=source, generator=generator)).run()

        assert result.status == "created"
        assert result.payload["sourcesUsed"] == 10
        assert generator.calls == [("world", 10)]
        article = store.get_article(result.payload["article"]["slug"])
        assert article.slug.startswith("world-news-2025-03-14-153000-")
        assert article.is_breaking
        assert article.tickers == []
        assert len(article.source_news) == 5
        assert article.source_news[0]["title"] == "Rates cut"

    def test_failing_source_is_recorded(self, make_deps):
        source = FakeNewsSource(by_category={"general": ["Only story"]}, failing=("business",))
        result = WorldNewsPipeline(make_deps(news_source=source)).run()
        assert result.status == "created"
        assert result.payload["sourcesUsed"] == 1
        assert result.errors == ["business: business down"]

    def test_no_headlines_is_skipped(self, make_deps):
        result = WorldNewsPipeline(make_deps(news_source=FakeNewsSource())).run()
        assert result.status == "skipped"
        assert result.to_response() == {
            "ok": True,
            "skipped": True,
            "reason": "No news articles found",
            "sourcesUsed": 0,
        }

    def test_generation_failure_uses_placeholder(self, store, make_deps):
        source = FakeNewsSource(breaking=["Rates cut"])
        deps = make_deps(news_source=source, generator=FakeGenerator(fail=True))
        result = WorldNewsPipeline(deps).run()
        article = store.get_article(result.payload["article"]["slug"])
        assert article.model is None
        assert "- Rates cut" in article.body_markdown

    def test_does_not_count_toward_routine_quota(self, store, make_deps):
        WorldNewsPipeline(make_deps(news_source=FakeNewsSource(breaking=["X"]))).run()
        assert TickerScheduler(store).daily_routine_count(FIXED_NOW).count == 0


class TestMacroPipeline:
    def test_unknown_topic(self, make_deps):
        with pytest.raises(InvalidRequestError):
            MacroPipeline(make_deps()).run(topic="astrology")

    def test_requires_generator(self, make_deps):
        with pytest.raises(ConfigurationError):
            MacroPipeline(make_deps(generator=None)).run(topic="gdp")

    def test_explicit_topic(self, store, make_deps):
        result = MacroPipeline(make_deps()).run(topic="inflation")
        assert result.status == "created"
        assert result.payload["topic"] == "inflation"
        article = store.get_article(result.payload["article"]["slug"])
        assert article.slug.startswith("macro-inflation-2025-03-14-")
        assert article.title == "Macro: inflation"
        assert article.is_breaking is False

    def test_random_topic_is_configured(self, make_deps, app_config):
        generator = FakeGenerator()
        deps = make_deps(generator=generator)
        result = MacroPipeline(deps, rng=random.Random(7)).run()
        assert result.payload["topic"] in app_config.pipeline.macro_topics
        assert generator.calls == [("macro", result.payload["topic"])]

    def test_counts_toward_routine_total(self, store, make_deps):
        MacroPipeline(make_deps()).run(topic="gdp")
        assert TickerScheduler(store).daily_routine_count(FIXED_NOW).count == 1

    def test_generation_failure_uses_placeholder(self, store, make_deps):
        result = MacroPipeline(make_deps(generator=FakeGenerator(fail=True))).run(topic="fed-policy")
        article = store.get_article(result.payload["article"]["slug"])
        assert article.title == "Macro Outlook: Fed Policy — 2025-03-14"
        assert article.model is None
