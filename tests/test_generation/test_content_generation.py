"""
Tests for newsroom/generation: output parsing, the Gemini generator and
placeholder content.

What we test
------------
parse_generated_json():
  - Plain JSON and ```json fenced JSON both parse.
  - Missing fields fall back; unparseable output becomes the body.

GeminiContentGenerator (with a stand-in SDK client):
  - Sends the configured model and a prompt naming the symbol.
  - Result carries model name and prompt version.
  - SDK exceptions and empty text raise GenerationError.
  - No key and no client raises ConfigurationError.

Placeholder builders:
  - Deterministic text containing the symbol and the UTC date.
  - model is None, so the content reports itself as a placeholder.
"""

from __future__ import annotations

import json
from types import SimpleNamespace

import pytest

from conftest import FIXED_NOW, make_snapshot
from newsroom.config import GenerationConfig
from newsroom.errors import ConfigurationError, GenerationError
from newsroom.generation.gemini_client import GeminiContentGenerator, parse_generated_json
from newsroom.generation.placeholder import (
    build_macro_placeholder,
    build_placeholder_content,
    build_world_news_placeholder,
)
from newsroom.generation.prompts import build_macro_prompt, build_stock_prompt
from newsroom.models.market import WorldNewsArticle


class _StubModels:
    def __init__(self, text=None, error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.calls: list[dict] = []

    def generate_content(self, model, contents):
        self.calls.append({"model": model, "contents": contents})
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


def _generator(text=None, error=None) -> tuple[GeminiContentGenerator, _StubModels]:
    models = _StubModels(text=text, error=error)
    client = SimpleNamespace(models=models)
    config = GenerationConfig(model="gemini-test", prompt_version="v7")
    return GeminiContentGenerator(None, config, client=client), models


ARTICLE_JSON = json.dumps(
    {
        "title": "Apple Climbs",
        "excerpt": "Shares rose.",
        "body": "## What happened\nApple rose.",
        "tags": ["tech-sector", "market-analysis"],
    }
)


class TestParseGeneratedJson:
    def test_plain_json(self):
        fields = parse_generated_json(ARTICLE_JSON, "fallback", "fallback excerpt")
        assert fields["title"] == "Apple Climbs"
        assert fields["body_markdown"] == "## What happened\nApple rose."
        assert fields["tags"] == ["tech-sector", "market-analysis"]

    def test_fenced_json(self):
        fields = parse_generated_json(f"```json\n{ARTICLE_JSON}\n```", "f", "e")
        assert fields["title"] == "Apple Climbs"

    def test_missing_fields_fall_back(self):
        fields = parse_generated_json('{"body": "text"}', "Fallback", "Fallback excerpt")
        assert fields["title"] == "Fallback"
        assert fields["excerpt"] == "Fallback excerpt"
        assert fields["tags"] == ["market-update"]

    def test_invalid_json_becomes_body(self):
        fields = parse_generated_json("Just prose, no JSON.", "AAPL Market Update", "x")
        assert fields["title"] == "AAPL Market Update"
        assert fields["body_markdown"] == "Just prose, no JSON."

    def test_non_string_tags_rejected(self):
        fields = parse_generated_json('{"body": "b", "tags": [1, 2]}', "t", "e", ["macro"])
        assert fields["tags"] == ["macro"]


class TestGeminiContentGenerator:
    def test_stock_article(self):
        generator, models = _generator(text=ARTICLE_JSON)
        content = generator.generate_stock_article("AAPL", make_snapshot("AAPL", change_pct=2.0))

        assert content.title == "Apple Climbs"
        assert content.model == "gemini-test"
        assert content.prompt_version == "v7"
        assert not content.is_placeholder
        assert models.calls[0]["model"] == "gemini-test"
        assert "AAPL" in models.calls[0]["contents"]

    def test_world_news_article(self):
        generator, models = _generator(text="not json at all")
        content = generator.generate_world_news_article([WorldNewsArticle(title="Rates cut")])
        assert content.title == "World News Briefing"
        assert content.body_markdown == "not json at all"
        assert "Rates cut" in models.calls[0]["contents"]

    def test_world_news_requires_items(self):
        generator, _ = _generator(text=ARTICLE_JSON)
        with pytest.raises(GenerationError):
            generator.generate_world_news_article([])

    def test_macro_fallback_title(self):
        generator, _ = _generator(text='{"body": "text"}')
        content = generator.generate_macro_article("fed-policy")
        assert content.title == "Macro Outlook: Fed Policy"
        assert content.tags == ["macro", "fed-policy"]

    def test_sdk_error_wrapped(self):
        generator, _ = _generator(error=RuntimeError("quota exceeded"))
        with pytest.raises(GenerationError, match="quota exceeded"):
            generator.generate_stock_article("AAPL", make_snapshot("AAPL"))

    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_empty_text_raises(self, text):
        generator, _ = _generator(text=text)
        with pytest.raises(GenerationError, match="missing output text"):
            generator.generate_macro_article("gdp")

    def test_requires_key_without_client(self):
        with pytest.raises(ConfigurationError):
            GeminiContentGenerator(None)


class TestPrompts:
    def test_stock_prompt_contains_market_data(self):
        snapshot = make_snapshot("MSFT", change_pct=2.0, headlines=("Cloud growth",))
        prompt = build_stock_prompt("MSFT", snapshot, is_breaking=True)
        assert "breaking news article about MSFT" in prompt
        assert "Change: 2.00%" in prompt
        assert '"Cloud growth"' in prompt

    def test_stock_prompt_without_data(self):
        prompt = build_stock_prompt("MSFT", make_snapshot("MSFT"))
        assert "Price data unavailable" in prompt
        assert "No recent news available" in prompt

    def test_macro_prompt_describes_topic(self):
        assert "payrolls" in build_macro_prompt("employment")


class TestPlaceholders:
    def test_stock_placeholder(self):
        content = build_placeholder_content("AAPL", FIXED_NOW, is_breaking=False)
        assert content.title == "AAPL Market Update — 2025-03-14"
        assert "**AAPL**" in content.body_markdown
        assert "- Published at: 2025-03-14T15:30:00.000Z" in content.body_markdown
        assert "- Category: Routine" in content.body_markdown
        assert content.excerpt == "Routine market update for AAPL."
        assert content.model is None
        assert content.is_placeholder

    def test_breaking_placeholder(self):
        content = build_placeholder_content("TSLA", FIXED_NOW, is_breaking=True)
        assert "- Category: Breaking" in content.body_markdown
        assert content.excerpt == "Breaking update for TSLA."
        assert "breaking-news" in content.tags

    def test_placeholder_is_deterministic(self):
        assert build_placeholder_content("AAPL", FIXED_NOW) == build_placeholder_content("AAPL", FIXED_NOW)

    def test_world_news_placeholder_lists_headlines(self):
        content = build_world_news_placeholder(["One", "Two"], FIXED_NOW)
        assert "- One" in content.body_markdown
        assert "- Two" in content.body_markdown
        assert content.is_placeholder

    def test_macro_placeholder(self):
        content = build_macro_placeholder("sector-rotation", FIXED_NOW)
        assert content.title.startswith("Macro Outlook: Sector Rotation")
        assert content.tags == ["macro", "sector-rotation"]
