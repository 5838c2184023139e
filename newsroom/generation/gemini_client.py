"""
Gemini-backed ``ContentGenerator``.

Uses the ``google-genai`` SDK: ``client.models.generate_content(model=,
contents=)``.  The request timeout is set once on the client through
``http_options`` (milliseconds).

Any SDK exception, an empty response, or output that cannot be turned into
an article raises ``GenerationError``.  JSON that fails to parse is not an
error: the raw text becomes the body under a fallback title.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from google import genai

from newsroom.config import GenerationConfig
from newsroom.errors import ConfigurationError, GenerationError
from newsroom.generation.prompts import (
    build_macro_prompt,
    build_stock_prompt,
    build_world_news_prompt,
)
from newsroom.models.article import GeneratedContent
from newsroom.models.market import MarketSnapshot, WorldNewsArticle

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*")


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def parse_generated_json(
    text: str,
    fallback_title: str,
    fallback_excerpt: str,
    fallback_tags: Optional[list[str]] = None,
) -> dict[str, Any]:
    """Extract ``title`` / ``excerpt`` / ``body`` / ``tags`` from model output.

    Missing or empty fields fall back to the given defaults; unparseable
    output is used verbatim as the body.

    Returns:
        Dict with keys ``title``, ``excerpt``, ``body_markdown``, ``tags``.
    """
    tags_default = fallback_tags or ["market-update"]
    cleaned = strip_code_fences(text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        parsed = None
    if not isinstance(parsed, dict):
        logger.warning("Model output was not a JSON object; using raw text as body")
        parsed = {}

    tags = parsed.get("tags")
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags) or not tags:
        tags = tags_default

    return {
        "title": str(parsed.get("title") or "").strip() or fallback_title,
        "excerpt": str(parsed.get("excerpt") or "").strip() or fallback_excerpt,
        "body_markdown": str(parsed.get("body") or "").strip() or text.strip(),
        "tags": tags,
    }


class GeminiContentGenerator:
    """Article generator over Gemini.

    Args:
        api_key: Gemini API key.
        config: Model, prompt version and timeout settings.
        client: Pre-built ``genai.Client`` (tests pass a stand-in).

    Raises:
        ConfigurationError: If no ``api_key`` and no ``client`` are given.
    """

    def __init__(
        self,
        api_key: Optional[str],
        config: Optional[GenerationConfig] = None,
        client: Any = None,
    ) -> None:
        self.config = config or GenerationConfig()
        self.model = self.config.model
        if client is not None:
            self._client = client
        else:
            if not api_key:
                raise ConfigurationError("GEMINI_API_KEY must be set")
            timeout_ms = int(self.config.timeout_seconds * 1000)
            self._client = genai.Client(api_key=api_key, http_options={"timeout": timeout_ms})

    def generate_stock_article(
        self, symbol: str, snapshot: MarketSnapshot, is_breaking: bool = False
    ) -> GeneratedContent:
        prompt = build_stock_prompt(
            symbol, snapshot, is_breaking, news_items=self.config.news_context_items
        )
        text = self._generate(prompt)
        fields = parse_generated_json(
            text,
            fallback_title=f"{symbol} Market Update",
            fallback_excerpt=f"Market analysis for {symbol}.",
        )
        return self._content(fields)

    def generate_world_news_article(
        self, news_items: list[WorldNewsArticle]
    ) -> GeneratedContent:
        if not news_items:
            raise GenerationError("No news items to summarise")
        text = self._generate(build_world_news_prompt(news_items))
        fields = parse_generated_json(
            text,
            fallback_title="World News Briefing",
            fallback_excerpt="The top world headlines and what they mean for markets.",
            fallback_tags=["world-news", "breaking-news"],
        )
        return self._content(fields)

    def generate_macro_article(self, topic: str) -> GeneratedContent:
        text = self._generate(build_macro_prompt(topic))
        label = topic.replace("-", " ").title()
        fields = parse_generated_json(
            text,
            fallback_title=f"Macro Outlook: {label}",
            fallback_excerpt=f"An overview of {label.lower()} and its market impact.",
            fallback_tags=["macro", topic],
        )
        return self._content(fields)

    def _generate(self, prompt: str) -> str:
        try:
            response = self._client.models.generate_content(
                model=self.model,
                contents=prompt,
            )
        except Exception as exc:
            raise GenerationError(f"Gemini request failed: {exc}") from exc

        text = getattr(response, "text", None)
        if not text or not text.strip():
            raise GenerationError("Gemini response missing output text")
        logger.info("Gemini response | model=%s | chars=%d", self.model, len(text))
        return text

    def _content(self, fields: dict[str, Any]) -> GeneratedContent:
        return GeneratedContent(
            **fields,
            model=self.model,
            prompt_version=self.config.prompt_version,
        )
