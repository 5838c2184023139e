"""
NewsAPI client for general (world) headlines.

Endpoint: ``GET {base_url}/top-headlines?apiKey&category&country&pageSize``

Two queries feed the world-news pipeline:
  - ``fetch_top_headlines(category)``: per-category headlines.
  - ``fetch_breaking()``: a wider ``general`` page filtered by breaking-news
    keywords, falling back to its first 5 items when nothing matches.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from newsroom.config import NewsConfig
from newsroom.errors import ConfigurationError, UpstreamFetchError
from newsroom.models.market import WorldNewsArticle

logger = logging.getLogger(__name__)

_PROVIDER = "newsapi"

BREAKING_KEYWORDS: tuple[str, ...] = (
    "breaking", "urgent", "developing", "just in", "alert", "exclusive", "update",
)
BREAKING_FALLBACK_COUNT = 5


def filter_breaking(articles: list[WorldNewsArticle]) -> list[WorldNewsArticle]:
    """Keep articles whose title or description mentions a breaking keyword.

    Falls back to the first ``BREAKING_FALLBACK_COUNT`` articles when none match.
    """
    matches = [
        a for a in articles
        if any(
            kw in a.title.lower() or kw in (a.description or "").lower()
            for kw in BREAKING_KEYWORDS
        )
    ]
    return matches if matches else articles[:BREAKING_FALLBACK_COUNT]


class NewsAPIClient:
    """Synchronous NewsAPI client.

    Args:
        api_key: NewsAPI key.
        config: News source settings.
        transport: Optional httpx transport for tests.

    Raises:
        ConfigurationError: If ``api_key`` is missing.
    """

    def __init__(
        self,
        api_key: Optional[str],
        config: Optional[NewsConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("NEWSAPI_KEY must be set")
        self._api_key = api_key
        self.config = config or NewsConfig()
        self._client = httpx.Client(timeout=self.config.timeout_seconds, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "NewsAPIClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def fetch_top_headlines(
        self, category: str, page_size: Optional[int] = None
    ) -> list[WorldNewsArticle]:
        params = {
            "apiKey": self._api_key,
            "category": category,
            "country": self.config.country,
            "pageSize": str(page_size or self.config.page_size),
        }
        return self._fetch(params)

    def fetch_breaking(self) -> list[WorldNewsArticle]:
        articles = self.fetch_top_headlines(
            "general", page_size=self.config.breaking_page_size
        )
        return filter_breaking(articles)

    def _fetch(self, params: dict[str, str]) -> list[WorldNewsArticle]:
        url = f"{self.config.base_url}/top-headlines"
        try:
            resp = self._client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(f"NewsAPI request failed: {exc}", provider=_PROVIDER) from exc

        if resp.status_code >= 400:
            # Never echo the request URL: it carries the API key.
            raise UpstreamFetchError(
                f"NewsAPI error: {resp.status_code}", provider=_PROVIDER
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamFetchError("NewsAPI returned invalid JSON", provider=_PROVIDER) from exc

        return [
            article
            for raw in data.get("articles") or []
            if (article := _parse_article(raw)) is not None
        ]


def _parse_article(raw: dict[str, Any]) -> Optional[WorldNewsArticle]:
    title = (raw.get("title") or "").strip()
    if not title:
        return None
    try:
        return WorldNewsArticle(
            title=title,
            description=raw.get("description"),
            source=(raw.get("source") or {}).get("name") or "",
            url=raw.get("url") or "",
            image_url=raw.get("urlToImage"),
            published_at=raw.get("publishedAt"),
            content=raw.get("content"),
        )
    except ValidationError as exc:
        logger.debug("Skipping malformed NewsAPI article '%s': %s", title, exc)
        return None
