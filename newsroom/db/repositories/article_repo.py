"""
Repository for the ``articles`` table.

List / snapshot / score fields are stored as JSON text.  A duplicate slug
surfaces as ``PublishError`` rather than a raw ``sqlite3.IntegrityError``.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Optional

from newsroom.db.repositories.base import BaseRepository, dump_json, load_json
from newsroom.errors import PublishError
from newsroom.models.article import Article
from newsroom.models.market import MarketSnapshot
from newsroom.models.scoring import StockScore
from newsroom.utils.time_utils import parse_iso, to_iso

logger = logging.getLogger(__name__)


class ArticleRepository(BaseRepository):
    """Read/write access to published articles."""

    def insert(self, article: Article) -> int:
        """Persist ``article`` and return its new ``article_id``.

        Raises:
            PublishError: If the slug already exists.
        """
        try:
            cursor = self.execute(
                """
                INSERT INTO articles (
                    slug, title, excerpt, body_markdown, tickers, tags,
                    is_breaking, status, model, prompt_version,
                    market_snapshot, source_news, stock_score, published_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    article.slug,
                    article.title,
                    article.excerpt,
                    article.body_markdown,
                    dump_json(article.tickers),
                    dump_json(article.tags),
                    int(article.is_breaking),
                    article.status,
                    article.model,
                    article.prompt_version,
                    dump_json(
                        article.market_snapshot.model_dump(mode="json")
                        if article.market_snapshot else None
                    ),
                    dump_json(article.source_news),
                    dump_json(
                        article.stock_score.model_dump(mode="json")
                        if article.stock_score else None
                    ),
                    to_iso(article.published_at),
                ),
            )
        except sqlite3.IntegrityError as exc:
            raise PublishError(f"Article slug already exists: {article.slug}") from exc
        return int(cursor.lastrowid)

    def get_by_slug(self, slug: str) -> Optional[Article]:
        row = self.fetchone("SELECT * FROM articles WHERE slug = ?;", (slug,))
        return _row_to_article(row) if row else None

    def count_published(self, start: datetime, end: datetime, is_breaking: bool) -> int:
        """Published articles with ``start <= published_at < end``."""
        row = self.fetchone(
            """
            SELECT COUNT(*) AS n FROM articles
            WHERE status = 'published'
              AND is_breaking = ?
              AND published_at >= ?
              AND published_at < ?;
            """,
            (int(is_breaking), to_iso(start), to_iso(end)),
        )
        return int(row["n"]) if row else 0

    def list_recent(self, limit: int = 20, is_breaking: Optional[bool] = None) -> list[Article]:
        if is_breaking is None:
            rows = self.fetchall(
                "SELECT * FROM articles ORDER BY published_at DESC LIMIT ?;", (limit,)
            )
        else:
            rows = self.fetchall(
                """
                SELECT * FROM articles WHERE is_breaking = ?
                ORDER BY published_at DESC LIMIT ?;
                """,
                (int(is_breaking), limit),
            )
        return [_row_to_article(r) for r in rows]


def _row_to_article(row: sqlite3.Row) -> Article:
    snapshot_raw = load_json(row["market_snapshot"])
    score_raw = load_json(row["stock_score"])
    return Article(
        article_id=row["article_id"],
        slug=row["slug"],
        status=row["status"],
        title=row["title"],
        excerpt=row["excerpt"],
        body_markdown=row["body_markdown"],
        tickers=load_json(row["tickers"], default=[]),
        tags=load_json(row["tags"], default=[]),
        is_breaking=bool(row["is_breaking"]),
        model=row["model"],
        prompt_version=row["prompt_version"],
        market_snapshot=MarketSnapshot.model_validate(snapshot_raw) if snapshot_raw else None,
        source_news=load_json(row["source_news"]),
        stock_score=StockScore.model_validate(score_raw) if score_raw else None,
        published_at=parse_iso(row["published_at"]),
    )
