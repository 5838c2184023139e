"""
Deterministic placeholder content, used whenever AI generation is
unavailable or fails.  Output depends only on the arguments, so tests can
assert on exact text.
"""

from __future__ import annotations

from datetime import datetime

from newsroom.models.article import GeneratedContent
from newsroom.utils.time_utils import ensure_utc, to_iso

PLACEHOLDER_PROMPT_VERSION = "v0"


def build_placeholder_content(
    symbol: str,
    published_at: datetime,
    is_breaking: bool = False,
) -> GeneratedContent:
    """Placeholder stock article naming ``symbol`` and the publish date."""
    published_at = ensure_utc(published_at)
    title = f"{symbol} Market Update — {published_at.date().isoformat()}"
    category = "Breaking" if is_breaking else "Routine"
    body = "\n".join([
        f"# {title}",
        "",
        f"This is an auto-generated placeholder article for **{symbol}**.",
        "",
        "## Key points",
        f"- Published at: {to_iso(published_at)}",
        f"- Category: {category}",
        "",
        "## Next steps",
        "- Full analysis will follow once the content service is available.",
    ])
    excerpt = (
        f"Breaking update for {symbol}." if is_breaking
        else f"Routine market update for {symbol}."
    )
    tags = ["breaking-news", "market-update"] if is_breaking else ["market-update"]
    return GeneratedContent(
        title=title,
        excerpt=excerpt,
        body_markdown=body,
        tags=tags,
        model=None,
        prompt_version=PLACEHOLDER_PROMPT_VERSION,
    )


def build_world_news_placeholder(
    headlines: list[str],
    published_at: datetime,
) -> GeneratedContent:
    """Placeholder briefing listing the collected headlines verbatim."""
    published_at = ensure_utc(published_at)
    title = f"World News Briefing — {published_at.date().isoformat()}"
    lines = [
        f"# {title}",
        "",
        "This is an auto-generated placeholder briefing.",
        "",
        "## Top headlines",
    ]
    lines += [f"- {headline}" for headline in headlines]
    lines += ["", f"Published at: {to_iso(published_at)}"]
    return GeneratedContent(
        title=title,
        excerpt="Today's top world headlines.",
        body_markdown="\n".join(lines),
        tags=["world-news", "breaking-news"],
        model=None,
        prompt_version=PLACEHOLDER_PROMPT_VERSION,
    )


def build_macro_placeholder(topic: str, published_at: datetime) -> GeneratedContent:
    published_at = ensure_utc(published_at)
    label = topic.replace("-", " ").title()
    title = f"Macro Outlook: {label} — {published_at.date().isoformat()}"
    body = "\n".join([
        f"# {title}",
        "",
        f"This is an auto-generated placeholder article on **{label}**.",
        "",
        f"- Published at: {to_iso(published_at)}",
        "- Category: Macro",
    ])
    return GeneratedContent(
        title=title,
        excerpt=f"Macro update: {label}.",
        body_markdown=body,
        tags=["macro", topic],
        model=None,
        prompt_version=PLACEHOLDER_PROMPT_VERSION,
    )
