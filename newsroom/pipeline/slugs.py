"""
Article slug construction.

Format: ``{prefix-}{subject}-{YYYY-MM-DD}-{HHMMSS}-{suffix}``

  - subject: lower-cased, every run of characters outside ``[a-z0-9]``
    collapsed to one hyphen, leading/trailing hyphens trimmed.
  - date/time: UTC.
  - suffix: 8 random ``[a-z0-9]`` characters.

Uniqueness is probabilistic (36**8 suffixes per second per subject); the
content store's UNIQUE constraint catches the rest as ``PublishError``.
"""

from __future__ import annotations

import re
import secrets
import string
from datetime import datetime
from typing import Optional

from newsroom.utils.time_utils import ensure_utc

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
SUFFIX_LENGTH = 8


def normalize_subject(subject: str) -> str:
    return _NON_ALNUM_RE.sub("-", subject.lower()).strip("-")


def random_suffix(length: int = SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(length))


def build_slug(
    subject: Optional[str],
    now: datetime,
    prefix: Optional[str] = None,
    suffix: Optional[str] = None,
) -> str:
    """Assemble a slug; ``subject`` may be ``None`` (world news)."""
    now = ensure_utc(now)
    parts = []
    if prefix:
        parts.append(normalize_subject(prefix))
    if subject:
        normalized = normalize_subject(subject)
        if normalized:
            parts.append(normalized)
    parts.append(now.strftime("%Y-%m-%d"))
    parts.append(now.strftime("%H%M%S"))
    parts.append(suffix or random_suffix())
    return "-".join(parts)


def routine_slug(symbol: str, now: datetime) -> str:
    return build_slug(symbol, now)


def breaking_slug(symbol: str, now: datetime) -> str:
    return build_slug(symbol, now, prefix="breaking")


def world_news_slug(now: datetime) -> str:
    return build_slug(None, now, prefix="world-news")


def macro_slug(topic: str, now: datetime) -> str:
    return build_slug(topic, now, prefix="macro")
