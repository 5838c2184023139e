"""
Tests for newsroom/pipeline/auth.py and newsroom/pipeline/slugs.py.

What we test
------------
Shared-secret auth:
  - Unconfigured server secret is a ConfigurationError, never AuthError.
  - Missing / wrong caller secret is AuthError.
  - x-cron-secret header and ``Authorization: Bearer`` both work.
  - Surrounding whitespace and one pair of matching quotes are ignored.

Slugs:
  - ``{prefix-}{subject}-{YYYY-MM-DD}-{HHMMSS}-{suffix}`` layout, UTC.
  - Subject normalisation collapses non-alphanumerics.
  - 1000 slugs built in the same second are all distinct.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

import pytest

from conftest import FIXED_NOW
from newsroom.errors import AuthError, ConfigurationError
from newsroom.pipeline.auth import extract_provided_secret, normalize_secret, verify_secret
from newsroom.pipeline.slugs import (
    breaking_slug,
    build_slug,
    macro_slug,
    normalize_subject,
    random_suffix,
    routine_slug,
    world_news_slug,
)


class TestNormalizeSecret:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("abc", "abc"),
            ("  abc  ", "abc"),
            ('"abc"', "abc"),
            ("'abc'", "abc"),
            ("\"abc'", "\"abc'"),
            ('""', None),
            ("   ", None),
            (None, None),
        ],
    )
    def test_values(self, raw, expected):
        assert normalize_secret(raw) == expected


class TestExtractProvidedSecret:
    def test_header_preferred(self):
        assert extract_provided_secret("from-header", "Bearer from-auth") == "from-header"

    def test_bearer_fallback(self):
        assert extract_provided_secret(None, "Bearer s3cret") == "s3cret"

    def test_bearer_is_case_insensitive(self):
        assert extract_provided_secret("", "bearer s3cret") == "s3cret"

    def test_non_bearer_authorization_ignored(self):
        assert extract_provided_secret(None, "Basic dXNlcjpwYXNz") is None

    def test_nothing_provided(self):
        assert extract_provided_secret(None, None) is None


class TestVerifySecret:
    def test_unconfigured_server_secret(self):
        with pytest.raises(ConfigurationError):
            verify_secret(None, "anything")

    def test_blank_server_secret_is_unconfigured(self):
        with pytest.raises(ConfigurationError):
            verify_secret('  ""  ', "anything")

    def test_missing_caller_secret(self):
        with pytest.raises(AuthError):
            verify_secret("s3cret", None)

    def test_wrong_caller_secret(self):
        with pytest.raises(AuthError):
            verify_secret("s3cret", "guess")

    @pytest.mark.parametrize("provided", ["s3cret", " s3cret ", '"s3cret"', "'s3cret'"])
    def test_accepted_forms(self, provided):
        verify_secret("s3cret", provided)

    def test_quoted_server_secret(self):
        verify_secret('"s3cret"', "s3cret")


class TestSlugs:
    def test_routine_layout(self):
        slug = routine_slug("AAPL", FIXED_NOW)
        assert re.fullmatch(r"aapl-2025-03-14-153000-[a-z0-9]{8}", slug)

    def test_prefixes(self):
        assert breaking_slug("TSLA", FIXED_NOW).startswith("breaking-tsla-2025-03-14-153000-")
        assert world_news_slug(FIXED_NOW).startswith("world-news-2025-03-14-153000-")
        assert macro_slug("fed-policy", FIXED_NOW).startswith("macro-fed-policy-2025-03-14-153000-")

    def test_time_is_rendered_in_utc(self):
        local = datetime(2025, 3, 14, 18, 30, tzinfo=timezone(timedelta(hours=3)))
        assert build_slug("x", local, suffix="s").startswith("x-2025-03-14-153000-")

    @pytest.mark.parametrize(
        "subject, expected",
        [("BRK.B", "brk-b"), ("  Fed / Policy!! ", "fed-policy"), ("a__b--c", "a-b-c")],
    )
    def test_normalize_subject(self, subject, expected):
        assert normalize_subject(subject) == expected

    def test_fixed_suffix(self):
        assert build_slug("AAPL", FIXED_NOW, suffix="abc12345") == "aapl-2025-03-14-153000-abc12345"

    def test_suffix_alphabet(self):
        assert re.fullmatch(r"[a-z0-9]{8}", random_suffix())

    def test_unique_within_one_second(self):
        slugs = {routine_slug("AAPL", FIXED_NOW) for _ in range(1000)}
        assert len(slugs) == 1000
