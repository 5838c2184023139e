"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      : committed static defaults
  2. ``config/local.toml``        : optional local overrides (gitignored)
  3. ``.env``                     : local secrets and env overrides (gitignored)
  4. Environment variables        : ``NEWSROOM_*`` prefix

Entry points:
  ``load_config(config_path=None) -> AppConfig``
  ``load_secrets() -> Secrets``

Secrets (cron secret, provider API keys) never live in TOML.  They are read
from the environment by ``load_secrets()`` and checked by whichever
component needs them, at the moment it needs them.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class DatabaseConfig(BaseModel):
    """SQLite content store connection settings."""

    model_config = ConfigDict(frozen=True)

    db_path: str = "data/db/newsroom.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000


class MarketDataConfig(BaseModel):
    """Alpaca market data endpoints and limits."""

    model_config = ConfigDict(frozen=True)

    data_url: str = "https://data.alpaca.markets"
    news_url: str = "https://data.alpaca.markets/v1beta1/news"
    news_limit: int = 5
    timeout_seconds: float = 10.0
    previous_close_lookback_days: int = 5


class NewsConfig(BaseModel):
    """General (world) news source settings."""

    model_config = ConfigDict(frozen=True)

    provider: str = "newsapi"
    base_url: str = "https://newsapi.org/v2"
    country: str = "us"
    categories: list[str] = ["business", "general"]
    page_size: int = 5
    breaking_page_size: int = 20
    max_items: int = 10
    timeout_seconds: float = 10.0
    rss_feeds: dict[str, str] = {
        "breaking": "https://feeds.bbci.co.uk/news/world/rss.xml",
        "business": "https://feeds.bbci.co.uk/news/business/rss.xml",
        "general": "https://feeds.bbci.co.uk/news/rss.xml",
    }

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        valid = {"newsapi", "rss"}
        if v.lower() not in valid:
            raise ValueError(f"News provider must be one of {sorted(valid)}, got '{v}'.")
        return v.lower()

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, v: list[str]) -> list[str]:
        if not 1 <= len(v) <= 3:
            raise ValueError(f"categories must list 1-3 entries, got {len(v)}.")
        return v


class GenerationConfig(BaseModel):
    """AI text generation settings."""

    model_config = ConfigDict(frozen=True)

    model: str = "gemini-2.0-flash"
    prompt_version: str = "v1"
    timeout_seconds: float = 30.0
    news_context_items: int = 3


class PipelineConfig(BaseModel):
    """Quota, watchlist and fan-out parameters for the article pipelines."""

    model_config = ConfigDict(frozen=True)

    daily_routine_cap: int = 50
    breaking_max_events: int = 3
    breaking_watchlist: list[str] = [
        "AAPL", "MSFT", "GOOGL", "AMZN", "TSLA", "META", "NVDA", "JPM",
        "JNJ", "V", "PG", "UNH", "HD", "MA", "BAC", "XOM", "CVX", "PFE",
        "CSCO", "ADBE", "NFLX", "CRM", "KO", "PEP", "TMO",
    ]
    detection_workers: int = 5
    baseline_volume: float = 1_000_000
    macro_topics: list[str] = [
        "fed-policy", "inflation", "employment", "gdp",
        "global-markets", "commodities", "crypto-market", "sector-rotation",
    ]

    @field_validator("daily_routine_cap", "breaking_max_events")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Pipeline limits must be >= 0, got {v}.")
        return v

    @field_validator("detection_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"detection_workers must be >= 1, got {v}.")
        return v

    @field_validator("baseline_volume")
    @classmethod
    def validate_baseline(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"baseline_volume must be > 0, got {v}.")
        return v


class CacheConfig(BaseModel):
    """Downstream cache invalidation (site revalidation webhook)."""

    model_config = ConfigDict(frozen=True)

    revalidate_url: Optional[str] = None
    timeout_seconds: float = 5.0


class ServerConfig(BaseModel):
    """HTTP server bind settings for ``newsroom serve``."""

    model_config = ConfigDict(frozen=True)

    host: str = "127.0.0.1"
    port: int = 8080


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/newsroom.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration. Single source of truth.

    Pipelines, the HTTP app and CLI commands all receive an ``AppConfig``
    instance.  It is constructed by ``load_config()`` which merges TOML + .env.
    """

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = DatabaseConfig()
    market_data: MarketDataConfig = MarketDataConfig()
    news: NewsConfig = NewsConfig()
    generation: GenerationConfig = GenerationConfig()
    pipeline: PipelineConfig = PipelineConfig()
    cache: CacheConfig = CacheConfig()
    server: ServerConfig = ServerConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


class Secrets(BaseModel):
    """Credentials read from the environment.  ``None`` means not configured."""

    model_config = ConfigDict(frozen=True)

    cron_secret: Optional[str] = None
    alpaca_api_key: Optional[str] = None
    alpaca_api_secret: Optional[str] = None
    gemini_api_key: Optional[str] = None
    newsapi_key: Optional[str] = None

    @property
    def has_alpaca_keys(self) -> bool:
        return bool(self.alpaca_api_key and self.alpaca_api_secret)


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply NEWSROOM_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def load_secrets() -> Secrets:
    """Read credentials from the process environment.

    Call after ``load_config()`` so that ``.env`` values are visible.
    Empty strings are treated as not configured.
    """
    def _get(name: str) -> Optional[str]:
        value = os.environ.get(name, "").strip()
        return value or None

    return Secrets(
        cron_secret=_get("CRON_SECRET"),
        alpaca_api_key=_get("ALPACA_API_KEY"),
        alpaca_api_secret=_get("ALPACA_API_SECRET"),
        gemini_api_key=_get("GEMINI_API_KEY"),
        newsapi_key=_get("NEWSAPI_KEY"),
    )


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply NEWSROOM_* env vars to the raw config dict.

    Supported overrides:
      NEWSROOM_DB_PATH    → raw["database"]["db_path"]
      NEWSROOM_LOG_LEVEL  → raw["logging"]["level"]
      NEWSROOM_DAILY_CAP  → raw["pipeline"]["daily_routine_cap"]
      NEWSROOM_DEBUG      → raw["debug"]
    """
    if db_path := os.environ.get("NEWSROOM_DB_PATH"):
        raw.setdefault("database", {})["db_path"] = db_path

    if log_level := os.environ.get("NEWSROOM_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if daily_cap := os.environ.get("NEWSROOM_DAILY_CAP"):
        raw.setdefault("pipeline", {})["daily_routine_cap"] = int(daily_cap)

    if debug := os.environ.get("NEWSROOM_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        database=DatabaseConfig(**raw.get("database", {})),
        market_data=MarketDataConfig(**raw.get("market_data", {})),
        news=NewsConfig(**raw.get("news", {})),
        generation=GenerationConfig(**raw.get("generation", {})),
        pipeline=PipelineConfig(**raw.get("pipeline", {})),
        cache=CacheConfig(**raw.get("cache", {})),
        server=ServerConfig(**raw.get("server", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
