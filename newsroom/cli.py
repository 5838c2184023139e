"""
Market Newsroom CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Execute the action (DB init, ticker admin, pipeline run, server).
  4. Report the result to stdout (pipelines print their JSON result).

Pipeline commands run with operator access and skip the HTTP shared secret.

Install and run::

    pip install -e .
    newsroom --help
    newsroom init-db
    newsroom add-ticker AAPL --priority 5
    newsroom run-routine
    newsroom run-breaking
    newsroom serve --port 8080
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="newsroom",
    help="Market Newsroom: market-driven article selection, scoring and publishing.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from newsroom.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    from newsroom.utils.logging import configure_logging
    configure_logging(config.logging)


def _store(config):
    from newsroom.db.store import SqliteContentStore

    store = SqliteContentStore.from_config(config.database)
    store.initialize()
    return store


def _deps_or_exit(config):
    from newsroom.config import load_secrets
    from newsroom.pipeline.base import build_dependencies

    return build_dependencies(config, load_secrets(), store=_store(config))


def _run_pipeline(pipeline, **kwargs) -> None:
    """Run ``pipeline``, print its JSON result, exit 1 on failure."""
    from newsroom.errors import ConfigurationError, InvalidRequestError

    try:
        result = pipeline.run(**kwargs)
    except (ConfigurationError, InvalidRequestError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(json.dumps(result.to_response(), indent=2, default=str))
    if not result.ok:
        raise typer.Exit(code=1)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Create the content store tables. Safe to run repeatedly."""
    from newsroom.db.schema import ALL_TABLE_NAMES

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    typer.echo(f"Initializing database at: {config.database.db_path}")
    _store(config)
    typer.echo(f"  Tables: {len(ALL_TABLE_NAMES)} created/verified.")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
    show_full: bool = typer.Option(False, "--full", help="Print the full config as JSON."),
) -> None:
    """Validate configuration and report which credentials are present."""
    from newsroom.config import load_secrets

    config = _load_config_or_exit(config_path)
    secrets = load_secrets()

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Database path:     {config.database.db_path}")
    typer.echo(f"  News provider:     {config.news.provider}")
    typer.echo(f"  Model:             {config.generation.model}")
    typer.echo(f"  Daily routine cap: {config.pipeline.daily_routine_cap}")
    typer.echo(f"  Watchlist size:    {len(config.pipeline.breaking_watchlist)}")
    typer.echo(f"  Log level:         {config.logging.level}")
    typer.echo("")
    typer.echo(f"  CRON_SECRET:       {'set' if secrets.cron_secret else 'MISSING'}")
    typer.echo(f"  Alpaca keys:       {'set' if secrets.has_alpaca_keys else 'MISSING'}")
    typer.echo(f"  GEMINI_API_KEY:    {'set' if secrets.gemini_api_key else 'MISSING'}")
    typer.echo(f"  NEWSAPI_KEY:       {'set' if secrets.newsapi_key else 'MISSING'}")

    if show_full:
        typer.echo("")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("add-ticker")
def add_ticker(
    symbol: str = typer.Argument(..., help="Ticker symbol, e.g. AAPL."),
    priority: int = typer.Option(0, "--priority", help="Higher is covered sooner."),
    inactive: bool = typer.Option(False, "--inactive", help="Track but never pick."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Add a ticker or update its priority / activity."""
    from newsroom.models.article import Ticker

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    ticker = Ticker(symbol=symbol, priority=priority, is_active=not inactive)
    _store(config).upsert_ticker(ticker)
    typer.echo(f"[OK] {ticker.symbol} | priority={ticker.priority} | active={ticker.is_active}")


@app.command("list-tickers")
def list_tickers(
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """List tracked tickers in routine selection order."""
    from newsroom.scheduling.ticker_scheduler import selection_key

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    tickers = sorted(_store(config).list_tickers(), key=selection_key)
    if not tickers:
        typer.echo("No tickers tracked. Add one with: newsroom add-ticker SYMBOL")
        return

    typer.echo(f"{'SYMBOL':<8} {'ACTIVE':<7} {'PRIORITY':>8}  LAST ARTICLE")
    for t in tickers:
        last = t.last_article_at.isoformat() if t.last_article_at else "never"
        typer.echo(f"{t.symbol:<8} {str(t.is_active):<7} {t.priority:>8}  {last}")


@app.command("score")
def score(
    symbol: str = typer.Argument(..., help="Ticker symbol."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Fetch a snapshot for SYMBOL and print its signal rating."""
    from newsroom.config import load_secrets
    from newsroom.errors import ConfigurationError
    from newsroom.ingestion.alpaca_client import AlpacaMarketDataClient
    from newsroom.scoring.formatting import format_score_for_article
    from newsroom.scoring.scorer import SignalScorer

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    secrets = load_secrets()

    try:
        client = AlpacaMarketDataClient(
            secrets.alpaca_api_key, secrets.alpaca_api_secret, config.market_data
        )
    except ConfigurationError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    with client:
        snapshot = client.fetch_snapshot(symbol)
    result = SignalScorer(high_volume=config.pipeline.baseline_volume).score(snapshot)
    typer.echo(format_score_for_article(result))


@app.command("detect")
def detect(
    symbols: Optional[list[str]] = typer.Argument(None, help="Symbols (default: watchlist)."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Run breaking-event detection only; nothing is published."""
    from newsroom.config import load_secrets
    from newsroom.detection.breaking import BreakingEventDetector
    from newsroom.errors import ConfigurationError
    from newsroom.ingestion.alpaca_client import AlpacaMarketDataClient

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    secrets = load_secrets()

    try:
        client = AlpacaMarketDataClient(
            secrets.alpaca_api_key, secrets.alpaca_api_secret, config.market_data
        )
    except ConfigurationError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    with client:
        detector = BreakingEventDetector(
            client,
            baseline_volume=config.pipeline.baseline_volume,
            max_workers=config.pipeline.detection_workers,
        )
        events = detector.detect(symbols or list(config.pipeline.breaking_watchlist))

    if not events:
        typer.echo("No breaking events detected.")
        return
    for e in events:
        typer.echo(f"{e.symbol:<6} {e.severity.value:<6} {e.price_change:+7.2f}%  {e.reason}")


@app.command("run-routine")
def run_routine(
    symbol: Optional[str] = typer.Option(None, "--symbol", help="Cover this symbol instead of the scheduler's pick."),
    breaking: bool = typer.Option(False, "--breaking", help="Publish as breaking (bypasses the daily cap)."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Run the routine article pipeline once."""
    from newsroom.pipeline.routine import RoutinePipeline

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    _run_pipeline(RoutinePipeline(_deps_or_exit(config)), symbol=symbol, is_breaking=breaking)


@app.command("run-breaking")
def run_breaking(
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Run the breaking-news pipeline once."""
    from newsroom.pipeline.breaking import BreakingPipeline

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    _run_pipeline(BreakingPipeline(_deps_or_exit(config)))


@app.command("run-world-news")
def run_world_news(
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Run the world-news pipeline once."""
    from newsroom.pipeline.world_news import WorldNewsPipeline

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    _run_pipeline(WorldNewsPipeline(_deps_or_exit(config)))


@app.command("run-macro")
def run_macro(
    topic: Optional[str] = typer.Option(None, "--topic", help="Macro topic (default: random)."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Run the macro article pipeline once."""
    from newsroom.pipeline.macro import MacroPipeline

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    _run_pipeline(MacroPipeline(_deps_or_exit(config)), topic=topic)


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind host (default from config)."),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port (default from config)."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Serve the pipeline endpoints over HTTP (uvicorn)."""
    import uvicorn

    from newsroom.api.app import create_app

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    uvicorn.run(
        create_app(config),
        host=host or config.server.host,
        port=port or config.server.port,
        log_config=None,
    )


if __name__ == "__main__":
    app()
