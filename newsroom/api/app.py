"""
HTTP surface for the pipelines (FastAPI).

    POST /pipelines/routine     {symbol?, isBreaking?}
    POST /pipelines/breaking
    POST /pipelines/world-news
    POST /pipelines/macro       {topic?}
    GET  /health

Status codes:
  401  missing or wrong shared secret            {"ok": false, "error": "Unauthorized"}
  500  secret or required API key not configured {"ok": false, "error": ...}
  400  invalid body / unknown topic              {"ok": false, "error": ...}
  200  everything else, including downstream failures (``ok: false``)

Run with ``newsroom serve`` or ``uvicorn --factory newsroom.api.app:create_app``.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from newsroom import __version__
from newsroom.config import AppConfig, Secrets, load_config, load_secrets
from newsroom.errors import AuthError, ConfigurationError, InvalidRequestError
from newsroom.pipeline.auth import extract_provided_secret, verify_secret
from newsroom.pipeline.base import PipelineDeps, PipelineResult, build_dependencies
from newsroom.pipeline.breaking import BreakingPipeline
from newsroom.pipeline.macro import MacroPipeline
from newsroom.pipeline.routine import RoutinePipeline
from newsroom.pipeline.world_news import WorldNewsPipeline
from newsroom.utils.logging import configure_logging
from newsroom.utils.time_utils import to_iso, utcnow

logger = logging.getLogger(__name__)

SERVICE_NAME = "newsroom"


class RoutineRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    symbol: Optional[str] = Field(default=None, min_length=1)
    isBreaking: Optional[bool] = None


class MacroRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    topic: Optional[str] = Field(default=None, min_length=1)


def create_app(
    config: Optional[AppConfig] = None,
    secrets: Optional[Secrets] = None,
    deps: Optional[PipelineDeps] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Loaded config; ``load_config()`` when omitted.
        secrets: Credentials; ``load_secrets()`` when omitted.
        deps: Pre-wired pipeline dependencies (tests inject fakes here).
    """
    if config is None:
        config = load_config()
        configure_logging(config.logging)
    if secrets is None:
        secrets = load_secrets()
    if deps is None:
        deps = build_dependencies(config, secrets)
        initialize = getattr(deps.store, "initialize", None)
        if initialize is not None:
            initialize()

    app = FastAPI(title="Market Newsroom", version=__version__)
    app.state.config = config
    app.state.secrets = secrets
    app.state.deps = deps

    _register_error_handlers(app)

    def require_cron_secret(request: Request) -> None:
        provided = extract_provided_secret(
            request.headers.get("x-cron-secret"),
            request.headers.get("authorization"),
        )
        verify_secret(request.app.state.secrets.cron_secret, provided)

    @app.get("/health")
    def health(request: Request) -> dict:
        s: Secrets = request.app.state.secrets
        return {
            "ok": True,
            "service": SERVICE_NAME,
            "now": to_iso(utcnow()),
            "env": {
                "hasCronSecret": bool(s.cron_secret),
                "hasAlpacaKeys": s.has_alpaca_keys,
                "hasGeminiKey": bool(s.gemini_api_key),
                "hasNewsApiKey": bool(s.newsapi_key),
            },
        }

    @app.post("/pipelines/routine", dependencies=[Depends(require_cron_secret)])
    def run_routine(request: Request, body: Optional[RoutineRequest] = None) -> JSONResponse:
        body = body or RoutineRequest()
        result = RoutinePipeline(request.app.state.deps).run(
            symbol=body.symbol, is_breaking=bool(body.isBreaking)
        )
        return _respond(result)

    @app.post("/pipelines/breaking", dependencies=[Depends(require_cron_secret)])
    def run_breaking(request: Request) -> JSONResponse:
        return _respond(BreakingPipeline(request.app.state.deps).run())

    @app.post("/pipelines/world-news", dependencies=[Depends(require_cron_secret)])
    def run_world_news(request: Request) -> JSONResponse:
        return _respond(WorldNewsPipeline(request.app.state.deps).run())

    @app.post("/pipelines/macro", dependencies=[Depends(require_cron_secret)])
    def run_macro(request: Request, body: Optional[MacroRequest] = None) -> JSONResponse:
        body = body or MacroRequest()
        return _respond(MacroPipeline(request.app.state.deps).run(topic=body.topic))

    return app


def _respond(result: PipelineResult) -> JSONResponse:
    return JSONResponse(status_code=200, content=result.to_response())


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthError)
    def on_auth_error(request: Request, exc: AuthError) -> JSONResponse:
        logger.warning("Rejected %s: bad or missing secret", request.url.path)
        return _error(401, "Unauthorized")

    @app.exception_handler(ConfigurationError)
    def on_config_error(request: Request, exc: ConfigurationError) -> JSONResponse:
        return _error(500, str(exc))

    @app.exception_handler(InvalidRequestError)
    def on_invalid_request(request: Request, exc: InvalidRequestError) -> JSONResponse:
        return _error(400, str(exc))

    @app.exception_handler(RequestValidationError)
    def on_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, "Invalid request body")
