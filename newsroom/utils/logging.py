"""
Logging setup for the Market Newsroom.

``configure_logging(config)`` runs once at process entry (a CLI command or
``create_app()``). Library modules only ever call
``logging.getLogger(__name__)``.

Every record passing through the configured handlers is stamped with the
pipeline name and run id of the run that emitted it (``-`` outside a run),
so interleaved cron invocations can be told apart::

    2025-03-14T15:30:00Z [INFO] newsroom.pipeline.routine (routine 3f2a9c01b7de): Selected symbol: AAPL

With ``json_format = true`` each line is one JSON object carrying the same
fields plus anything passed via ``extra=``.
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from newsroom.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s (%(pipeline)s %(run_id)s): %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_NO_RUN = ("-", "-")
_current_run: ContextVar[tuple[str, str]] = ContextVar("newsroom_run", default=_NO_RUN)

_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


@contextmanager
def pipeline_context(pipeline: str, run_id: str) -> Iterator[None]:
    """Tag log records emitted inside the block with ``pipeline`` / ``run_id``."""
    token = _current_run.set((pipeline, run_id))
    try:
        yield
    finally:
        _current_run.reset(token)


def current_run() -> tuple[str, str]:
    return _current_run.get()


class RunContextFilter(logging.Filter):
    """Attach ``pipeline`` and ``run_id`` attributes; never drops a record."""

    def filter(self, record: logging.LogRecord) -> bool:
        pipeline, run_id = _current_run.get()
        if not hasattr(record, "pipeline"):
            record.pipeline = pipeline
        if not hasattr(record, "run_id"):
            record.run_id = run_id
        return True


class JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                LOG_DATE_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key, val in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = val
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _build_handler(handler: logging.Handler, level: int, json_format: bool) -> logging.Handler:
    handler.setLevel(level)
    handler.addFilter(RunContextFilter())
    if json_format:
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    return handler


def configure_logging(config: "LoggingConfig") -> None:
    """Configure the root logger from the ``[logging]`` config section.

    Console output goes to stdout. ``log_file`` adds a UTF-8 file handler
    (parent directories are created). Repeated calls replace the handlers.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)

    handlers = [_build_handler(logging.StreamHandler(sys.stdout), level, config.json_format)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            _build_handler(
                logging.FileHandler(log_path, encoding="utf-8"), level, config.json_format
            )
        )

    logging.basicConfig(level=level, handlers=handlers, force=True)

    # Provider SDKs log every request at INFO.
    for name in ("httpx", "httpcore", "google_genai", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.WARNING)
