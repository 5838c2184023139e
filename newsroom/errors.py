"""
Error taxonomy for the newsroom core.

Each class maps to one recovery policy:

  ``ConfigurationError``  missing secret / API key. Fatal, HTTP 500, no fallback.
  ``AuthError``           bad or missing caller secret. HTTP 401, no detail.
  ``UpstreamFetchError``  market data / news provider failure. Recovered
                          locally (null-safe snapshot fields, per-symbol skip).
  ``GenerationError``     AI content failure. Recovered with placeholder content.
  ``PublishError``        content-store write failure. Reported as ``ok: false``.
  ``PipelineCancelled``   the invoking scheduler cancelled the run.
  ``InvalidRequestError`` caller parameter out of range. HTTP 400.
"""

from __future__ import annotations


class NewsroomError(Exception):
    """Base class for all newsroom errors."""


class ConfigurationError(NewsroomError):
    """A required secret or setting is not configured."""


class AuthError(NewsroomError):
    """Caller failed shared-secret authentication."""


class UpstreamFetchError(NewsroomError):
    """An external data provider could not be reached or answered badly."""

    def __init__(self, message: str, provider: str | None = None):
        super().__init__(message)
        self.provider = provider


class GenerationError(NewsroomError):
    """The AI text service failed or returned unusable output."""


class PublishError(NewsroomError):
    """The content store rejected or failed a write."""


class PipelineCancelled(NewsroomError):
    """Raised at a checkpoint once the run's cancel event has been set."""


class InvalidRequestError(NewsroomError):
    """A caller-supplied parameter is outside the accepted values."""
