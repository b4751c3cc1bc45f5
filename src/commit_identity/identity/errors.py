"""Errors raised by matchers.

Transport and API failures are not wrapped: they reach the caller as the
original httpx exceptions.
"""

from __future__ import annotations

from datetime import datetime

from commit_identity.models.identity import RateLimitSignal


class MatcherError(Exception):
    """Base class for matcher errors."""


class NoMatchesError(MatcherError):
    """The directory search succeeded but found no candidate accounts."""

    def __init__(self, email: str) -> None:
        super().__init__(f"no matches found for {email}")
        self.email = email


class MatchCanceledError(MatcherError):
    """The caller's cancellation fired before the lookup completed."""

    def __init__(self) -> None:
        super().__init__("identity lookup canceled")


class UnsupportedOperationError(MatcherError, NotImplementedError):
    """The backend does not implement the requested capability."""


class UnknownPlatformError(MatcherError, ValueError):
    def __init__(self, platform: str) -> None:
        super().__init__(f"unknown platform: {platform!r}")
        self.platform = platform


class QuotaExhaustedError(MatcherError):
    """API quota exhausted. Absorbed by the retry loop, never seen by callers."""

    def __init__(self, signal: RateLimitSignal) -> None:
        super().__init__(f"rate limit exceeded until {signal.reset_at.isoformat()}")
        self.signal = signal

    @property
    def reset_at(self) -> datetime:
        return self.signal.reset_at
