"""Matchers — resolve commit author emails to hosted platform accounts."""

from __future__ import annotations

import httpx

from commit_identity.identity.base import Matcher
from commit_identity.identity.cancel import run_cancellable
from commit_identity.identity.errors import (
    MatchCanceledError,
    MatcherError,
    NoMatchesError,
    UnknownPlatformError,
    UnsupportedOperationError,
)
from commit_identity.identity.github import GitHubMatcher
from commit_identity.identity.gitlab import GitLabMatcher

_MATCHERS: dict[str, type[Matcher]] = {
    "github": GitHubMatcher,
    "gitlab": GitLabMatcher,
}

PLATFORMS = tuple(_MATCHERS)


def create_matcher(
    platform: str,
    api_url: str | None = None,
    token: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Matcher:
    """Build the matcher for ``platform``; empty api_url/token mean the public
    endpoint and anonymous access."""
    try:
        matcher_cls = _MATCHERS[platform.lower()]
    except KeyError:
        raise UnknownPlatformError(platform) from None
    return matcher_cls(api_url=api_url or None, token=token or None, transport=transport)


__all__ = [
    "PLATFORMS",
    "GitHubMatcher",
    "GitLabMatcher",
    "MatchCanceledError",
    "Matcher",
    "MatcherError",
    "NoMatchesError",
    "UnknownPlatformError",
    "UnsupportedOperationError",
    "create_matcher",
    "run_cancellable",
]
