"""Pluggable matcher interface.

Matchers resolve commit author emails to accounts on a hosted code platform.
GitHub and GitLab each implement this interface; they differ in which
optional capabilities they offer, so callers probe before using them.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

import httpx

from commit_identity.models.identity import PlatformIdentity


class Matcher(ABC):
    """Abstract interface for matching emails to platform users."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @abstractmethod
    async def match_by_email(
        self, email: str, *, cancel: asyncio.Event | None = None
    ) -> PlatformIdentity:
        """Resolve an email to a platform identity.

        Raises NoMatchesError when the directory knows no such email and
        MatchCanceledError when ``cancel`` fires before the lookup finishes.
        """

    @abstractmethod
    def supports_matching_by_commit(self) -> bool:
        """Whether match_by_commit is available on this backend."""

    @abstractmethod
    async def match_by_commit(
        self,
        email: str,
        repo: str,
        commit: str,
        *,
        cancel: asyncio.Event | None = None,
    ) -> str:
        """Resolve the username of ``email`` in the context of a particular commit.

        Backends without commit metadata raise UnsupportedOperationError;
        check supports_matching_by_commit first.
        """

    @abstractmethod
    async def on_idle(self) -> None:
        """Housekeeping hook invoked by callers between batches of lookups."""

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> Matcher:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
