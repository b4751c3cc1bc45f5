"""GitLab matcher — resolves emails through the GitLab users API.

Unlike the GitHub matcher there is no placeholder-email shortcut, no query
fallback and no rate limit handling: a 429 reaches the caller as an ordinary
httpx.HTTPStatusError. Results come back in GitLab's default order, which is
not guaranteed to prefer the oldest account.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from commit_identity.identity.base import Matcher
from commit_identity.identity.cancel import run_cancellable
from commit_identity.identity.errors import NoMatchesError, UnsupportedOperationError
from commit_identity.models.identity import GitLabUser, PlatformIdentity

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://gitlab.com/api/v4"


class GitLabMatcher(Matcher):
    """Matches emails and GitLab users."""

    def __init__(
        self,
        api_url: str | None = None,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        api_url = api_url or DEFAULT_API_URL
        headers = {"User-Agent": "commit-identity/0.1"}
        if token:
            headers["PRIVATE-TOKEN"] = token
        super().__init__(
            httpx.AsyncClient(
                base_url=api_url.rstrip("/") + "/",
                headers=headers,
                timeout=30.0,
                transport=transport,
            )
        )
        self.api_url = api_url

    async def match_by_email(
        self, email: str, *, cancel: asyncio.Event | None = None
    ) -> PlatformIdentity:
        """Return the first GitLab user the search yields for the given email."""
        return await run_cancellable(self._match_by_email(email), cancel)

    def supports_matching_by_commit(self) -> bool:
        return False

    async def match_by_commit(
        self,
        email: str,
        repo: str,
        commit: str,
        *,
        cancel: asyncio.Event | None = None,
    ) -> str:
        raise UnsupportedOperationError("GitLab matcher cannot match by commit")

    async def on_idle(self) -> None:
        """Does nothing here."""

    async def _match_by_email(self, email: str) -> PlatformIdentity:
        # TODO: sleep until RateLimit-Reset on 429 like the GitHub matcher does.
        logger.debug("GET users search=%s", email)
        response = await self._client.get("users", params={"search": email})
        response.raise_for_status()
        users = [GitLabUser.model_validate(item) for item in response.json()]
        if not users:
            logger.warning("unable to find users for email: %s", email)
            raise NoMatchesError(email)
        return PlatformIdentity(username=users[0].username)
