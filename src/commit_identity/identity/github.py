"""GitHub matcher — resolves emails through the GitHub user search API.

Emails are looked up with an ``in:email`` user search sorted by join date, so
when several accounts share an address the oldest one wins. Hitting the API
rate limit is not an error here: the matcher sleeps until the quota resets
and repeats the request.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import TypeVar

import httpx

from commit_identity.identity.base import Matcher
from commit_identity.identity.cancel import run_cancellable
from commit_identity.identity.errors import NoMatchesError, QuotaExhaustedError
from commit_identity.models.identity import (
    GitHubCommit,
    GitHubUser,
    GitHubUserSearch,
    PlatformIdentity,
    RateLimitSignal,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_API_URL = "https://api.github.com/"
NOREPLY_SUFFIX = "@users.noreply.github.com"

# One result, oldest account first.
_SEARCH_PARAMS = {"sort": "joined", "per_page": 1}


def is_noreply_email(email: str) -> bool:
    return email.endswith(NOREPLY_SUFFIX)


def user_from_email(email: str) -> str:
    """Extract the username encoded in a GitHub placeholder email.

    Placeholders are either ``user@users.noreply.github.com`` or
    ``12345+user@users.noreply.github.com``.
    """
    user = email.split("@")[0]
    if "+" in user:
        user = user.split("+")[1]
    return user


def _rate_limit_signal(response: httpx.Response) -> RateLimitSignal | None:
    """Detect primary rate limit responses (403/429 with no remaining quota)."""
    if response.status_code not in (403, 429):
        return None
    if response.headers.get("X-RateLimit-Remaining") != "0":
        return None
    reset = response.headers.get("X-RateLimit-Reset")
    try:
        reset_at = datetime.fromtimestamp(int(reset), tz=UTC)
    except (TypeError, ValueError, OverflowError, OSError):
        reset_at = datetime.now(UTC)
    return RateLimitSignal(reset_at=reset_at)


class GitHubMatcher(Matcher):
    """Matches emails and GitHub users."""

    def __init__(
        self,
        api_url: str | None = None,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        api_url = api_url or DEFAULT_API_URL
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "commit-identity/0.1",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
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
        """Return the oldest GitHub user registered with the given email."""
        return await run_cancellable(self._match_by_email(email), cancel)

    def supports_matching_by_commit(self) -> bool:
        return True

    async def match_by_commit(
        self,
        email: str,
        repo: str,
        commit: str,
        *,
        cancel: asyncio.Event | None = None,
    ) -> str:
        """Return the login GitHub linked to ``email`` in commit ``repo@commit``.

        ``repo`` is ``owner/name``. Works for private emails the user search
        cannot see, as long as the commit is readable with the token.
        """
        return await run_cancellable(self._match_by_commit(email, repo, commit), cancel)

    async def on_idle(self) -> None:
        """Nothing to persist between lookups."""

    async def _match_by_email(self, email: str) -> PlatformIdentity:
        if is_noreply_email(email):
            username = user_from_email(email)
            if username:
                return PlatformIdentity(username=username)

        query = f"{email} in:email"
        fallback_used = False
        while True:
            result = await self._with_quota_retry(lambda: self._search_users(query))
            if result.items:
                break
            if fallback_used or "@" not in query:
                logger.warning("unable to find users for email: %s", email)
                raise NoMatchesError(email)
            # Some accounts are indexed as "user domain" rather than "user@domain".
            query = query.replace("@", " ", 1)
            fallback_used = True

        login = result.items[0].login
        user = await self._with_quota_retry(lambda: self._get_user(login))
        return PlatformIdentity(username=user.login, display_name=user.name or None)

    async def _match_by_commit(self, email: str, repo: str, commit: str) -> str:
        data = await self._with_quota_retry(lambda: self._get_commit(repo, commit))
        wanted = email.lower()
        detail = data.commit
        if data.author and detail.author and (detail.author.email or "").lower() == wanted:
            return data.author.login
        if data.committer and detail.committer and (detail.committer.email or "").lower() == wanted:
            return data.committer.login
        logger.warning("commit %s in %s has no account linked to %s", commit, repo, email)
        raise NoMatchesError(email)

    async def _with_quota_retry(self, request: Callable[[], Awaitable[T]]) -> T:
        """Repeat ``request`` until it completes without hitting the rate limit."""
        while True:
            try:
                return await request()
            except QuotaExhaustedError as exc:
                logger.warning("rate limit was hit, waiting until %s", exc.reset_at)
                delay = (exc.reset_at - datetime.now(UTC)).total_seconds()
                await asyncio.sleep(max(delay, 0.0))

    async def _get(self, path: str, params: dict | None = None) -> httpx.Response:
        logger.debug("GET %s %s", path, params or "")
        response = await self._client.get(path, params=params)
        signal = _rate_limit_signal(response)
        if signal is not None:
            raise QuotaExhaustedError(signal)
        response.raise_for_status()
        return response

    async def _search_users(self, query: str) -> GitHubUserSearch:
        response = await self._get("search/users", params={"q": query, **_SEARCH_PARAMS})
        return GitHubUserSearch.model_validate(response.json())

    async def _get_user(self, login: str) -> GitHubUser:
        response = await self._get(f"users/{login}")
        return GitHubUser.model_validate(response.json())

    async def _get_commit(self, repo: str, commit: str) -> GitHubCommit:
        response = await self._get(f"repos/{repo}/commits/{commit}")
        return GitHubCommit.model_validate(response.json())
