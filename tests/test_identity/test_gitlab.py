"""Tests for the GitLab matcher."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from commit_identity.identity.errors import (
    MatchCanceledError,
    NoMatchesError,
    UnsupportedOperationError,
)
from commit_identity.identity.gitlab import DEFAULT_API_URL, GitLabMatcher
from commit_identity.models.identity import PlatformIdentity


def make_matcher(responder, token: str | None = None) -> GitLabMatcher:
    return GitLabMatcher(
        api_url="https://gitlab.test/api/v4", token=token, transport=httpx.MockTransport(responder)
    )


def users_responder(users: list[dict], seen: list[httpx.Request] | None = None):
    def responder(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(200, json=users)

    return responder


class TestMatchByEmail:
    @pytest.mark.asyncio
    async def test_first_user_wins(self) -> None:
        seen: list[httpx.Request] = []
        responder = users_responder(
            [
                {"id": 7, "username": "alice", "name": "Alice Liddell"},
                {"id": 3, "username": "alice2", "name": "Alice Two"},
            ],
            seen,
        )
        identity = await make_matcher(responder).match_by_email("alice@example.com")
        # Only the username is returned; no profile fetch happens.
        assert identity == PlatformIdentity(username="alice")
        assert len(seen) == 1
        assert seen[0].url.path == "/api/v4/users"
        assert seen[0].url.params["search"] == "alice@example.com"

    @pytest.mark.asyncio
    async def test_no_matches(self) -> None:
        seen: list[httpx.Request] = []
        with pytest.raises(NoMatchesError):
            await make_matcher(users_responder([], seen)).match_by_email("bob@example.com")
        # No query mangling fallback on GitLab.
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_noreply_email_is_searched(self) -> None:
        seen: list[httpx.Request] = []
        responder = users_responder([{"username": "foo"}], seen)
        identity = await make_matcher(responder).match_by_email("foo@users.noreply.github.com")
        assert identity.username == "foo"
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_rate_limit_surfaces_as_http_error(self) -> None:
        calls = {"count": 0}

        def responder(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            return httpx.Response(429, json={"message": "Retry later"}, headers={"RateLimit-Remaining": "0"})

        with pytest.raises(httpx.HTTPStatusError) as exc:
            await make_matcher(responder).match_by_email("carol@example.com")
        assert exc.value.response.status_code == 429
        assert calls["count"] == 1

    @pytest.mark.asyncio
    async def test_private_token_header(self) -> None:
        seen: list[httpx.Request] = []
        await make_matcher(users_responder([{"username": "dave"}], seen), token="glpat-x").match_by_email(
            "dave@example.com"
        )
        assert seen[0].headers["PRIVATE-TOKEN"] == "glpat-x"

    @pytest.mark.asyncio
    async def test_idempotent(self) -> None:
        matcher = make_matcher(users_responder([{"username": "erin", "name": "Erin"}]))
        assert await matcher.match_by_email("erin@example.com") == await matcher.match_by_email(
            "erin@example.com"
        )

    @pytest.mark.asyncio
    async def test_cancel_before_backend_responds(self) -> None:
        async def responder(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(30)
            return httpx.Response(200, json=[])

        cancel = asyncio.Event()
        asyncio.get_running_loop().call_later(0.05, cancel.set)
        with pytest.raises(MatchCanceledError):
            await make_matcher(responder).match_by_email("frank@example.com", cancel=cancel)


class TestCapabilities:
    def test_does_not_support_matching_by_commit(self) -> None:
        assert make_matcher(users_responder([])).supports_matching_by_commit() is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("email", "repo", "commit"),
        [
            ("alice@example.com", "group/project", "abc123"),
            ("", "", ""),
        ],
    )
    async def test_match_by_commit_not_implemented(self, email: str, repo: str, commit: str) -> None:
        seen: list[httpx.Request] = []
        matcher = make_matcher(users_responder([], seen))
        with pytest.raises(UnsupportedOperationError):
            await matcher.match_by_commit(email, repo, commit)
        with pytest.raises(NotImplementedError):
            await matcher.match_by_commit(email, repo, commit)
        assert seen == []

    @pytest.mark.asyncio
    async def test_on_idle_is_noop(self) -> None:
        assert await make_matcher(users_responder([])).on_idle() is None


def test_default_api_url() -> None:
    matcher = GitLabMatcher()
    assert matcher.api_url == DEFAULT_API_URL
    assert str(matcher._client.base_url) == "https://gitlab.com/api/v4/"
