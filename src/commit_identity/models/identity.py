"""Foundation types: platform identity and the directory-service payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class PlatformIdentity(BaseModel):
    """An account on a hosted code platform that a commit email resolved to.
    Only produced on success, so the username is always present."""

    username: str = Field(min_length=1)
    display_name: str | None = None


class RateLimitSignal(BaseModel):
    """Quota exhausted; the request may be retried once reset_at has passed."""

    reset_at: datetime


class GitHubUser(BaseModel):
    login: str
    name: str | None = None


class GitHubUserSearch(BaseModel):
    total_count: int = 0
    items: list[GitHubUser] = []


class GitHubCommitPerson(BaseModel):
    """The git-level author or committer recorded in a commit."""

    name: str | None = None
    email: str | None = None


class GitHubCommitDetail(BaseModel):
    author: GitHubCommitPerson | None = None
    committer: GitHubCommitPerson | None = None


class GitHubCommit(BaseModel):
    """A commit as returned by the repository commits endpoint.

    ``author``/``committer`` at the top level are the linked platform accounts
    (null when the email is not attached to any account), while ``commit``
    holds the raw git metadata.
    """

    sha: str
    commit: GitHubCommitDetail
    author: GitHubUser | None = None
    committer: GitHubUser | None = None


class GitLabUser(BaseModel):
    id: int | None = None
    username: str
    name: str | None = None
