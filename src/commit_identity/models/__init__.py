"""Identity and directory-service data models."""

from commit_identity.models.identity import (
    GitHubCommit,
    GitHubCommitDetail,
    GitHubCommitPerson,
    GitHubUser,
    GitHubUserSearch,
    GitLabUser,
    PlatformIdentity,
    RateLimitSignal,
)

__all__ = [
    "GitHubCommit",
    "GitHubCommitDetail",
    "GitHubCommitPerson",
    "GitHubUser",
    "GitHubUserSearch",
    "GitLabUser",
    "PlatformIdentity",
    "RateLimitSignal",
]
