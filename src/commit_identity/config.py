"""Matcher configuration loaded from YAML files, dicts and the environment."""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from commit_identity.identity import PLATFORMS, UnknownPlatformError

_TOKEN_ENV = {
    "github": "GITHUB_TOKEN",
    "gitlab": "GITLAB_TOKEN",
}


class MatcherConfig:
    """Parsed matcher configuration."""

    def __init__(self, config: dict) -> None:
        self.platform: str = str(config.get("platform", "github")).lower()
        if self.platform not in PLATFORMS:
            raise UnknownPlatformError(self.platform)
        self.api_url: str | None = config.get("api_url") or None
        self.token: str | None = config.get("token") or os.environ.get(_TOKEN_ENV[self.platform])

    @classmethod
    def from_dict(cls, data: dict) -> MatcherConfig:
        return cls(data)

    @classmethod
    def from_yaml(cls, path: Path, overrides: dict | None = None) -> MatcherConfig:
        """Load a YAML mapping; non-empty ``overrides`` replace keys from the file."""
        data = yaml.safe_load(path.read_text()) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a mapping, not {type(data).__name__}")
        data.update(overrides or {})
        return cls(data)

    @classmethod
    def default(cls, platform: str) -> MatcherConfig:
        return cls({"platform": platform})
