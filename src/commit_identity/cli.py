"""CLI entry point for commit-identity."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import httpx
import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from commit_identity.config import MatcherConfig
from commit_identity.identity import (
    MatchCanceledError,
    Matcher,
    NoMatchesError,
    UnsupportedOperationError,
    create_matcher,
)

T = TypeVar("T")

app = typer.Typer(
    name="commit-identity",
    help="Resolve commit author emails to GitHub and GitLab accounts.",
    no_args_is_help=True,
)
console = Console()

EXIT_NO_MATCHES = 1
EXIT_CANCELED = 2
EXIT_API_ERROR = 3
EXIT_UNSUPPORTED = 4
EXIT_BAD_CONFIG = 5


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every API request"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_config(
    platform: str | None, api_url: str | None, token: str | None, config: Path | None
) -> MatcherConfig:
    overrides = {
        key: value
        for key, value in (("platform", platform), ("api_url", api_url), ("token", token))
        if value is not None
    }
    try:
        if config is not None:
            return MatcherConfig.from_yaml(config, overrides)
        return MatcherConfig.from_dict(overrides)
    except (ValueError, yaml.YAMLError) as e:
        # UnknownPlatformError is a ValueError too.
        console.print(f"Invalid configuration: {e}", style="red", markup=False)
        raise typer.Exit(EXIT_BAD_CONFIG) from e


def _run_lookup(
    cfg: MatcherConfig,
    timeout: float | None,
    lookup: Callable[[Matcher, asyncio.Event], Awaitable[T]],
) -> T:
    async def _run() -> T:
        cancel = asyncio.Event()
        if timeout is not None:
            asyncio.get_running_loop().call_later(timeout, cancel.set)
        async with create_matcher(cfg.platform, cfg.api_url, cfg.token) as matcher:
            return await lookup(matcher, cancel)

    try:
        return asyncio.run(_run())
    except NoMatchesError as e:
        console.print(f"[yellow]{e}[/yellow]")
        raise typer.Exit(EXIT_NO_MATCHES) from e
    except MatchCanceledError as e:
        console.print(f"[red]Lookup timed out after {timeout}s[/red]")
        raise typer.Exit(EXIT_CANCELED) from e
    except UnsupportedOperationError as e:
        console.print(f"[red]{cfg.platform} does not support matching by commit[/red]")
        raise typer.Exit(EXIT_UNSUPPORTED) from e
    except (httpx.HTTPError, ValidationError) as e:
        console.print(f"[red]{cfg.platform} API error: {e}[/red]")
        raise typer.Exit(EXIT_API_ERROR) from e


_PLATFORM_HELP = "Platform: 'github' or 'gitlab' (default: github)"


@app.command()
def match(
    email: str = typer.Argument(help="Commit author email to resolve"),
    platform: str | None = typer.Option(None, help=_PLATFORM_HELP),
    api_url: str | None = typer.Option(None, help="API base URL (default: the public endpoint)"),
    token: str | None = typer.Option(None, help="Access token (default: $GITHUB_TOKEN/$GITLAB_TOKEN)"),
    config: Path | None = typer.Option(None, help="YAML file with platform, api_url and token"),
    timeout: float | None = typer.Option(None, help="Give up after this many seconds"),
) -> None:
    """Resolve an email to a platform username and display name."""
    cfg = _load_config(platform, api_url, token, config)

    async def _lookup(matcher: Matcher, cancel: asyncio.Event):
        return await matcher.match_by_email(email, cancel=cancel)

    identity = _run_lookup(cfg, timeout, _lookup)
    if identity.display_name:
        console.print(f"{identity.username} ({identity.display_name})", markup=False)
    else:
        console.print(identity.username, markup=False)


@app.command(name="match-commit")
def match_commit(
    email: str = typer.Argument(help="Commit author email to resolve"),
    repo: str = typer.Option(..., help="Repository as owner/name"),
    commit: str = typer.Option(..., help="Commit SHA authored by the email"),
    platform: str | None = typer.Option(None, help=_PLATFORM_HELP),
    api_url: str | None = typer.Option(None, help="API base URL (default: the public endpoint)"),
    token: str | None = typer.Option(None, help="Access token (default: $GITHUB_TOKEN/$GITLAB_TOKEN)"),
    config: Path | None = typer.Option(None, help="YAML file with platform, api_url and token"),
    timeout: float | None = typer.Option(None, help="Give up after this many seconds"),
) -> None:
    """Resolve an email to a username using the metadata of one of its commits."""
    cfg = _load_config(platform, api_url, token, config)

    async def _lookup(matcher: Matcher, cancel: asyncio.Event):
        if not matcher.supports_matching_by_commit():
            raise UnsupportedOperationError(cfg.platform)
        return await matcher.match_by_commit(email, repo, commit, cancel=cancel)

    username = _run_lookup(cfg, timeout, _lookup)
    console.print(username, markup=False)


if __name__ == "__main__":
    app()
