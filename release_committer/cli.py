"""CLI entrypoint: publish release artifacts as a single API-built commit."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path

import click
from dotenv import load_dotenv
from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from release_committer.config import settings
from release_committer.errors import ReleaseCommitError
from release_committer.logging_config import configure_logging
from release_committer.schemas.release import (
    NextRelease,
    PluginConfig,
    PrepareOutcome,
    ReleaseContext,
    ReleaseOptions,
)
from release_committer.services.committer import prepare as prepare_commit


@click.group()
@click.version_option(package_name="release-committer")
@click.option("--log-level", default=None, help="Override RELEASE_COMMITTER_LOG_LEVEL.")
@click.option("--json-logs/--console-logs", default=None, help="Log format.")
def cli(log_level: str | None, json_logs: bool | None) -> None:
    """Commit release artifacts to GitHub through the git database API."""
    load_dotenv()
    configure_logging(
        json_logs=settings.json_logs if json_logs is None else json_logs,
        log_level=log_level or settings.log_level,
    )


def _load_plugin_config(config_path: str | None, overrides: dict) -> PluginConfig:
    data: dict = {}
    if config_path:
        data = json.loads(Path(config_path).read_text(encoding="utf-8"))
    # Command-line values win over the file; keys are normalised to the camelCase aliases.
    data.update(
        {to_camel(key): value for key, value in overrides.items() if value not in (None, [])}
    )
    return PluginConfig.model_validate(data)


@cli.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file with plugin options (files, commitMessage, authorName...).",
)
@click.option("--file", "-f", "files", multiple=True, help="Glob pattern to publish (repeatable).")
@click.option("--repository-url", envvar="REPOSITORY_URL", help="Target repository URL.")
@click.option("--branch", "branches", multiple=True, help="Release branch (first one is used).")
@click.option("--version", "version", default=None, help="Next release version.")
@click.option("--git-tag", default="", help="Next release tag.")
@click.option("--git-head", default="", help="Commit sha the release was computed from.")
@click.option("--notes", default=None, help="Release notes.")
@click.option("--message", "commit_message", default=None, help="Commit message template.")
@click.option("--author-name", default=None)
@click.option("--author-email", default=None)
@click.option("--committer-name", default=None)
@click.option("--committer-email", default=None)
@click.option("--github-token", default=None, help="Token used when GH_TOKEN/GITHUB_TOKEN are unset.")
@click.option("--dry-run", is_flag=True, default=False, help="Log the files without calling the API.")
@click.option(
    "--cwd",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    show_default=True,
    help="Repository root the patterns are relative to.",
)
def prepare(
    config_path: str | None,
    files: tuple[str, ...],
    repository_url: str | None,
    branches: tuple[str, ...],
    version: str | None,
    git_tag: str,
    git_head: str,
    notes: str | None,
    commit_message: str | None,
    author_name: str | None,
    author_email: str | None,
    committer_name: str | None,
    committer_email: str | None,
    github_token: str | None,
    dry_run: bool,
    cwd: str,
) -> None:
    """Create one commit on the release branch containing the matched files."""
    try:
        plugin_config = _load_plugin_config(
            config_path,
            {
                "files": list(files),
                "commit_message": commit_message,
                "author_name": author_name,
                "author_email": author_email,
                "committer_name": committer_name,
                "committer_email": committer_email,
                "github_token": github_token,
                "dry_run": dry_run or None,
            },
        )
    except (ValueError, ValidationError) as e:
        click.echo(f"Configuration error:\n{e}", err=True)
        raise SystemExit(1) from e

    context = ReleaseContext(
        env=dict(os.environ),
        cwd=str(Path(cwd).resolve()),
        options=ReleaseOptions(repository_url=repository_url, branches=list(branches)),
        next_release=(
            NextRelease(version=version, git_tag=git_tag, git_head=git_head, notes=notes)
            if version
            else None
        ),
    )

    try:
        result = asyncio.run(prepare_commit(plugin_config, context))
    except ReleaseCommitError as e:
        click.echo(f"ERROR [{e.code}] {e}", err=True)
        raise SystemExit(1) from e

    click.echo(f"outcome: {result.outcome.value}")
    if result.outcome is PrepareOutcome.COMMITTED:
        click.echo(f"commit: {result.commit_sha}")
