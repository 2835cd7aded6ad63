"""Shared fixtures: in-memory git object store, local sync double, release context."""

import pytest

from release_committer.schemas.release import (
    NextRelease,
    PluginConfig,
    ReleaseContext,
    ReleaseOptions,
)
from release_committer.services.github_client import InMemoryGitObjectClient
from release_committer.services.local_sync import InMemoryLocalSync


@pytest.fixture
def git_client() -> InMemoryGitObjectClient:
    """A repository whose ``main`` branch already holds a README and old build."""
    return InMemoryGitObjectClient(
        branch="main",
        files={"README.md": "# demo\n", "dist/index.js": "console.log('old')\n"},
    )


@pytest.fixture
def local_sync() -> InMemoryLocalSync:
    """Create a fresh local sync double for inspection."""
    return InMemoryLocalSync()


@pytest.fixture
def release_context() -> ReleaseContext:
    """A release context for ``owner/repo`` on ``main`` with version 1.0.0."""
    return ReleaseContext(
        env={"GITHUB_TOKEN": "test-token"},
        cwd="/test/repo",
        options=ReleaseOptions(
            repository_url="https://github.com/owner/repo.git",
            branches=["main"],
        ),
        next_release=NextRelease(
            version="1.0.0",
            git_tag="v1.0.0",
            git_head="abc123",
            notes="Release notes",
        ),
    )


@pytest.fixture
def plugin_config() -> PluginConfig:
    return PluginConfig(files=["dist/**", "CHANGELOG.md"])
