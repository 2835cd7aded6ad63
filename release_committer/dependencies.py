"""Centralized collaborator factories for the publishing pipeline."""

from release_committer.config import settings
from release_committer.services.github_client import GitHubClient
from release_committer.services.local_sync import GitLocalSync, LocalSync

_local_sync: LocalSync = GitLocalSync()


def get_git_client(token: str, host: str) -> GitHubClient:
    """Return a new GitHub git database client for ``host``.

    The caller owns the client and must close it (it is an async context
    manager).
    """
    return GitHubClient(token, host, timeout=settings.request_timeout)


def get_local_sync() -> LocalSync:
    """Return the local clone synchronizer.

    Defaults to ``GitLocalSync``; tests pass ``InMemoryLocalSync`` to
    ``prepare`` directly.
    """
    return _local_sync


__all__ = [
    "get_git_client",
    "get_local_sync",
]
