"""Bring the local clone up to the commit just published through the API.

Production code uses ``GitLocalSync`` which drives GitPython in
``asyncio.to_thread`` so the blocking git subprocesses never stall the event
loop.  Tests use ``InMemoryLocalSync`` which records the request.

The fetch goes straight to a token-bearing URL instead of a configured
remote, so the caller's ``origin`` is never modified.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Protocol

from release_committer.errors import LocalSyncError
from release_committer.schemas.git_objects import RepositoryIdentity
from release_committer.services.locator import authenticated_fetch_url


def redact(text: str, token: str) -> str:
    """Mask every occurrence of ``token`` in ``text``."""
    return text.replace(token, "***") if token else text


class LocalSync(Protocol):
    """Protocol for synchronizing a working copy with the remote branch."""

    async def sync(
        self,
        identity: RepositoryIdentity,
        token: str,
        cwd: str,
        env: Mapping[str, str],
    ) -> None:
        """Fetch ``identity.branch`` and hard-reset the working copy to it."""
        ...


class GitLocalSync:
    """Production implementation backed by GitPython."""

    async def sync(
        self,
        identity: RepositoryIdentity,
        token: str,
        cwd: str,
        env: Mapping[str, str],
    ) -> None:
        await asyncio.to_thread(self._sync, identity, token, cwd, dict(env))

    @staticmethod
    def _sync(identity: RepositoryIdentity, token: str, cwd: str, env: dict[str, str]) -> None:
        from git import Repo
        from git.exc import GitError

        url = authenticated_fetch_url(identity, token)
        try:
            repo = Repo(cwd)
            repo.git.fetch(url, identity.branch, env=env)
            repo.git.reset("--hard", "FETCH_HEAD", env=env)
        except GitError as exc:
            raise LocalSyncError(
                "Failed to fetch new commit into local repository",
                redact(str(exc), token),
            ) from None  # the GitPython error repeats the token-bearing command line


class InMemoryLocalSync:
    """Test double that records sync requests."""

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.error: Exception | None = None

    async def sync(
        self,
        identity: RepositoryIdentity,
        token: str,
        cwd: str,
        env: Mapping[str, str],
    ) -> None:
        """Append the request and raise ``error`` if one is set."""
        self.calls.append(
            {
                "identity": identity,
                "url": authenticated_fetch_url(identity, token),
                "cwd": cwd,
            }
        )
        if self.error is not None:
            raise self.error
