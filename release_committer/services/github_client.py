"""GitHub git database client with protocol-based swappable implementations.

Production code uses ``GitHubClient``, a thin typed wrapper over the REST
``/repos/{owner}/{repo}/git/*`` endpoints built on ``httpx.AsyncClient``.
Tests use ``InMemoryGitObjectClient`` which hashes objects the way git does,
so identical content yields identical ids without any network access.

Every operation is a single round trip with no retries.  Any transport error
or non-2xx response, and any 2xx body missing expected fields, surfaces as
:class:`RemoteApiError` naming the operation.
"""

from __future__ import annotations

import base64
import hashlib
import json
from collections.abc import Callable
from types import TracebackType
from typing import Any, Protocol, TypeVar

import httpx

from release_committer.errors import RemoteApiError
from release_committer.schemas.git_objects import (
    BlobEncoding,
    CommitParent,
    CommitTree,
    GitIdentity,
    RefObject,
    RemoteBlob,
    RemoteCommit,
    RemoteRef,
    RemoteTree,
    RepositoryIdentity,
    TreeEntry,
)
from release_committer.services.locator import api_base_url

_GITHUB_HEADERS_BASE = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
}

FILE_MODE = "100644"

T = TypeVar("T")


def _auth_headers(token: str) -> dict[str, str]:
    """Build GitHub API headers with Bearer auth."""
    return {**_GITHUB_HEADERS_BASE, "Authorization": f"Bearer {token}"}


def _describe_http_error(exc: httpx.HTTPError) -> str:
    """Prefer GitHub's JSON ``message`` over httpx's generic status text."""
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            message = exc.response.json().get("message")
        except (ValueError, AttributeError):
            message = None
        if message:
            return f"{exc.response.status_code} {message}"
    return str(exc) or exc.__class__.__name__


class GitObjectClient(Protocol):
    """Protocol for the six git database operations."""

    async def read_ref(self, identity: RepositoryIdentity) -> RemoteRef: ...

    async def create_blob(
        self, identity: RepositoryIdentity, content: str, encoding: BlobEncoding
    ) -> RemoteBlob: ...

    async def create_tree(
        self,
        identity: RepositoryIdentity,
        base_tree_sha: str,
        files: list[tuple[str, str]],
    ) -> RemoteTree: ...

    async def read_commit(self, identity: RepositoryIdentity, sha: str) -> RemoteCommit: ...

    async def create_commit(
        self,
        identity: RepositoryIdentity,
        message: str,
        tree_sha: str,
        parent_shas: list[str],
        author: GitIdentity | None = None,
        committer: GitIdentity | None = None,
    ) -> RemoteCommit: ...

    async def update_ref(self, identity: RepositoryIdentity, sha: str) -> None: ...


class GitHubClient:
    """Production client for the GitHub git database API.

    Routes requests to ``https://api.github.com`` for github.com and to
    ``https://<host>/api/v3`` for enterprise hosts.  Pass ``http_client`` to
    share a connection pool (or a mock transport in tests); otherwise the
    client owns one and closes it in :meth:`aclose`.
    """

    def __init__(
        self,
        token: str,
        host: str = "github.com",
        *,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = (base_url or api_base_url(host)).rstrip("/")
        self._headers = _auth_headers(token)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self,
        operation: str,
        method: str,
        identity: RepositoryIdentity,
        path: str,
        payload: dict[str, Any] | None = None,
        parse: Callable[[dict[str, Any]], T] | None = None,
    ) -> T | None:
        """Send one request and turn its body into a model with ``parse``.

        Transport errors, non-2xx statuses, undecodable bodies and bodies
        missing the fields ``parse`` needs all raise :class:`RemoteApiError`.
        """
        url = f"{self.base_url}/repos/{identity.owner}/{identity.repo}/git/{path}"
        try:
            resp = await self._client.request(method, url, json=payload, headers=self._headers)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as exc:
            raise RemoteApiError(operation, _describe_http_error(exc)) from exc
        except ValueError as exc:
            raise RemoteApiError(operation, f"invalid JSON response: {exc}") from exc

        if parse is None:
            return None
        try:
            return parse(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise RemoteApiError(operation, f"unexpected response: {exc!r}") from exc

    async def read_ref(self, identity: RepositoryIdentity) -> RemoteRef:
        """Resolve ``heads/<branch>`` to the commit it points at."""
        return await self._request(
            f"Failed to get ref for branch {identity.branch}",
            "GET",
            identity,
            f"ref/heads/{identity.branch}",
            parse=_ref_from_json,
        )

    async def create_blob(
        self, identity: RepositoryIdentity, content: str, encoding: BlobEncoding
    ) -> RemoteBlob:
        """Upload one file's content as a blob (``utf-8`` text or ``base64``)."""
        return await self._request(
            "Failed to create blob",
            "POST",
            identity,
            "blobs",
            {"content": content, "encoding": encoding},
            parse=_blob_from_json,
        )

    async def create_tree(
        self,
        identity: RepositoryIdentity,
        base_tree_sha: str,
        files: list[tuple[str, str]],
    ) -> RemoteTree:
        """Layer ``(path, blob_sha)`` pairs over ``base_tree_sha``.

        Paths not listed are inherited from the base tree unchanged.
        """
        return await self._request(
            "Failed to create tree",
            "POST",
            identity,
            "trees",
            {
                "base_tree": base_tree_sha,
                "tree": [
                    {"path": path, "mode": FILE_MODE, "type": "blob", "sha": sha}
                    for path, sha in files
                ],
            },
            parse=_tree_from_json,
        )

    async def read_commit(self, identity: RepositoryIdentity, sha: str) -> RemoteCommit:
        return await self._request(
            f"Failed to get commit {sha}",
            "GET",
            identity,
            f"commits/{sha}",
            parse=_commit_from_json,
        )

    async def create_commit(
        self,
        identity: RepositoryIdentity,
        message: str,
        tree_sha: str,
        parent_shas: list[str],
        author: GitIdentity | None = None,
        committer: GitIdentity | None = None,
    ) -> RemoteCommit:
        """Create a commit object.

        ``author`` and ``committer`` are left out of the request body when
        None so that GitHub signs the commit as the authenticated app/bot.
        """
        payload: dict[str, Any] = {
            "message": message,
            "tree": tree_sha,
            "parents": parent_shas,
        }
        if author is not None:
            payload["author"] = author.model_dump()
        if committer is not None:
            payload["committer"] = committer.model_dump()

        return await self._request(
            "Failed to create commit",
            "POST",
            identity,
            "commits",
            payload,
            parse=_commit_from_json,
        )

    async def update_ref(self, identity: RepositoryIdentity, sha: str) -> None:
        """Fast-forward ``heads/<branch>`` to ``sha``; never forced."""
        await self._request(
            f"Failed to update ref heads/{identity.branch} to {sha}",
            "PATCH",
            identity,
            f"refs/heads/{identity.branch}",
            {"sha": sha, "force": False},
        )


def _ref_from_json(data: dict[str, Any]) -> RemoteRef:
    return RemoteRef(
        ref=data["ref"],
        object=RefObject(sha=data["object"]["sha"], type=data["object"]["type"]),
    )


def _blob_from_json(data: dict[str, Any]) -> RemoteBlob:
    return RemoteBlob(sha=data["sha"], url=data.get("url"))


def _tree_from_json(data: dict[str, Any]) -> RemoteTree:
    return RemoteTree(
        sha=data["sha"],
        url=data.get("url"),
        tree=[
            TreeEntry(
                path=item.get("path") or "",
                mode=item.get("mode") or "",
                type=item.get("type") or "",
                sha=item.get("sha") or "",
            )
            for item in data.get("tree", [])
        ],
    )


def _commit_from_json(data: dict[str, Any]) -> RemoteCommit:
    return RemoteCommit(
        sha=data["sha"],
        url=data.get("url"),
        message=data.get("message", ""),
        tree=CommitTree(sha=data["tree"]["sha"]),
        parents=[CommitParent(sha=p["sha"]) for p in data.get("parents", [])],
    )


def _git_hash(kind: str, body: bytes) -> str:
    """Hash an object the way git does: ``sha1("<kind> <len>\\0<body>")``."""
    header = f"{kind} {len(body)}\0".encode()
    return hashlib.sha1(header + body).hexdigest()  # noqa: S324


class InMemoryGitObjectClient:
    """Test double holding a single-branch repository in memory.

    Objects are content addressed, so re-uploading identical files produces
    a tree whose sha equals the base tree.  Every call is appended to
    ``calls`` as ``(operation, args)``; set ``fail_on`` to an operation name
    to make that call raise :class:`RemoteApiError`.
    """

    def __init__(self, branch: str = "main", files: dict[str, str] | None = None) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.fail_on: set[str] = set()
        self.blobs: dict[str, bytes] = {}
        self.trees: dict[str, dict[str, str]] = {}
        self.commits: dict[str, RemoteCommit] = {}
        self.refs: dict[str, str] = {}

        entries = {path: self._store_blob(content.encode()) for path, content in (files or {}).items()}
        tree_sha = self._store_tree(entries)
        root = self._store_commit("initial commit", tree_sha, [], None, None)
        self.refs[branch] = root.sha

    def _record(self, operation: str, **args: Any) -> None:
        self.calls.append((operation, args))
        if operation in self.fail_on:
            raise RemoteApiError(f"Failed to {operation}", "injected failure")

    def call_count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    def _store_blob(self, body: bytes) -> str:
        sha = _git_hash("blob", body)
        self.blobs[sha] = body
        return sha

    def _store_tree(self, entries: dict[str, str]) -> str:
        body = json.dumps(sorted(entries.items())).encode()
        sha = _git_hash("tree", body)
        self.trees[sha] = dict(entries)
        return sha

    def _store_commit(
        self,
        message: str,
        tree_sha: str,
        parent_shas: list[str],
        author: GitIdentity | None,
        committer: GitIdentity | None,
    ) -> RemoteCommit:
        body = json.dumps(
            {
                "message": message,
                "tree": tree_sha,
                "parents": parent_shas,
                "author": author.model_dump() if author else None,
                "committer": committer.model_dump() if committer else None,
            },
            sort_keys=True,
        ).encode()
        sha = _git_hash("commit", body)
        commit = RemoteCommit(
            sha=sha,
            message=message,
            tree=CommitTree(sha=tree_sha),
            parents=[CommitParent(sha=p) for p in parent_shas],
        )
        self.commits[sha] = commit
        return commit

    def files_at(self, branch: str = "main") -> dict[str, bytes]:
        """Return ``{path: content}`` for the tree the branch points at."""
        tree = self.trees[self.commits[self.refs[branch]].tree.sha]
        return {path: self.blobs[sha] for path, sha in tree.items()}

    async def read_ref(self, identity: RepositoryIdentity) -> RemoteRef:
        self._record("read_ref", branch=identity.branch)
        if identity.branch not in self.refs:
            raise RemoteApiError(f"Failed to get ref for branch {identity.branch}", "404 Not Found")
        return RemoteRef(
            ref=f"refs/heads/{identity.branch}",
            object=RefObject(sha=self.refs[identity.branch], type="commit"),
        )

    async def create_blob(
        self, identity: RepositoryIdentity, content: str, encoding: BlobEncoding
    ) -> RemoteBlob:
        self._record("create_blob", content=content, encoding=encoding)
        body = base64.b64decode(content) if encoding == "base64" else content.encode()
        return RemoteBlob(sha=self._store_blob(body))

    async def create_tree(
        self,
        identity: RepositoryIdentity,
        base_tree_sha: str,
        files: list[tuple[str, str]],
    ) -> RemoteTree:
        self._record("create_tree", base_tree=base_tree_sha, files=list(files))
        entries = dict(self.trees[base_tree_sha])
        entries.update(dict(files))
        sha = self._store_tree(entries)
        return RemoteTree(
            sha=sha,
            tree=[TreeEntry(path=path, sha=blob_sha) for path, blob_sha in sorted(entries.items())],
        )

    async def read_commit(self, identity: RepositoryIdentity, sha: str) -> RemoteCommit:
        self._record("read_commit", sha=sha)
        if sha not in self.commits:
            raise RemoteApiError(f"Failed to get commit {sha}", "404 Not Found")
        return self.commits[sha]

    async def create_commit(
        self,
        identity: RepositoryIdentity,
        message: str,
        tree_sha: str,
        parent_shas: list[str],
        author: GitIdentity | None = None,
        committer: GitIdentity | None = None,
    ) -> RemoteCommit:
        self._record(
            "create_commit",
            message=message,
            tree=tree_sha,
            parents=list(parent_shas),
            author=author,
            committer=committer,
        )
        return self._store_commit(message, tree_sha, parent_shas, author, committer)

    async def update_ref(self, identity: RepositoryIdentity, sha: str) -> None:
        self._record("update_ref", branch=identity.branch, sha=sha)
        # Only a direct child of the current head counts as a fast-forward here.
        current = self.refs.get(identity.branch)
        parents = [p.sha for p in self.commits[sha].parents] if sha in self.commits else []
        if current is not None and current not in parents and current != sha:
            raise RemoteApiError(
                f"Failed to update ref heads/{identity.branch} to {sha}",
                "422 Update is not a fast forward",
            )
        self.refs[identity.branch] = sha
