"""Commit orchestration for the release publishing step.

Coordinates the full flow without a local ``git commit``/``push``:
resolve identity -> resolve files -> read files -> (dry run) -> read ref ->
read commit -> create blobs -> create tree -> (no change) -> create commit ->
update ref -> sync local clone -> write the new sha back into the release.

The ref update is a plain fast-forward request. If the branch moved after it
was read, the update fails and the new blob/tree/commit objects are left
unreferenced on the remote; nothing is retried or cleaned up.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from contextlib import AsyncExitStack
from pathlib import Path

import structlog

from release_committer.dependencies import get_git_client, get_local_sync
from release_committer.errors import LocalSyncError
from release_committer.schemas.git_objects import FileBlob, RepositoryIdentity
from release_committer.schemas.release import (
    PluginConfig,
    PrepareOutcome,
    PrepareResult,
    ReleaseContext,
)
from release_committer.services.files import read_files_as_blobs, resolve_files
from release_committer.services.github_client import GitObjectClient
from release_committer.services.identity import get_git_identity
from release_committer.services.local_sync import LocalSync
from release_committer.services.locator import (
    api_base_url,
    get_auth_token,
    get_repository_identity,
)
from release_committer.services.message import compose_commit_message

logger = structlog.get_logger()

FileResolver = Callable[[list[str], str | Path], list[str]]
FileReader = Callable[[list[str], str | Path], list[FileBlob]]


async def _create_blobs(
    client: GitObjectClient,
    identity: RepositoryIdentity,
    blobs: list[FileBlob],
) -> list[tuple[str, str]]:
    """Upload all blobs concurrently; the first failure cancels the rest."""

    async def _create(blob: FileBlob) -> tuple[str, str]:
        remote = await client.create_blob(identity, blob.content, blob.encoding)
        logger.debug("blob_created", path=blob.path, sha=remote.sha, encoding=blob.encoding)
        return blob.path, remote.sha

    tasks = [asyncio.ensure_future(_create(blob)) for blob in blobs]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        # Let cancelled uploads finish unwinding before the client is closed.
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def prepare(
    plugin_config: PluginConfig,
    context: ReleaseContext,
    *,
    client: GitObjectClient | None = None,
    local_sync: LocalSync | None = None,
    file_resolver: FileResolver = resolve_files,
    file_reader: FileReader = read_files_as_blobs,
) -> PrepareResult:
    """Publish the configured files to the release branch as one new commit.

    Args:
        plugin_config: Files to publish plus message/identity overrides.
        context: Release environment, options and next-release metadata.
            ``context.next_release.git_head`` is overwritten with the new
            commit sha on success.
        client: Git object client. Defaults to a ``GitHubClient`` for the
            resolved host, closed before returning.
        local_sync: Local clone synchronizer. Defaults to ``GitLocalSync``.
        file_resolver: Glob expansion, ``(patterns, cwd) -> paths``.
        file_reader: File loading, ``(paths, cwd) -> FileBlob list``.

    Returns:
        A :class:`PrepareResult` whose ``outcome`` is one of
        ``committed``, ``skipped-empty``, ``skipped-dry-run`` or
        ``skipped-no-change``.

    Raises:
        ReleaseCommitError: Any fatal condition; see ``release_committer.errors``.
    """
    env = context.env
    cwd = context.cwd

    token = get_auth_token(env, plugin_config.github_token)
    identity = get_repository_identity(context)
    log = logger.bind(owner=identity.owner, repo=identity.repo, branch=identity.branch)
    log.info("prepare_started", host=identity.host)

    log.info("resolving_files", patterns=plugin_config.files)
    paths = await asyncio.to_thread(file_resolver, plugin_config.files, cwd)
    if not paths:
        log.warning("no_files_matched", patterns=plugin_config.files)
        return PrepareResult(outcome=PrepareOutcome.SKIPPED_EMPTY)

    log.info("files_resolved", count=len(paths), files=paths)
    blobs = await asyncio.to_thread(file_reader, paths, cwd)

    if plugin_config.dry_run:
        for blob in blobs:
            log.info("dry_run_file", path=blob.path, encoding=blob.encoding)
        log.info("dry_run_skipping_commit", count=len(blobs))
        return PrepareResult(outcome=PrepareOutcome.SKIPPED_DRY_RUN, files=paths)

    async with AsyncExitStack() as stack:
        if client is None:
            if identity.host != "github.com":
                log.info("using_enterprise_api", api_url=api_base_url(identity.host))
            client = await stack.enter_async_context(get_git_client(token, identity.host))

        ref = await client.read_ref(identity)
        head_sha = ref.object.sha
        log.info("ref_read", ref=ref.ref, head=head_sha)

        head_commit = await client.read_commit(identity, head_sha)
        base_tree_sha = head_commit.tree.sha
        log.info("base_tree_read", base_tree=base_tree_sha)

        blob_shas = await _create_blobs(client, identity, blobs)
        log.info("blobs_created", count=len(blob_shas))

        tree = await client.create_tree(identity, base_tree_sha, blob_shas)
        log.info("tree_created", tree=tree.sha)

        if tree.sha == base_tree_sha:
            log.info("no_changes_detected", tree=tree.sha)
            return PrepareResult(
                outcome=PrepareOutcome.SKIPPED_NO_CHANGE, files=paths, tree_sha=tree.sha
            )

        message = compose_commit_message(plugin_config.commit_message, context.next_release)
        author = get_git_identity(
            env, "author", plugin_config.author_name, plugin_config.author_email
        )
        committer = get_git_identity(
            env, "committer", plugin_config.committer_name, plugin_config.committer_email
        )
        if author or committer:
            log.info(
                "using_custom_identity",
                author=f"{author.name} <{author.email}>" if author else None,
                committer=f"{committer.name} <{committer.email}>" if committer else None,
            )
        else:
            log.info("using_host_signing_identity")

        commit = await client.create_commit(
            identity, message, tree.sha, [head_sha], author, committer
        )
        log.info("commit_created", commit=commit.sha, tree=tree.sha, parent=head_sha)

        await client.update_ref(identity, commit.sha)
        log.info("ref_updated", commit=commit.sha)

    sync = local_sync or get_local_sync()
    try:
        await sync.sync(identity, token, cwd, env)
    except LocalSyncError as exc:
        log.error(
            "local_sync_failed",
            commit=commit.sha,
            error=str(exc),
            detail="remote branch already points at the new commit",
        )
        raise
    log.info("local_repository_updated", commit=commit.sha)

    if context.next_release is not None:
        context.next_release.git_head = commit.sha
        log.info("next_release_git_head_updated", git_head=commit.sha)

    log.info("prepare_committed", commit=commit.sha, files=len(blobs))
    return PrepareResult(
        outcome=PrepareOutcome.COMMITTED,
        files=paths,
        commit_sha=commit.sha,
        tree_sha=tree.sha,
    )
