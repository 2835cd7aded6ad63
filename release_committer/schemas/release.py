"""Pydantic models for the release context and plugin options.

The release tool speaks camelCase (``repositoryUrl``, ``nextRelease.gitHead``,
``commitMessage``); both that spelling and snake_case are accepted.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BranchSpec(_CamelModel):
    """A named branch entry from the release tool's ``branches`` option."""

    name: str
    prerelease: bool | str | None = None
    channel: str | None = None


class ReleaseOptions(_CamelModel):
    """Subset of the release tool's global options used here."""

    repository_url: str | None = None
    branches: list[str | BranchSpec] = Field(default_factory=list)


class NextRelease(_CamelModel):
    """Version metadata computed by the release tool.

    ``git_head`` is overwritten with the published commit sha so downstream
    steps tag the right commit.
    """

    version: str
    git_tag: str = ""
    git_head: str = ""
    notes: str | None = None


class ReleaseContext(_CamelModel):
    """Everything the release tool hands over for a single run."""

    env: dict[str, str] = Field(default_factory=dict)
    cwd: str = "."
    options: ReleaseOptions = Field(default_factory=ReleaseOptions)
    next_release: NextRelease | None = None


class PluginConfig(_CamelModel):
    """User-supplied options for the publishing step."""

    files: list[str] = Field(default_factory=list)
    github_token: str | None = None
    commit_message: str | None = None
    author_name: str | None = None
    author_email: str | None = None
    committer_name: str | None = None
    committer_email: str | None = None
    dry_run: bool = False


class PrepareOutcome(str, Enum):
    """How a publishing run ended."""

    COMMITTED = "committed"
    SKIPPED_EMPTY = "skipped-empty"
    SKIPPED_NO_CHANGE = "skipped-no-change"
    SKIPPED_DRY_RUN = "skipped-dry-run"


class PrepareResult(BaseModel):
    """Tagged result of :func:`release_committer.services.committer.prepare`."""

    outcome: PrepareOutcome
    files: list[str] = Field(default_factory=list)
    commit_sha: str | None = None
    tree_sha: str | None = None
