"""Pydantic models for GitHub git database objects.

Reference: https://docs.github.com/en/rest/git
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

BlobEncoding = Literal["utf-8", "base64"]


class RepositoryIdentity(BaseModel):
    """Coordinates of the target repository and branch."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    branch: str
    host: str = "github.com"


class FileBlob(BaseModel):
    """One local file to publish, already read and encoded."""

    path: str
    content: str
    encoding: BlobEncoding = "utf-8"


class GitIdentity(BaseModel):
    """Author or committer override sent with a new commit."""

    model_config = ConfigDict(frozen=True)

    name: str
    email: str


class RefObject(BaseModel):
    """The object a ref points at."""

    sha: str
    type: str = "commit"


class RemoteRef(BaseModel):
    """A branch pointer such as ``refs/heads/main``."""

    ref: str
    object: RefObject


class RemoteBlob(BaseModel):
    """A blob created through the API."""

    sha: str
    url: str | None = None


class TreeEntry(BaseModel):
    """A single (path, mode, type, sha) row of a tree."""

    path: str
    mode: str = "100644"
    type: str = "blob"
    sha: str | None = None


class RemoteTree(BaseModel):
    """A tree created through the API."""

    sha: str
    url: str | None = None
    tree: list[TreeEntry] = Field(default_factory=list)


class CommitTree(BaseModel):
    sha: str


class CommitParent(BaseModel):
    sha: str


class RemoteCommit(BaseModel):
    """A commit read or created through the API."""

    sha: str
    url: str | None = None
    message: str = ""
    tree: CommitTree
    parents: list[CommitParent] = Field(default_factory=list)
