"""Error taxonomy for the commit publishing flow.

Every error carries a short machine-readable ``code`` that the release tool
surfaces to the operator alongside the human-readable message.
"""

from __future__ import annotations


class ReleaseCommitError(Exception):
    """Base class for all fatal errors raised while publishing a commit."""

    code: str = "ERELEASECOMMIT"

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class AuthMissingError(ReleaseCommitError):
    """No GitHub token in the environment or the plugin config."""

    code = "EGHNOAUTH"


class LocatorUnparseableError(ReleaseCommitError):
    """The repository URL could not be decomposed into host/owner/repo."""

    code = "ENOREPO"


class BranchUndetectableError(ReleaseCommitError):
    """No branch could be resolved from CI variables or release config."""

    code = "ENOBRANCH"


class RemoteApiError(ReleaseCommitError):
    """A git object API call failed.

    One error type covers all six operations; ``operation`` names the call
    that failed and ``cause`` keeps the underlying exception.
    """

    code = "EGHAPI"

    def __init__(self, operation: str, cause: BaseException | str) -> None:
        super().__init__(operation, str(cause))
        self.operation = operation
        self.cause = cause


class LocalSyncError(ReleaseCommitError):
    """Fetching or resetting the local clone after the ref update failed."""

    code = "ELOCALSYNC"
