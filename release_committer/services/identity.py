"""Author/committer resolution for new commits.

Returning None is meaningful: the commit is then created without identity
fields and GitHub signs it as the authenticated app or bot.
"""

from collections.abc import Mapping
from typing import Literal

from release_committer.schemas.git_objects import GitIdentity

# The release tool's generic default identity. Treated as "not configured".
DEFAULT_BOT_NAME = "semantic-release-bot"
DEFAULT_BOT_EMAIL = "semantic-release-bot@martynus.net"


def get_git_identity(
    env: Mapping[str, str],
    role: Literal["author", "committer"],
    config_name: str | None = None,
    config_email: str | None = None,
) -> GitIdentity | None:
    """Resolve the identity for ``role`` from config, then ``GIT_<ROLE>_*`` env vars.

    Each field is resolved independently. The default bot pair and any
    incomplete pair resolve to None.
    """
    prefix = f"GIT_{role.upper()}"
    name = config_name or env.get(f"{prefix}_NAME")
    email = config_email or env.get(f"{prefix}_EMAIL")

    if name == DEFAULT_BOT_NAME and email == DEFAULT_BOT_EMAIL:
        return None

    if name and email:
        return GitIdentity(name=name, email=email)

    return None
