"""Commit message templating."""

import re

from release_committer.schemas.release import NextRelease

DEFAULT_COMMIT_MESSAGE = "chore(release): ${nextRelease.version} [skip ci]"

_TOKEN_RE = re.compile(r"\$\{nextRelease\.(version|gitTag|gitHead|notes)\}")


def compose_commit_message(template: str | None, next_release: NextRelease | None) -> str:
    """Substitute ``${nextRelease.*}`` tokens with literal release values.

    Supported tokens are ``version``, ``gitTag``, ``gitHead`` and ``notes``;
    anything else is left untouched. Without release metadata a custom
    template or the built-in default is returned with its placeholders
    left unresolved.
    """
    if next_release is None:
        return template or DEFAULT_COMMIT_MESSAGE

    values = {
        "version": next_release.version,
        "gitTag": next_release.git_tag,
        "gitHead": next_release.git_head,
        "notes": next_release.notes or "",
    }
    # Single pass so substituted values are never re-expanded.
    return _TOKEN_RE.sub(lambda m: values[m.group(1)], template or DEFAULT_COMMIT_MESSAGE)
