"""Local file resolution and reading for the publishing pipeline.

``resolve_files`` expands glob patterns into repo-relative paths and
``read_files_as_blobs`` loads them, sending text as ``utf-8`` and anything
binary as ``base64``.
"""

import base64
import glob
from pathlib import Path

from release_committer.schemas.git_objects import FileBlob


def _expand(pattern: str, root: Path) -> list[str]:
    matches = glob.glob(pattern, root_dir=root, recursive=True)
    return sorted(
        Path(match).as_posix() for match in matches if (root / match).is_file()
    )


def resolve_files(patterns: list[str], cwd: str | Path) -> list[str]:
    """Expand glob patterns relative to ``cwd`` into a de-duplicated path list.

    Args:
        patterns: Glob patterns such as ``"dist/**"`` or ``"CHANGELOG.md"``.
            A leading ``!`` removes matches of the rest of the pattern from
            the paths collected so far.
        cwd: Repository root the patterns are relative to.

    Returns:
        POSIX-style relative paths of regular files, in first-match order.
    """
    root = Path(cwd)
    resolved: dict[str, None] = {}
    for pattern in patterns:
        if pattern.startswith("!"):
            for path in _expand(pattern[1:], root):
                resolved.pop(path, None)
            continue
        for path in _expand(pattern, root):
            resolved.setdefault(path, None)
    return list(resolved)


def _is_text(data: bytes) -> bool:
    if b"\0" in data:
        return False
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return True


def read_files_as_blobs(paths: list[str], cwd: str | Path) -> list[FileBlob]:
    """Read each path under ``cwd`` into a :class:`FileBlob`."""
    root = Path(cwd)
    blobs: list[FileBlob] = []
    for path in paths:
        data = (root / path).read_bytes()
        if _is_text(data):
            blobs.append(FileBlob(path=path, content=data.decode("utf-8"), encoding="utf-8"))
        else:
            blobs.append(
                FileBlob(path=path, content=base64.b64encode(data).decode("ascii"), encoding="base64")
            )
    return blobs
