"""Revision and path helpers used when talking to the remote."""

import posixpath
import re
from typing import Optional

UNCOMMITTED = "0" * 40
UNCOMMITTED_STAGED = f"{UNCOMMITTED}:"
DELETED_OR_MISSING = f"{UNCOMMITTED}-"

_UNCOMMITTED_RE = re.compile(r"^0{7,40}:?$")
_ORIGIN_RE = re.compile(r"^origin/")


def is_uncommitted(rev: Optional[str], exact: bool = False) -> bool:
    """Whether *rev* names the working tree (or the index) instead of a commit."""
    if not rev:
        return False
    if exact:
        return rev in (UNCOMMITTED, UNCOMMITTED_STAGED)
    return bool(_UNCOMMITTED_RE.match(rev))


def strip_origin(rev: Optional[str]) -> Optional[str]:
    """Drop a leading `origin/`, the remote only knows its own branch names."""
    if rev is None:
        return None
    return _ORIGIN_RE.sub("", rev)


def create_revision_range(left: str, right: str, notation: str = "..") -> str:
    return f"{left}{notation}{right}"


def get_relative_path(path: str, repo_path: str) -> str:
    """Express *path* relative to the repository root.

    Paths outside the repository are returned normalized but unchanged.
    """
    path = path.replace("\\", "/")
    root = repo_path.replace("\\", "/").rstrip("/")
    if path == root:
        return path
    if path.startswith(f"{root}/"):
        return posixpath.normpath(path[len(root) + 1 :])
    return posixpath.normpath(path) if path else path


def is_folder_glob(path: str) -> bool:
    return path.endswith("/*")


def strip_folder_glob(path: str) -> str:
    return path[:-2] if is_folder_glob(path) else path
