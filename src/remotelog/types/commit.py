"""Immutable commit model shared by every log the engine produces."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class Identity:
    """Author or committer of a commit."""

    name: str
    email: Optional[str]
    date: datetime
    avatar_url: Optional[str] = None


class FileStatus(str, Enum):
    """Status of a file within a commit."""

    ADDED = "A"
    MODIFIED = "M"
    DELETED = "D"
    RENAMED = "R"
    COPIED = "C"
    UNMERGED = "U"

    @classmethod
    def from_remote(cls, status: Optional[str]) -> Optional["FileStatus"]:
        """Map a remote file status string, or None when it is not recognized."""
        return _REMOTE_STATUSES.get(status or "")


_REMOTE_STATUSES = {
    "added": FileStatus.ADDED,
    "changed": FileStatus.MODIFIED,
    "modified": FileStatus.MODIFIED,
    "removed": FileStatus.DELETED,
    "renamed": FileStatus.RENAMED,
    "copied": FileStatus.COPIED,
}


@dataclass(frozen=True)
class FileStats:
    additions: int = 0
    deletions: int = 0
    changes: int = 0


@dataclass(frozen=True)
class FileChange:
    """A file touched by a commit."""

    path: str
    status: FileStatus
    previous_path: Optional[str] = None
    stats: Optional[FileStats] = None


@dataclass(frozen=True)
class CompleteFiles:
    """Every file the commit touched."""

    files: Tuple[FileChange, ...]


@dataclass(frozen=True)
class FilteredFiles:
    """Files intersected with a requested pathspec, so the set may be partial."""

    files: Tuple[FileChange, ...]
    pathspec: str


@dataclass(frozen=True)
class AbsentFiles:
    """The remote did not report any files for the commit."""


NO_FILES = AbsentFiles()

FileSet = Union[CompleteFiles, FilteredFiles, AbsentFiles]


@dataclass(frozen=True)
class CommitStats:
    files_changed: int = 0
    additions: int = 0
    deletions: int = 0


@dataclass(frozen=True)
class Commit:
    """A single commit as returned by the remote, normalized."""

    sha: str
    repo_path: str
    author: Identity
    committer: Identity
    summary: str  # First line of the message
    parent_ids: Tuple[str, ...]
    message: str
    file_set: FileSet = NO_FILES
    stats: CommitStats = field(default_factory=CommitStats)

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def files(self) -> Tuple[FileChange, ...]:
        """Files known for this commit; empty when the remote sent none."""
        if isinstance(self.file_set, AbsentFiles):
            return ()
        return self.file_set.files

    @property
    def is_filtered(self) -> bool:
        return isinstance(self.file_set, FilteredFiles)
