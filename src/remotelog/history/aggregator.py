"""
Log aggregation: turns one page of raw remote commits into a `Log`.

Everything here is a pure transformation. The viewer label used for the
"You" substitution is passed in by the caller rather than looked up.
"""

from datetime import datetime
from typing import Dict, List, Optional, Union

from remotelog.history.identity import YOU, normalize_name
from remotelog.models.remote import CommitsPage, RawCommit, RawFile, SearchPage
from remotelog.types.commit import (
    NO_FILES,
    Commit,
    CommitStats,
    CompleteFiles,
    FileChange,
    FileSet,
    FileStats,
    FileStatus,
    FilteredFiles,
    Identity,
)
from remotelog.types.log import Log, Pager, Requery

RawPage = Union[CommitsPage, SearchPage]


def _create_file_change(file: RawFile) -> FileChange:
    return FileChange(
        path=file.filename or "",
        status=FileStatus.from_remote(file.status) or FileStatus.MODIFIED,
        previous_path=file.previous_filename,
        stats=FileStats(
            additions=file.additions or 0,
            deletions=file.deletions or 0,
            changes=file.changes or 0,
        ),
    )


def _reconcile_single_file(files: List[FileChange], raw: RawCommit, path: str) -> List[FileChange]:
    """Use the commit totals for the one file a single-file commit touched.

    The remote does not always report per-file stats, but when only one file
    changed the commit-level counts are exactly that file's counts. The file
    is reported as modified in place.
    """
    for index, file in enumerate(files):
        if file.path == path:
            files[index] = FileChange(
                path=path,
                status=FileStatus.MODIFIED,
                previous_path=None,
                stats=FileStats(additions=raw.additions or 0, deletions=raw.deletions or 0, changes=0),
            )
            break
    return files


def _create_file_set(raw: RawCommit, path: Optional[str], is_folder: bool) -> FileSet:
    if raw.files is None:
        return NO_FILES

    files = [_create_file_change(f) for f in raw.files]
    if path is None:
        return CompleteFiles(files=tuple(files))

    if not is_folder and raw.changed_files == 1:
        files = _reconcile_single_file(files, raw, path)
    return FilteredFiles(files=tuple(files), pathspec=path)


def build_commit(
    raw: RawCommit,
    repo_path: str,
    *,
    viewer: Optional[str] = None,
    you: str = YOU,
    path: Optional[str] = None,
    is_folder: bool = False,
) -> Commit:
    """Normalize a raw remote commit.

    Args:
        raw: The commit as sent by the remote.
        repo_path: Repository the commit belongs to.
        viewer: Label of the authenticated viewer, if known.
        you: Name substituted for the viewer.
        path: When set, the file set is filtered to this pathspec.
        is_folder: Whether *path* is a folder (disables single-file stats).

    Returns:
        The immutable Commit.
    """
    return Commit(
        sha=raw.oid,
        repo_path=repo_path,
        author=Identity(
            name=normalize_name(raw.author.name, viewer, you),
            email=raw.author.email,
            date=raw.author.date,
            avatar_url=raw.author.avatar_url,
        ),
        committer=Identity(
            name=normalize_name(raw.committer.name, viewer, you),
            email=raw.committer.email,
            date=raw.committer.date,
        ),
        summary=raw.message.split("\n", 1)[0],
        parent_ids=tuple(raw.parents),
        message=raw.message,
        file_set=_create_file_set(raw, path, is_folder),
        stats=CommitStats(
            files_changed=raw.changed_files or 0,
            additions=raw.additions or 0,
            deletions=raw.deletions or 0,
        ),
    )


def build_log(
    repo_path: str,
    head_revision: Optional[str],
    page: RawPage,
    *,
    viewer: Optional[str] = None,
    you: str = YOU,
    limit: Optional[int] = None,
    path: Optional[str] = None,
    is_folder: bool = False,
    pager: Optional[Pager] = None,
    requery: Optional[Requery] = None,
) -> Log:
    """Build a Log from one page, keeping the first record seen for each sha."""
    commits: Dict[str, Commit] = {}
    for raw in page.values:
        if raw.oid in commits:
            continue
        commits[raw.oid] = build_commit(
            raw, repo_path, viewer=viewer, you=you, path=path, is_folder=is_folder
        )

    return Log(
        repo_path=repo_path,
        head_revision=head_revision,
        commits=commits,
        limit=limit,
        has_more=page.has_more,
        ending_cursor=page.cursor,
        pager=pager if page.has_more else None,
        requery=requery,
    )


def build_uncommitted_commit(
    repo_path: str,
    sha: str,
    now: datetime,
    *,
    viewer_email: Optional[str] = None,
    you: str = YOU,
) -> Commit:
    """Synthetic commit standing in for working-tree (or staged) changes."""
    identity = Identity(name=you, email=viewer_email, date=now)
    return Commit(
        sha=sha,
        repo_path=repo_path,
        author=identity,
        committer=identity,
        summary="Uncommitted changes",
        parent_ids=("HEAD",),
        message="Uncommitted changes",
    )
