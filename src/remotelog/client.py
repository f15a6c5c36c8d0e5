"""Contracts for the collaborators the engine talks to.

Both are satisfied structurally; no inheritance is required. The engine never
reaches the remote in any other way, so tests substitute in-memory fakes.
"""

from datetime import datetime
from typing import Optional, Protocol, Sequence, runtime_checkable

from remotelog.models.context import RepositoryContext
from remotelog.models.remote import Comparison, CommitsPage, RawCommit, SearchPage


@runtime_checkable
class RemoteHistoryClient(Protocol):
    """Read-only access to a remote repository's history."""

    async def get_commit(self, owner: str, repo: str, revision: str) -> Optional[RawCommit]:
        """Return a single commit, or None when it does not exist."""
        ...

    async def get_commits(
        self,
        owner: str,
        repo: str,
        revision: str,
        *,
        all: Optional[bool] = None,
        authors: Optional[Sequence[str]] = None,
        after: Optional[str] = None,
        limit: Optional[int] = None,
        since: Optional[datetime] = None,
        path: Optional[str] = None,
    ) -> CommitsPage:
        """Return one page of commits reachable from *revision*."""
        ...

    async def get_commit_for_file(
        self, owner: str, repo: str, revision: str, path: str
    ) -> Optional[RawCommit]:
        """Return the latest commit at or before *revision* that touched *path*."""
        ...

    async def get_commit_count(self, owner: str, repo: str, revision: str) -> Optional[int]:
        ...

    async def get_comparison(self, owner: str, repo: str, range: str) -> Optional[Comparison]:
        ...

    async def search_commits(
        self,
        query: str,
        *,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
        sort: Optional[str] = None,
    ) -> Optional[SearchPage]:
        ...


@runtime_checkable
class RepositoryResolver(Protocol):
    """Maps local repository paths onto remote repositories and sessions."""

    async def ensure_repository_context(self, repo_path: str) -> RepositoryContext:
        """Resolve owner, name and viewer; raises when the repository is unreachable."""
        ...

    async def get_head_revision(self, repo_path: str) -> str:
        """Return the sha the repository's HEAD currently points at."""
        ...

    async def get_path_type(self, repo_path: str, revision: str, path: str) -> Optional[str]:
        """Return 'tree' for folders, 'blob' for files, None when unknown."""
        ...
