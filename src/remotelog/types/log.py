"""Log value type: an ordered, read-only page (or pages) of commits."""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Awaitable, Callable, Mapping, Optional, Protocol, Union

from remotelog.types.commit import Commit


@dataclass(frozen=True)
class MoreUntil:
    """Request more commits until the given sha is part of the log."""

    until: str


MoreRequest = Union[int, MoreUntil, None]


class Pager(Protocol):
    """Continuation that resumes the query a log came from."""

    async def more(self, log: "Log", limit: MoreRequest = None) -> "Log": ...


Requery = Callable[[Optional[int]], Awaitable[Optional["Log"]]]


@dataclass(frozen=True)
class Log:
    """Result of a history query.

    Logs are never mutated once returned. Fetching more pages or re-issuing
    the query always produces a new Log, so stale references stay valid.
    """

    repo_path: str
    head_revision: Optional[str]
    commits: Mapping[str, Commit]
    limit: Optional[int] = None
    has_more: bool = False
    ending_cursor: Optional[str] = None
    starting_cursor: Optional[str] = None
    pager: Optional[Pager] = field(default=None, compare=False, repr=False)
    requery: Optional[Requery] = field(default=None, compare=False, repr=False)
    paged: Optional[Mapping[str, Commit]] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "commits", MappingProxyType(dict(self.commits)))
        if self.paged is not None:
            object.__setattr__(self, "paged", MappingProxyType(dict(self.paged)))
        if not self.has_more and self.pager is not None:
            raise ValueError("A log without more pages cannot carry a pager")

    @property
    def count(self) -> int:
        return len(self.commits)

    @property
    def shas(self):
        return list(self.commits.keys())

    def last_sha(self) -> Optional[str]:
        return next(reversed(self.commits), None)

    def paged_commits(self) -> Mapping[str, Commit]:
        """Commits first added by the `more` call that produced this log."""
        return self.paged if self.paged is not None else self.commits

    def exhausted(self) -> "Log":
        """Copy of this log that reports no further pages."""
        return replace(self, has_more=False, pager=None)

    async def more(self, limit: MoreRequest = None) -> "Log":
        """Fetch the next page and return a new merged log.

        A log without a pager has nothing more to fetch and returns itself.
        """
        if self.pager is None:
            return self
        return await self.pager.more(self, limit)

    async def query(self, limit: Optional[int] = None) -> Optional["Log"]:
        """Re-issue the query this log came from with a different page size."""
        if self.requery is None:
            return None
        return await self.requery(limit)
