"""Query options accepted by the public provider."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple, Union

DateLike = Union[str, datetime]


@dataclass(frozen=True)
class LogOptions:
    """Options for repository logs."""

    all: Optional[bool] = None
    authors: Optional[Tuple[str, ...]] = None
    cursor: Optional[str] = None
    limit: Optional[int] = None  # None = default page size, 0 = everything
    merges: Optional[bool] = None
    ordering: Optional[str] = None  # 'date', 'author-date' or 'topo'
    since: Optional[DateLike] = None
    until: Optional[DateLike] = None


@dataclass(frozen=True)
class LogForPathOptions(LogOptions):
    """Options for logs scoped to a file or folder."""

    filters: Optional[Tuple[str, ...]] = None
    is_folder: Optional[bool] = None
    range: Optional[Tuple[int, int]] = None
    renames: Optional[bool] = None


@dataclass(frozen=True)
class SearchCommitsOptions:
    cursor: Optional[str] = None
    limit: Optional[int] = None
    ordering: Optional[str] = None


def to_datetime(value: Optional[DateLike]) -> Optional[datetime]:
    """Normalize an ISO date string or datetime."""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)
