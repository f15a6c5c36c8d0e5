"""
Structured representations of the payloads returned by the remote history API.

The remote speaks camelCase (and, for files, snake_case); both spellings are
accepted so pages can be validated straight from decoded JSON.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RemoteModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class RawIdentity(RemoteModel):
    """Author or committer as sent by the remote."""

    name: str = Field(..., description="Display name")
    email: Optional[str] = Field(None, description="Email address, when visible")
    date: datetime = Field(..., description="Authored or committed timestamp")
    avatar_url: Optional[str] = Field(None, alias="avatarUrl", description="Avatar image URL")


class RawFile(RemoteModel):
    """A file entry of a remote commit."""

    filename: Optional[str] = Field(None, description="Path of the file after the change")
    status: Optional[str] = Field(None, description="Remote status, e.g. 'added' or 'renamed'")
    previous_filename: Optional[str] = Field(None, alias="previousFilename")
    additions: Optional[int] = None
    deletions: Optional[int] = None
    changes: Optional[int] = None


class RawCommit(RemoteModel):
    """A commit record as returned by the remote."""

    oid: str = Field(..., description="The commit sha")
    message: str = Field("", description="The full commit message")
    author: RawIdentity
    committer: RawIdentity
    parents: List[str] = Field(default_factory=list, description="Parent shas in order")
    files: Optional[List[RawFile]] = Field(None, description="Files, when the remote includes them")
    changed_files: Optional[int] = Field(None, alias="changedFiles")
    additions: Optional[int] = None
    deletions: Optional[int] = None
    viewer: Optional[str] = Field(None, description="Authenticated viewer label, when reported")

    @field_validator("parents", mode="before")
    @classmethod
    def _flatten_parents(cls, value: Any) -> Any:
        # The remote nests parents as {"nodes": [{"oid": ...}]}
        if isinstance(value, dict):
            value = value.get("nodes") or []
        if isinstance(value, list):
            return [p["oid"] if isinstance(p, dict) else p for p in value]
        return value


class Paging(RemoteModel):
    more: bool = False
    cursor: Optional[str] = None


class CommitsPage(RemoteModel):
    """One page of a commit listing."""

    values: List[RawCommit] = Field(default_factory=list)
    paging: Optional[Paging] = None
    viewer: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return self.paging.more if self.paging is not None else False

    @property
    def cursor(self) -> Optional[str]:
        return self.paging.cursor if self.paging is not None else None


class PageInfo(RemoteModel):
    has_next_page: bool = Field(False, alias="hasNextPage")
    end_cursor: Optional[str] = Field(None, alias="endCursor")


class SearchPage(RemoteModel):
    """One page of a commit search."""

    values: List[RawCommit] = Field(default_factory=list)
    page_info: Optional[PageInfo] = Field(None, alias="pageInfo")
    viewer: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return self.page_info.has_next_page if self.page_info is not None else False

    @property
    def cursor(self) -> Optional[str]:
        return self.page_info.end_cursor if self.page_info is not None else None


class Comparison(RemoteModel):
    """Result of comparing two revisions."""

    status: Optional[str] = None
    ahead_by: int = Field(0, alias="aheadBy")
    behind_by: int = Field(0, alias="behindBy")
