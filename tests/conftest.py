"""Shared fixtures: an in-memory remote history API and repository resolver."""

import asyncio
from typing import Dict, List, Optional

import pytest

from remotelog.config import Settings
from remotelog.models.context import RepositoryContext
from remotelog.models.remote import Comparison, CommitsPage, RawCommit, SearchPage
from remotelog.provider import CommitHistoryProvider

REPO_PATH = "/work/hello"
HEAD = "c5"


def make_raw_commit(
    sha: str,
    message: Optional[str] = None,
    author: str = "Alice Example",
    committer: Optional[str] = None,
    files: Optional[List[dict]] = None,
    changed_files: Optional[int] = None,
    additions: Optional[int] = None,
    deletions: Optional[int] = None,
    parents: Optional[List[str]] = None,
) -> RawCommit:
    """Build a raw commit in the remote's own (camelCase) shape."""
    payload = {
        "oid": sha,
        "message": message if message is not None else f"Commit {sha}\n\nBody of {sha}",
        "author": {
            "name": author,
            "email": f"{author.split()[0].lower()}@example.com",
            "date": "2024-03-01T12:00:00+00:00",
            "avatarUrl": f"https://avatars.example.com/{author.split()[0].lower()}",
        },
        "committer": {
            "name": committer or author,
            "email": "noreply@example.com",
            "date": "2024-03-01T12:05:00+00:00",
        },
        "parents": {"nodes": [{"oid": p} for p in (parents or [])]},
    }
    if files is not None:
        payload["files"] = files
    if changed_files is not None:
        payload["changedFiles"] = changed_files
    if additions is not None:
        payload["additions"] = additions
    if deletions is not None:
        payload["deletions"] = deletions
    return RawCommit.model_validate(payload)


class FakeRemoteClient:
    """Serves canned pages; cursors are page indexes rendered as strings."""

    def __init__(self):
        self.pages: Dict[Optional[str], List[List[RawCommit]]] = {}
        self.commits: Dict[str, RawCommit] = {}
        self.file_commits: Dict[str, RawCommit] = {}
        self.comparisons: Dict[str, Comparison] = {}
        self.search_pages: List[List[RawCommit]] = []
        self.counts: Dict[str, int] = {}
        self.viewer: Optional[str] = None
        self.calls: List[dict] = []
        self.search_calls: List[dict] = []

    async def get_commit(self, owner, repo, revision):
        await asyncio.sleep(0)
        return self.commits.get(revision)

    async def get_commits(
        self, owner, repo, revision, *, all=None, authors=None, after=None, limit=None, since=None, path=None
    ):
        self.calls.append({"revision": revision, "after": after, "limit": limit, "path": path, "authors": authors})
        await asyncio.sleep(0)

        pages = self.pages.get(path, [])
        index = int(after) if after else 0
        values = pages[index] if index < len(pages) else []
        more = index + 1 < len(pages)
        return CommitsPage.model_validate(
            {
                "values": values,
                "paging": {"more": more, "cursor": str(index + 1) if more else None},
                "viewer": self.viewer,
            }
        )

    async def get_commit_for_file(self, owner, repo, revision, path):
        await asyncio.sleep(0)
        return self.file_commits.get(path)

    async def get_commit_count(self, owner, repo, revision):
        return self.counts.get(revision)

    async def get_comparison(self, owner, repo, range):
        return self.comparisons.get(range)

    async def search_commits(self, query, *, cursor=None, limit=None, sort=None):
        self.search_calls.append({"query": query, "cursor": cursor, "limit": limit, "sort": sort})
        index = int(cursor) if cursor else 0
        values = self.search_pages[index] if index < len(self.search_pages) else []
        more = index + 1 < len(self.search_pages)
        return SearchPage.model_validate(
            {
                "values": values,
                "pageInfo": {"hasNextPage": more, "endCursor": str(index + 1) if more else None},
            }
        )


class FakeResolver:
    def __init__(self):
        self.context = RepositoryContext(
            owner="octo",
            name="hello",
            viewer="Alice Example",
            viewer_email="alice@example.com",
            viewer_username="alice",
        )
        self.head = HEAD
        self.path_types: Dict[str, str] = {}

    async def ensure_repository_context(self, repo_path):
        return self.context

    async def get_head_revision(self, repo_path):
        return self.head

    async def get_path_type(self, repo_path, revision, path):
        return self.path_types.get(path, "blob")


@pytest.fixture
def client():
    return FakeRemoteClient()


@pytest.fixture
def resolver():
    return FakeResolver()


@pytest.fixture
def settings():
    return Settings(default_limit=3, max_page_size=3)


@pytest.fixture
def provider(client, resolver, settings):
    return CommitHistoryProvider(client, resolver, settings)
