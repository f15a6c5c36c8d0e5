#!/usr/bin/env python3
"""
examples/paging_demo.py

Demonstrates incremental log loading against an in-memory remote: the first
page is fetched, further pages are pulled with `more()` until the history is
exhausted, and a repeated query is answered from the cache.
"""

import argparse
import asyncio
import sys
from datetime import datetime, timedelta, timezone

from remotelog.config import configure_logging, load_settings
from remotelog.models.context import RepositoryContext
from remotelog.models.remote import CommitsPage, RawCommit
from remotelog.provider import CommitHistoryProvider


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Demonstrate paged, cached commit history loading")
    parser.add_argument("--commits", type=int, default=25, help="Number of commits in the fake history")
    parser.add_argument("--page-size", type=int, default=10, help="Commits fetched per page")
    parser.add_argument("--path", type=str, help="Show the log of this path instead of the repository")
    return parser.parse_args()


class InMemoryRemote:
    """A linear history served newest first; cursors are offsets."""

    def __init__(self, count: int):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.history = []
        for i in range(count, 0, -1):
            when = (start + timedelta(hours=i)).isoformat()
            identity = {"name": "Alice Example" if i % 3 else "Bob Builder", "email": "dev@example.com", "date": when}
            self.history.append(
                RawCommit.model_validate(
                    {
                        "oid": f"{i:040x}",
                        "message": f"Change number {i}",
                        "author": identity,
                        "committer": identity,
                        "parents": [f"{i - 1:040x}"] if i > 1 else [],
                    }
                )
            )
        self.requests = 0

    async def get_commits(self, owner, repo, revision, *, after=None, limit=None, **kwargs):
        self.requests += 1
        offset = int(after) if after else 0
        end = offset + (limit or len(self.history))
        more = end < len(self.history)
        return CommitsPage.model_validate(
            {"values": self.history[offset:end], "paging": {"more": more, "cursor": str(end) if more else None}}
        )


class StaticRepositories:
    def __init__(self, head: str):
        self.head = head

    async def ensure_repository_context(self, repo_path):
        return RepositoryContext(owner="octo", name="demo", viewer="Alice Example")

    async def get_head_revision(self, repo_path):
        return self.head

    async def get_path_type(self, repo_path, revision, path):
        return "blob"


def format_commit_info(commit) -> str:
    return f"{commit.short_sha}  {commit.author.date:%Y-%m-%d %H:%M}  {commit.author.name:<12}  {commit.summary}"


async def run(args) -> int:
    settings = load_settings().model_copy(update={"default_limit": args.page_size})
    configure_logging(settings)

    remote = InMemoryRemote(args.commits)
    provider = CommitHistoryProvider(remote, StaticRepositories(remote.history[0].oid), settings)

    repo_path = "/demo"
    if args.path:
        log = await provider.get_log_for_path(repo_path, args.path)
    else:
        log = await provider.get_log(repo_path)
    if log is None:
        print("Unable to load the log", file=sys.stderr)
        return 1

    print(f"First page: {log.count} commits (more available: {log.has_more})")
    while log.has_more:
        log = await log.more()
        print(f"Loaded {len(log.paged_commits())} more, {log.count} total (more available: {log.has_more})")

    print("\nHistory:")
    for commit in log.commits.values():
        print(format_commit_info(commit))

    requests = remote.requests
    if args.path:
        await provider.get_log_for_path(repo_path, args.path)
    else:
        await provider.get_log(repo_path)
    print(f"\nRepeated first-page query made {remote.requests - requests} remote requests")
    return 0


def main():
    """Run the paging demo."""
    args = parse_args()
    try:
        return asyncio.run(run(args))
    except Exception as e:
        print(f"Error running paging demo: {str(e)}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
