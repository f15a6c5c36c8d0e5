"""
"Fetch more" support for logs.

A `LogPager` remembers how to re-issue the query a log came from at a given
cursor. Each call to `Log.more` asks it for the next page and returns a new,
merged Log that carries the same pager while the remote keeps reporting more
pages. The log the caller already holds is never touched.
"""

from dataclasses import replace
from typing import Awaitable, Callable, Dict, Optional

from loguru import logger

from remotelog.config import Settings
from remotelog.types.commit import Commit
from remotelog.types.log import Log, MoreRequest, MoreUntil

PageFetcher = Callable[[int, Optional[str]], Awaitable[Optional[Log]]]


def merge_logs(log: Log, more_log: Log, added_limit: Optional[int]) -> Log:
    """Append the commits of *more_log* that *log* does not already hold.

    Existing entries keep their position and value. With `added_limit` None
    (an `until` request) the merged limit is unknown and reported as None.
    """
    commits: Dict[str, Commit] = dict(log.commits)
    paged: Dict[str, Commit] = {}
    for sha, commit in more_log.commits.items():
        if sha not in commits:
            commits[sha] = commit
            paged[sha] = commit

    return Log(
        repo_path=log.repo_path,
        head_revision=log.head_revision,
        commits=commits,
        limit=(log.limit or 0) + added_limit if added_limit is not None else None,
        has_more=more_log.has_more,
        starting_cursor=log.last_sha(),
        ending_cursor=more_log.ending_cursor,
        pager=log.pager if more_log.has_more else None,
        requery=log.requery,
        paged=paged,
    )


class LogPager:
    """Continuation for a repository, path or search log.

    `fetch_page(limit, cursor)` re-issues the originating query one page at a
    time and answers None when the page could not be fetched.
    """

    def __init__(self, fetch_page: PageFetcher, settings: Settings):
        self._fetch_page = fetch_page
        self._settings = settings

    async def more(self, log: Log, limit: MoreRequest = None) -> Log:
        until = limit.until if isinstance(limit, MoreUntil) else None
        if until is not None and until in log.commits:
            return log

        page_limit = self._settings.paging_limit(limit if isinstance(limit, int) else None)

        more_log = await self._fetch_page(page_limit, log.ending_cursor)
        # If we can't find any more, assume we have everything
        if more_log is None or not more_log.commits:
            logger.debug(f"No more commits after cursor '{log.ending_cursor}' in {log.repo_path}")
            return log.exhausted()

        merged = merge_logs(log, more_log, page_limit if until is None else None)
        if merged.has_more and merged.pager is not self:
            merged = replace(merged, pager=self)
        return merged
