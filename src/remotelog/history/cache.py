"""
Query cache for repository and path logs.

Entries are asyncio futures stored per document, where a document is a
(repository, path) pair and path None stands for the repository itself.

The cache relies on asyncio's cooperative scheduling: a miss stores the
pending task synchronously, before anything awaits, so a concurrent identical
request finds that task instead of starting a second fetch. Callers await
entries through `asyncio.shield` so that one cancelled caller cannot cancel a
fetch other callers are waiting on.

Nothing expires on its own. Documents are dropped by `invalidate` (the
document tracker calls it when tracked content changes) or `reset`.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, Tuple

from loguru import logger

from remotelog.types.log import Log, Requery
from remotelog.types.options import LogForPathOptions, LogOptions

DocumentKey = Tuple[str, Optional[str]]

WHOLE_LOG = "log"


@dataclass(frozen=True)
class CacheEntry:
    key: str
    future: "asyncio.Future[Optional[Log]]"
    failure: Optional[str] = None


class DocumentState:
    """Cached logs of one document, keyed by query fingerprint."""

    def __init__(self):
        self._logs: Dict[str, CacheEntry] = {}

    def get_log(self, key: str) -> Optional[CacheEntry]:
        return self._logs.get(key)

    def set_log(self, key: str, entry: CacheEntry) -> None:
        self._logs[key] = entry

    def remove_log(self, key: str) -> None:
        self._logs.pop(key, None)

    def __len__(self) -> int:
        return len(self._logs)


def _normalize_rev(rev: Optional[str]) -> Optional[str]:
    return None if not rev or rev == "HEAD" else rev


def query_fingerprint(
    rev: Optional[str],
    *,
    all: Optional[bool] = None,
    limit: Optional[int] = None,
    merges: Optional[bool] = None,
    ordering: Optional[str] = None,
    renames: Optional[bool] = None,
) -> str:
    """Deterministic cache key built from the cacheable query parameters."""
    key = WHOLE_LOG
    rev = _normalize_rev(rev)
    if rev is not None:
        key += f":{rev}"
    if all:
        key += ":all"
    if limit:
        key += f":n{limit}"
    if merges:
        key += ":merges"
    if ordering:
        key += f":ordering={ordering}"
    if renames:
        key += ":follow"
    return key


def whole_log_fingerprint(renames: Optional[bool] = None) -> str:
    return query_fingerprint(None, renames=renames)


def is_cacheable(options: LogOptions) -> bool:
    """Whether a query is worth caching.

    Author, cursor, date and filter queries are one-shot or too narrow, and
    folder logs are never cached.
    """
    if options.authors is not None or options.cursor is not None:
        return False
    if options.since is not None or options.until is not None:
        return False
    if isinstance(options, LogForPathOptions):
        if options.is_folder or options.filters is not None or options.range is not None:
            return False
    return True


class QueryCache:
    """Per-document cache of in-flight and settled log futures."""

    def __init__(self):
        self._documents: Dict[DocumentKey, DocumentState] = {}

    def document(self, key: DocumentKey) -> DocumentState:
        state = self._documents.get(key)
        if state is None:
            state = self._documents[key] = DocumentState()
        return state

    def get(self, key: DocumentKey, fingerprint: str) -> Optional[CacheEntry]:
        state = self._documents.get(key)
        return state.get_log(fingerprint) if state is not None else None

    def get_or_fetch(
        self,
        key: DocumentKey,
        fingerprint: str,
        fetch: Callable[[], Awaitable[Optional[Log]]],
        *,
        empty: Optional[Callable[[], Log]] = None,
    ) -> "asyncio.Future[Optional[Log]]":
        """Return the cached future for *fingerprint*, starting a fetch on a miss.

        With `empty`, a failed fetch is replaced by an already resolved future
        of `empty()` that remembers the failure message, so repeating the
        query replays the empty result. Without it, the failure propagates
        and the entry is evicted.
        """
        state = self.document(key)
        entry = state.get_log(fingerprint)
        if entry is not None:
            logger.debug(f"Cache hit: '{fingerprint}' {key}")
            return entry.future

        logger.debug(f"Cache miss: '{fingerprint}' {key}")
        future = asyncio.ensure_future(self._settle(key, state, fingerprint, fetch, empty))
        state.set_log(fingerprint, CacheEntry(key=fingerprint, future=future))
        logger.debug(f"Cache add: '{fingerprint}' {key}")
        return future

    async def _settle(
        self,
        key: DocumentKey,
        state: DocumentState,
        fingerprint: str,
        fetch: Callable[[], Awaitable[Optional[Log]]],
        empty: Optional[Callable[[], Log]],
    ) -> Optional[Log]:
        try:
            return await fetch()
        except Exception as e:
            current = asyncio.current_task()
            entry = state.get_log(fingerprint)
            owned = entry is not None and entry.future is current and self._documents.get(key) is state

            if empty is None:
                if owned:
                    logger.debug(f"Cache evict (failed): '{fingerprint}' {key}")
                    state.remove_log(fingerprint)
                raise

            log = empty()
            if owned:
                logger.debug(f"Cache replace (with empty log): '{fingerprint}' {key}")
                resolved = asyncio.get_running_loop().create_future()
                resolved.set_result(log)
                state.set_log(fingerprint, CacheEntry(key=fingerprint, future=resolved, failure=str(e)))
            return log

    async def reconstruct(
        self,
        key: DocumentKey,
        rev: Optional[str],
        limit: Optional[int],
        requery: Optional[Requery] = None,
        *,
        renames: Optional[bool] = None,
    ) -> Optional[Log]:
        """Answer a partial query from the cached whole-file log, if possible.

        Only a fully fetched whole log can prove where *rev* sits; a log that
        still has more pages, or does not contain *rev*, gives None.
        """
        entry = self.get(key, whole_log_fingerprint(renames))
        if entry is None:
            return None

        rev = _normalize_rev(rev)
        log = await asyncio.shield(entry.future)
        if log is None or log.has_more:
            return None
        if rev is not None and rev not in log.commits:
            return None

        commits = {}
        skip = rev is not None
        for sha, commit in log.commits.items():
            if skip:
                if sha != rev:
                    continue
                skip = False
            if limit and len(commits) >= limit:
                break
            commits[sha] = commit

        logger.debug(f"Cache hit: ~'{WHOLE_LOG}' {key} from {rev or 'HEAD'} (n={limit})")
        return Log(
            repo_path=log.repo_path,
            head_revision=log.head_revision,
            commits=commits,
            limit=limit,
            has_more=False,
            ending_cursor=log.ending_cursor,
            requery=requery,
        )

    def invalidate(self, repo_path: str, path: Optional[str] = None) -> None:
        """Drop the document for *path*, or every document of the repository."""
        if path is not None:
            self._documents.pop((repo_path, path), None)
            return
        for key in [k for k in self._documents if k[0] == repo_path]:
            del self._documents[key]

    def reset(self) -> None:
        self._documents.clear()
