"""
Commit history provider backed by a remote history API.

This is the surface UI and CLI code talks to. Every operation takes a
repository path, returns the commit/log model (or None) and never raises for
remote failures: those are logged and turned into empty results. The only
exception is a path that names the repository root, which is a caller bug.
"""

import asyncio
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from functools import partial
from typing import Any, List, Optional

from loguru import logger

from remotelog.client import RemoteHistoryClient, RepositoryResolver
from remotelog.config import Settings
from remotelog.history.aggregator import build_commit, build_log, build_uncommitted_commit
from remotelog.history.cache import QueryCache, is_cacheable, query_fingerprint
from remotelog.history.identity import LeftRightCount, is_ancestor_status
from remotelog.history.pagination import LogPager
from remotelog.history.revision import (
    DELETED_OR_MISSING,
    create_revision_range,
    get_relative_path,
    is_folder_glob,
    is_uncommitted,
    strip_folder_glob,
    strip_origin,
)
from remotelog.history.search import SearchQuery, get_query_args, parse_search_query, sort_for_ordering
from remotelog.models.context import RepositoryContext
from remotelog.models.remote import CommitsPage
from remotelog.types.commit import Commit, FileChange
from remotelog.types.log import Log
from remotelog.types.options import LogForPathOptions, LogOptions, SearchCommitsOptions, to_datetime


@dataclass(frozen=True)
class SearchCommitsResult:
    search: SearchQuery
    log: Optional[Log]


class CommitHistoryProvider:
    """Commit, log and search operations for remote repositories."""

    def __init__(
        self,
        client: RemoteHistoryClient,
        repositories: RepositoryResolver,
        settings: Optional[Settings] = None,
        cache: Optional[QueryCache] = None,
    ):
        self._client = client
        self._repositories = repositories
        self._settings = settings or Settings()
        self._cache = cache or QueryCache()

    @property
    def cache(self) -> QueryCache:
        return self._cache

    @property
    def settings(self) -> Settings:
        return self._settings

    def invalidate(self, repo_path: str, path: Optional[str] = None) -> None:
        """Forget cached logs for a path (or the whole repository) after it changed."""
        self._cache.invalidate(repo_path, get_relative_path(path, repo_path) if path is not None else None)

    def reset_caches(self) -> None:
        self._cache.reset()

    def _cancelled(self, cancellation: Optional[asyncio.Event], operation: str) -> bool:
        if cancellation is not None and cancellation.is_set():
            logger.debug(f"{operation} cancelled before reaching the remote")
            return True
        return False

    async def _resolve_revision(self, repo_path: str, rev: Optional[str]) -> str:
        if not rev or rev == "HEAD":
            return await self._repositories.get_head_revision(repo_path)
        return rev

    async def _fetch_commits(
        self, context: RepositoryContext, rev: str, limit: int, after: Optional[str] = None, **kwargs: Any
    ) -> CommitsPage:
        """Fetch one page, or every remaining page when *limit* is 0."""
        if limit:
            return await self._client.get_commits(
                context.owner, context.name, strip_origin(rev), after=after, limit=limit, **kwargs
            )

        values = []
        viewer = None
        while True:
            page = await self._client.get_commits(
                context.owner,
                context.name,
                strip_origin(rev),
                after=after,
                limit=self._settings.max_page_size,
                **kwargs,
            )
            values.extend(page.values)
            viewer = viewer or page.viewer
            if not page.has_more or not page.cursor or page.cursor == after:
                break
            after = page.cursor

        return CommitsPage(values=values, viewer=viewer)

    async def get_commit(
        self, repo_path: str, rev: str, cancellation: Optional[asyncio.Event] = None
    ) -> Optional[Commit]:
        if repo_path is None or self._cancelled(cancellation, "get_commit"):
            return None

        try:
            context = await self._repositories.ensure_repository_context(repo_path)
            if is_uncommitted(rev, exact=True):
                return build_uncommitted_commit(
                    repo_path,
                    rev,
                    datetime.now(timezone.utc),
                    viewer_email=context.viewer_email,
                    you=self._settings.you_label,
                )

            raw = await self._client.get_commit(context.owner, context.name, strip_origin(rev))
            if raw is None:
                return None

            return build_commit(raw, repo_path, viewer=raw.viewer or context.viewer, you=self._settings.you_label)
        except Exception as e:
            logger.error(f"Error retrieving commit {rev} in {repo_path}: {str(e)}")
            return None

    async def get_commit_count(
        self, repo_path: str, rev: str, cancellation: Optional[asyncio.Event] = None
    ) -> Optional[int]:
        if repo_path is None or self._cancelled(cancellation, "get_commit_count"):
            return None

        try:
            context = await self._repositories.ensure_repository_context(repo_path)
            return await self._client.get_commit_count(context.owner, context.name, strip_origin(rev))
        except Exception as e:
            logger.error(f"Error counting commits for {rev} in {repo_path}: {str(e)}")
            return None

    async def get_commit_files(
        self, repo_path: str, rev: str, cancellation: Optional[asyncio.Event] = None
    ) -> List[FileChange]:
        if rev == DELETED_OR_MISSING or is_uncommitted(rev):
            return []

        commit = await self.get_commit(repo_path, rev, cancellation)
        return list(commit.files) if commit is not None else []

    async def get_commit_for_file(
        self,
        repo_path: str,
        path: str,
        rev: Optional[str] = None,
        cancellation: Optional[asyncio.Event] = None,
    ) -> Optional[Commit]:
        """Latest commit at or before *rev* that touched *path*, files filtered to it."""
        if repo_path is None or self._cancelled(cancellation, "get_commit_for_file"):
            return None

        try:
            context = await self._repositories.ensure_repository_context(repo_path)
            relative_path = get_relative_path(path, repo_path)
            rev = await self._resolve_revision(repo_path, rev)

            raw = await self._client.get_commit_for_file(
                context.owner, context.name, strip_origin(rev), relative_path
            )
            if raw is None:
                return None

            return build_commit(
                raw,
                repo_path,
                viewer=raw.viewer or context.viewer,
                you=self._settings.you_label,
                path=relative_path,
            )
        except Exception as e:
            logger.error(f"Error retrieving commit for {path} at {rev} in {repo_path}: {str(e)}")
            return None

    async def get_left_right_commit_count(
        self, repo_path: str, range: str, cancellation: Optional[asyncio.Event] = None
    ) -> Optional[LeftRightCount]:
        if repo_path is None or self._cancelled(cancellation, "get_left_right_commit_count"):
            return None

        try:
            context = await self._repositories.ensure_repository_context(repo_path)
            result = await self._client.get_comparison(context.owner, context.name, strip_origin(range))
            if result is None:
                return None

            return LeftRightCount(left=result.behind_by, right=result.ahead_by)
        except Exception as e:
            logger.error(f"Error comparing {range} in {repo_path}: {str(e)}")
            return None

    async def is_ancestor_of(
        self, repo_path: str, rev1: str, rev2: str, cancellation: Optional[asyncio.Event] = None
    ) -> bool:
        """Whether *rev1* is an ancestor of (or identical to) *rev2*."""
        if repo_path is None or self._cancelled(cancellation, "is_ancestor_of"):
            return False

        try:
            context = await self._repositories.ensure_repository_context(repo_path)
            result = await self._client.get_comparison(
                context.owner,
                context.name,
                create_revision_range(strip_origin(rev1), strip_origin(rev2), "..."),
            )
            return is_ancestor_status(result.status if result is not None else None)
        except Exception as e:
            logger.error(f"Error comparing {rev1}...{rev2} in {repo_path}: {str(e)}")
            return False

    async def get_log(
        self,
        repo_path: str,
        rev: Optional[str] = None,
        options: Optional[LogOptions] = None,
        cancellation: Optional[asyncio.Event] = None,
    ) -> Optional[Log]:
        """Log of the repository starting at *rev* (HEAD by default)."""
        if repo_path is None or self._cancelled(cancellation, "get_log"):
            return None

        options = options or LogOptions()
        options = replace(options, limit=self._settings.paging_limit(options.limit))

        try:
            if not (self._settings.caching_enabled and is_cacheable(options)):
                return await self._get_log_core(repo_path, rev, options)

            fingerprint = query_fingerprint(
                rev,
                all=options.all,
                limit=options.limit,
                merges=options.merges,
                ordering=options.ordering,
            )
            future = self._cache.get_or_fetch(
                (repo_path, None), fingerprint, partial(self._get_log_core, repo_path, rev, options)
            )
            return await asyncio.shield(future)
        except Exception as e:
            logger.error(f"Error retrieving log for {rev or 'HEAD'} in {repo_path}: {str(e)}")
            return None

    async def _get_log_core(self, repo_path: str, rev: Optional[str], options: LogOptions) -> Log:
        context = await self._repositories.ensure_repository_context(repo_path)
        rev = await self._resolve_revision(repo_path, rev)

        page = await self._fetch_commits(
            context,
            rev,
            options.limit,
            after=options.cursor,
            all=options.all,
            authors=options.authors,
            since=to_datetime(options.since),
        )

        return build_log(
            repo_path,
            rev,
            page,
            viewer=page.viewer or context.viewer,
            you=self._settings.you_label,
            limit=options.limit,
            pager=LogPager(partial(self._get_log_page, repo_path, rev, options), self._settings),
            requery=partial(self._requery_log, repo_path, rev, options),
        )

    async def _get_log_page(
        self, repo_path: str, rev: str, options: LogOptions, limit: int, cursor: Optional[str]
    ) -> Optional[Log]:
        return await self.get_log(repo_path, rev, replace(options, limit=limit, cursor=cursor))

    async def _requery_log(
        self, repo_path: str, rev: str, options: LogOptions, limit: Optional[int]
    ) -> Optional[Log]:
        return await self.get_log(repo_path, rev, replace(options, limit=limit))

    async def _is_folder(self, repo_path: str, rev: Optional[str], path: str) -> bool:
        try:
            return await self._repositories.get_path_type(repo_path, rev or "HEAD", path) == "tree"
        except Exception as e:
            logger.debug(f"Unable to resolve the type of {path} at {rev or 'HEAD'}: {str(e)}")
            return False

    async def get_log_for_path(
        self,
        repo_path: str,
        path: str,
        rev: Optional[str] = None,
        options: Optional[LogForPathOptions] = None,
        cancellation: Optional[asyncio.Event] = None,
    ) -> Optional[Log]:
        """Log of a file or folder; `folder/*` always means the folder.

        Raises:
            ValueError: if *path* is the repository root.
        """
        if repo_path is None:
            return None

        relative_path = get_relative_path(path, repo_path)
        if relative_path in ("", ".") or relative_path == repo_path.replace("\\", "/").rstrip("/"):
            raise ValueError(f"Path cannot match the repository path; path={relative_path}")

        if self._cancelled(cancellation, "get_log_for_path"):
            return None

        options = options or LogForPathOptions()
        # Following renames and --all are not available remotely
        options = replace(options, all=False, limit=self._settings.paging_limit(options.limit), renames=False)

        if is_folder_glob(relative_path):
            relative_path = strip_folder_glob(relative_path)
            options = replace(options, is_folder=True)
        elif options.is_folder is None:
            options = replace(options, is_folder=await self._is_folder(repo_path, rev, relative_path))

        if not (self._settings.caching_enabled and is_cacheable(options)):
            try:
                return await self._get_log_for_path_core(repo_path, relative_path, rev, options)
            except Exception as e:
                logger.error(f"Error retrieving log for {relative_path} in {repo_path}: {str(e)}")
                return None

        key = (repo_path, relative_path)
        fingerprint = query_fingerprint(
            rev,
            all=options.all,
            limit=options.limit,
            merges=options.merges,
            ordering=options.ordering,
            renames=options.renames,
        )

        if self._cache.get(key, fingerprint) is None and (rev or options.limit):
            # A narrower query may be answerable from the whole-file log
            log = await self._cache.reconstruct(
                key,
                rev,
                options.limit,
                partial(self._requery_log_for_path, repo_path, relative_path, rev, options),
                renames=options.renames,
            )
            if log is not None:
                return log

        future = self._cache.get_or_fetch(
            key,
            fingerprint,
            partial(self._get_log_for_path_core, repo_path, relative_path, rev, options),
            empty=partial(Log, repo_path, rev, {}, options.limit),
        )
        return await asyncio.shield(future)

    async def _get_log_for_path_core(
        self, repo_path: str, path: str, rev: Optional[str], options: LogForPathOptions
    ) -> Log:
        context = await self._repositories.ensure_repository_context(repo_path)
        rev = await self._resolve_revision(repo_path, rev)

        page = await self._fetch_commits(
            context,
            rev,
            options.limit,
            after=options.cursor,
            all=options.all,
            path=path,
            since=to_datetime(options.since),
        )

        return build_log(
            repo_path,
            rev,
            page,
            viewer=page.viewer or context.viewer,
            you=self._settings.you_label,
            limit=options.limit,
            path=path,
            is_folder=bool(options.is_folder),
            pager=LogPager(partial(self._get_log_for_path_page, repo_path, path, rev, options), self._settings),
            requery=partial(self._requery_log_for_path, repo_path, path, rev, options),
        )

    async def _get_log_for_path_page(
        self,
        repo_path: str,
        path: str,
        rev: str,
        options: LogForPathOptions,
        limit: int,
        cursor: Optional[str],
    ) -> Optional[Log]:
        return await self.get_log_for_path(repo_path, path, rev, replace(options, limit=limit, cursor=cursor))

    async def _requery_log_for_path(
        self,
        repo_path: str,
        path: str,
        rev: Optional[str],
        options: LogForPathOptions,
        limit: Optional[int],
    ) -> Optional[Log]:
        return await self.get_log_for_path(repo_path, path, rev, replace(options, limit=limit))

    async def get_log_shas(
        self,
        repo_path: str,
        rev: Optional[str] = None,
        options: Optional[LogForPathOptions] = None,
        path: Optional[str] = None,
        cancellation: Optional[asyncio.Event] = None,
    ) -> List[str]:
        if path is not None:
            log = await self.get_log_for_path(repo_path, path, rev, options, cancellation)
        else:
            log = await self.get_log(repo_path, rev, options, cancellation)
        return log.shas if log is not None else []

    async def get_oldest_unpushed_sha_for_path(self, repo_path: str, path: str) -> Optional[str]:
        # Remote repositories expose no local change store to inspect
        return None

    async def has_commit_been_pushed(self, repo_path: str, rev: str) -> bool:
        # Every commit the remote knows about has been pushed
        return True

    async def search_commits(
        self,
        repo_path: str,
        search: SearchQuery,
        options: Optional[SearchCommitsOptions] = None,
        cancellation: Optional[asyncio.Event] = None,
    ) -> SearchCommitsResult:
        if repo_path is None or self._cancelled(cancellation, "search_commits"):
            return SearchCommitsResult(search=search, log=None)

        logger.debug(f"Searching commits in {repo_path} {search.describe()}")
        operations = parse_search_query(search)

        shas = operations.get("commit:")
        if shas:
            commit = await self.get_commit(repo_path, shas[0], cancellation)
            if commit is None:
                return SearchCommitsResult(search=search, log=None)

            return SearchCommitsResult(
                search=search,
                log=Log(repo_path=repo_path, head_revision=commit.sha, commits={commit.sha: commit}, limit=1),
            )

        options = options or SearchCommitsOptions()
        limit = self._settings.paging_limit(options.limit)

        try:
            context = await self._repositories.ensure_repository_context(repo_path)

            args = get_query_args(operations, context.viewer_username)
            if not args:
                return SearchCommitsResult(search=search, log=None)

            query = f"repo:{context.owner}/{context.name}+{'+'.join(args).strip()}"
            page = await self._client.search_commits(
                query,
                cursor=options.cursor,
                limit=limit or self._settings.max_page_size,
                sort=sort_for_ordering(options.ordering),
            )
            if page is None:
                return SearchCommitsResult(search=search, log=None)

            log = build_log(
                repo_path,
                None,
                page,
                viewer=context.viewer,
                you=self._settings.you_label,
                limit=limit,
                pager=LogPager(partial(self._search_page, repo_path, search, options), self._settings),
                requery=partial(self._requery_search, repo_path, search, options),
            )
            return SearchCommitsResult(search=search, log=log)
        except Exception as e:
            logger.error(f"Error searching commits in {repo_path}: {str(e)}")
            return SearchCommitsResult(search=search, log=None)

    async def _search_page(
        self,
        repo_path: str,
        search: SearchQuery,
        options: SearchCommitsOptions,
        limit: int,
        cursor: Optional[str],
    ) -> Optional[Log]:
        result = await self.search_commits(repo_path, search, replace(options, limit=limit, cursor=cursor))
        return result.log

    async def _requery_search(
        self, repo_path: str, search: SearchQuery, options: SearchCommitsOptions, limit: Optional[int]
    ) -> Optional[Log]:
        result = await self.search_commits(repo_path, search, replace(options, limit=limit))
        return result.log
