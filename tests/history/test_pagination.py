"""Tests for fetching more pages of a log."""

from unittest.mock import AsyncMock

import pytest

from conftest import REPO_PATH, make_raw_commit
from remotelog.history.aggregator import build_log
from remotelog.history.pagination import LogPager, merge_logs
from remotelog.models.remote import CommitsPage
from remotelog.types.log import Log, MoreUntil


def make_log(shas, more=False, cursor=None, pager=None, limit=3) -> Log:
    page = CommitsPage.model_validate(
        {"values": [make_raw_commit(s) for s in shas], "paging": {"more": more, "cursor": cursor}}
    )
    return build_log(REPO_PATH, "a", page, limit=limit, pager=pager)


@pytest.mark.asyncio
async def test_more_merges_overlapping_pages(settings):
    fetch_page = AsyncMock(return_value=make_log(["c", "d", "e"], more=False))
    pager = LogPager(fetch_page, settings)
    log = make_log(["a", "b", "c"], more=True, cursor="1", pager=pager)

    merged = await log.more()

    assert merged.shas == ["a", "b", "c", "d", "e"]
    assert merged.count == 5
    assert merged.commits["c"] is log.commits["c"]
    assert list(merged.paged_commits()) == ["d", "e"]
    assert merged.starting_cursor == "c"
    assert merged.limit == 6
    assert not merged.has_more
    assert merged.pager is None
    fetch_page.assert_awaited_once_with(3, "1")


@pytest.mark.asyncio
async def test_more_never_mutates_the_previous_log(settings):
    fetch_page = AsyncMock(return_value=make_log(["d"], more=True, cursor="2"))
    pager = LogPager(fetch_page, settings)
    log = make_log(["a", "b", "c"], more=True, cursor="1", pager=pager)

    merged = await log.more()

    assert merged is not log
    assert log.shas == ["a", "b", "c"]
    assert log.has_more
    assert log.ending_cursor == "1"
    assert merged.ending_cursor == "2"


@pytest.mark.asyncio
async def test_more_chains_while_remote_has_more(settings):
    pages = [
        make_log(["d", "e", "f"], more=True, cursor="2"),
        make_log(["g"], more=False),
    ]
    fetch_page = AsyncMock(side_effect=pages)
    pager = LogPager(fetch_page, settings)
    log = make_log(["a", "b", "c"], more=True, cursor="1", pager=pager)

    second = await log.more()
    third = await second.more()

    assert second.has_more
    assert second.pager is pager
    assert third.shas == ["a", "b", "c", "d", "e", "f", "g"]
    assert not third.has_more
    assert [call.args for call in fetch_page.await_args_list] == [(3, "1"), (3, "2")]


@pytest.mark.asyncio
async def test_more_until_already_present_returns_same_log(settings):
    fetch_page = AsyncMock()
    pager = LogPager(fetch_page, settings)
    log = make_log(["c5", "c4", "c3"], more=True, cursor="1", pager=pager)

    result = await log.more(MoreUntil("c4"))

    assert result is log
    fetch_page.assert_not_awaited()


@pytest.mark.asyncio
async def test_more_until_does_not_accumulate_limit(settings):
    fetch_page = AsyncMock(return_value=make_log(["c2", "c1"], more=False))
    pager = LogPager(fetch_page, settings)
    log = make_log(["c5", "c4", "c3"], more=True, cursor="1", pager=pager)

    merged = await log.more(MoreUntil("c1"))

    assert merged.limit is None
    assert merged.shas == ["c5", "c4", "c3", "c2", "c1"]
    assert not merged.has_more
    assert merged.pager is None


@pytest.mark.asyncio
async def test_more_until_keeps_paging_when_remote_has_more(settings):
    fetch_page = AsyncMock(return_value=make_log(["c2"], more=True, cursor="2"))
    pager = LogPager(fetch_page, settings)
    log = make_log(["c5", "c4", "c3"], more=True, cursor="1", pager=pager)

    merged = await log.more(MoreUntil("c1"))

    assert merged.has_more
    assert merged.pager is pager
    assert merged.ending_cursor == "2"
    assert merged.limit is None


@pytest.mark.asyncio
async def test_more_clamps_requested_page_size(settings):
    fetch_page = AsyncMock(return_value=make_log(["d"], more=False))
    pager = LogPager(fetch_page, settings)
    log = make_log(["a"], more=True, cursor="1", pager=pager)

    merged = await log.more(50)

    fetch_page.assert_awaited_once_with(3, "1")
    assert merged.limit == 6


@pytest.mark.asyncio
@pytest.mark.parametrize("page", [None, "empty"])
async def test_failed_or_empty_fetch_ends_pagination(settings, page):
    fetch_page = AsyncMock(return_value=make_log([], more=True, cursor="9") if page == "empty" else None)
    pager = LogPager(fetch_page, settings)
    log = make_log(["a", "b"], more=True, cursor="1", pager=pager)

    result = await log.more()

    assert result.shas == ["a", "b"]
    assert not result.has_more
    assert result.pager is None
    assert log.has_more


@pytest.mark.asyncio
async def test_log_without_pager_returns_itself():
    log = make_log(["a"])

    assert await log.more() is log
    assert await log.query(10) is None


def test_merge_logs_keeps_first_value_for_shared_sha():
    first = make_log(["a", "b", "c"])
    second = make_log(["c", "d"])

    merged = merge_logs(first, second, 2)

    assert merged.shas == ["a", "b", "c", "d"]
    assert merged.commits["c"] is first.commits["c"]
    assert merged.limit == 5
