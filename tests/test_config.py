"""Tests for settings and the paging-limit policy."""

import pytest

from remotelog.config import Settings, load_settings


@pytest.mark.parametrize(
    "limit, expected",
    [
        (None, 50),
        (0, 0),
        (10, 10),
        (500, 100),
    ],
)
def test_paging_limit(limit, expected):
    settings = Settings(default_limit=50, max_page_size=100)

    assert settings.paging_limit(limit) == expected


def test_default_limit_is_capped_by_page_size():
    assert Settings(default_limit=500, max_page_size=100).paging_limit() == 100


def test_load_settings_from_environment(monkeypatch):
    monkeypatch.setenv("REMOTELOG_DEFAULT_LIMIT", "25")
    monkeypatch.setenv("REMOTELOG_CACHING", "false")
    monkeypatch.setenv("REMOTELOG_YOU_LABEL", "Me")

    settings = load_settings()

    assert settings.default_limit == 25
    assert settings.caching_enabled is False
    assert settings.you_label == "Me"
    assert settings.max_page_size == 100
