"""Tests for viewer name substitution and comparison classification."""

import pytest

from remotelog.history.identity import ComparisonStatus, is_ancestor_status, normalize_name


@pytest.mark.parametrize(
    "name, viewer, expected",
    [
        ("Alice", "Alice", "You"),
        ("Alice", "Bob", "Alice"),
        ("Alice", None, "Alice"),
        ("alice", "Alice", "alice"),
    ],
)
def test_normalize_name(name, viewer, expected):
    assert normalize_name(name, viewer) == expected


def test_normalize_name_with_custom_label():
    assert normalize_name("Alice", "Alice", you="Me") == "Me"


@pytest.mark.parametrize(
    "status, expected",
    [
        ("identical", True),
        ("behind", True),
        ("ahead", False),
        ("diverged", False),
        (ComparisonStatus.BEHIND, True),
        ("unknown", False),
        (None, False),
    ],
)
def test_is_ancestor_status(status, expected):
    assert is_ancestor_status(status) is expected
