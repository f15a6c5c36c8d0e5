"""Viewer-relative identity names and two-revision comparison results."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

YOU = "You"


def normalize_name(name: str, viewer: Optional[str], you: str = YOU) -> str:
    """Replace *name* with the "You" label when it is the authenticated viewer."""
    if viewer is not None and name == viewer:
        return you
    return name


class ComparisonStatus(str, Enum):
    IDENTICAL = "identical"
    BEHIND = "behind"
    AHEAD = "ahead"
    DIVERGED = "diverged"


def is_ancestor_status(status: Optional[str]) -> bool:
    """Whether a comparison of `left...right` proves left is an ancestor of right.

    Unknown or missing statuses answer False.
    """
    if status in (ComparisonStatus.IDENTICAL, ComparisonStatus.BEHIND):
        return True
    # ahead, diverged and anything unrecognized
    return False


@dataclass(frozen=True)
class LeftRightCount:
    """Commits only on the left side and only on the right side of a range."""

    left: int
    right: int
