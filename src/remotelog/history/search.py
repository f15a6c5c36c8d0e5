"""
Commit search query parsing.

Search text uses `operator:value` terms (with short aliases such as `@:` for
authors); bare words are matched against commit messages. The remote search
API understands only part of this language, so `get_query_args` translates
what it can and drops the rest.
"""

import re
import shlex
from dataclasses import dataclass
from typing import Dict, List, Optional

from loguru import logger

OPERATOR_ALIASES: Dict[str, str] = {
    "=:": "message:",
    "message:": "message:",
    "@:": "author:",
    "author:": "author:",
    "#:": "commit:",
    "commit:": "commit:",
    "?:": "file:",
    "file:": "file:",
    "~:": "change:",
    "change:": "change:",
    "after:": "after:",
    "since:": "after:",
    "before:": "before:",
    "until:": "before:",
}

_OPERATOR_RE = re.compile(
    r"^(" + "|".join(re.escape(op) for op in sorted(OPERATOR_ALIASES, key=len, reverse=True)) + r")(.*)$"
)


@dataclass(frozen=True)
class SearchQuery:
    """A commit search as typed by the user."""

    query: str
    match_all: bool = False
    match_case: bool = False
    match_regex: bool = True
    match_whole_word: bool = False

    def describe(self) -> str:
        flags = "".join(
            flag
            for flag, enabled in (
                ("A", self.match_all),
                ("C", self.match_case),
                ("R", self.match_regex),
                ("W", self.match_whole_word),
            )
            if enabled
        )
        query = self.query if len(self.query) <= 500 else f"{self.query[:500]}..."
        return f"[{flags}]: {query}"


def _split_terms(query: str) -> List[str]:
    try:
        return shlex.split(query)
    except ValueError:
        # Unbalanced quotes; fall back to plain whitespace splitting
        return query.split()


def parse_search_query(search: SearchQuery) -> Dict[str, List[str]]:
    """Group the terms of a search by canonical operator, in input order."""
    operations: Dict[str, List[str]] = {}

    for term in _split_terms(search.query.strip()):
        match = _OPERATOR_RE.match(term)
        if match:
            op = OPERATOR_ALIASES[match.group(1)]
            value = match.group(2).strip()
        else:
            op, value = "message:", term

        if not value:
            continue

        values = operations.setdefault(op, [])
        if value not in values:
            values.append(value)

    return operations


def _author_arg(value: str, viewer_username: Optional[str]) -> Optional[str]:
    value = value.replace('"', "")
    if not value:
        return None
    if value == "@me":
        if viewer_username is None:
            return None
        value = f"@{viewer_username}"

    value = value.replace(" ", "+")
    if value.startswith("@"):
        return f"author:{value[1:]}"
    if value.startswith("<") and value.endswith(">"):
        value = value[1:-1]
        return f"author-email:{value}" if "@" in value else f"author-name:{value}"
    if "@" in value:
        return f"author-email:{value}"
    return f"author-name:{value}"


def get_query_args(operations: Dict[str, List[str]], viewer_username: Optional[str] = None) -> List[str]:
    """Translate parsed operations into remote search qualifiers."""
    args: List[str] = []

    for op, values in operations.items():
        if op == "message:":
            args.extend(value.replace(" ", "+") for value in values)
        elif op == "author:":
            for value in values:
                arg = _author_arg(value, viewer_username)
                if arg is not None:
                    args.append(arg)
        elif op == "after:":
            args.extend(f"committer-date:>{value}" for value in values)
        elif op == "before:":
            args.extend(f"committer-date:<{value}" for value in values)
        elif op in ("file:", "change:"):
            logger.warning(f"Search operator '{op}' is not supported remotely; ignoring {values}")

    return args


def sort_for_ordering(ordering: Optional[str]) -> Optional[str]:
    if ordering == "date":
        return "committer-date"
    if ordering == "author-date":
        return "author-date"
    return None
