"""Unified diff line counting and exclude-pattern matching."""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class DiffStats:
    """Changed-line counts for a single diff."""

    additions: int = 0
    deletions: int = 0


def parse_diff(diff: str) -> DiffStats:
    """Count added and removed lines in a unified diff.

    Only line prefixes are inspected: hunk headers, context lines and the
    ``+++``/``---`` file markers are ignored.

    Args:
        diff: Unified diff text (may be empty)

    Returns:
        DiffStats with the number of added and removed lines
    """
    additions = 0
    deletions = 0

    for line in diff.split("\n"):
        if line.startswith("+") and not line.startswith("+++"):
            additions += 1
        elif line.startswith("-") and not line.startswith("---"):
            deletions += 1

    return DiffStats(additions=additions, deletions=deletions)


@lru_cache(maxsize=256)
def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Convert a shell glob into a compiled regular expression.

    ``*`` matches any run of characters (path separators included) and ``?``
    matches exactly one character; everything else is literal. The result is
    not anchored, so it must be applied with ``search`` and matches anywhere
    inside a path.

    Args:
        pattern: Glob pattern such as ``**/*.lock``

    Returns:
        Compiled regular expression
    """
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts))


def is_excluded(path: str, patterns: Iterable[str]) -> bool:
    """Return True if any exclude pattern matches the path."""
    return any(glob_to_regex(pattern).search(path) for pattern in patterns)
