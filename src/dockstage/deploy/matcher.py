"""Include/exclude pattern matching for build-context resources.

Patterns follow Ant-style directory-scanner rules:

- ``*`` and ``?`` match within a single path segment
- ``**`` matches any number of segments, including none
- a trailing ``/`` is shorthand for ``/**``

Matching is case-sensitive and always relative to the scanned root.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from fnmatch import fnmatchcase
from pathlib import Path

from dockstage.lib.errors import PatternMatchError
from dockstage.lib.logging_config import get_logger

logger = get_logger(__name__)

MATCH_ALL = "**"


def split_pattern(pattern: str) -> list[str]:
    """Split a glob pattern into normalized path segments.

    Example:
        >>> split_pattern("conf/")
        ['conf', '**']
        >>> split_pattern("a//**/**/*.txt")
        ['a', '**', '*.txt']
    """
    normalized = pattern.replace("\\", "/")
    if normalized.endswith("/"):
        normalized += MATCH_ALL

    segments: list[str] = []
    for segment in normalized.split("/"):
        if not segment:
            continue
        # Consecutive ** are equivalent to a single one
        if segment == MATCH_ALL and segments and segments[-1] == MATCH_ALL:
            continue
        segments.append(segment)
    return segments


def _match_segments(pattern: Sequence[str], path: Sequence[str]) -> bool:
    if not pattern:
        return not path

    head = pattern[0]
    if head == MATCH_ALL:
        rest = pattern[1:]
        if not rest:
            return True
        return any(_match_segments(rest, path[i:]) for i in range(len(path) + 1))

    if not path or not fnmatchcase(path[0], head):
        return False
    return _match_segments(pattern[1:], path[1:])


def matches_pattern(path: str, patterns: Sequence[str]) -> bool:
    """Check whether a relative path matches any of the given patterns.

    Args:
        path: POSIX-style path relative to the scan root
        patterns: Glob patterns to test

    Returns:
        True if at least one pattern matches

    Example:
        >>> matches_pattern("a.txt", ["*.txt"])
        True
        >>> matches_pattern("docs/a.txt", ["*.txt"])
        False
        >>> matches_pattern("docs/a.txt", ["**/*.txt"])
        True
    """
    path_segments = [part for part in path.split("/") if part]
    return any(
        _match_segments(split_pattern(pattern), path_segments) for pattern in patterns
    )


def _walk_files(root: Path) -> list[str]:
    files: list[str] = []
    for current, dirnames, filenames in os.walk(root):
        dirnames.sort()
        base = Path(current).relative_to(root)
        for name in sorted(filenames):
            candidate = Path(current) / name
            # Broken symlinks and special files are not stageable
            if candidate.is_file():
                files.append((base / name).as_posix())
    return files


def match_files(
    root: Path,
    includes: Sequence[str],
    excludes: Sequence[str],
) -> list[str]:
    """Return the files under root selected by include/exclude patterns.

    An empty include list selects every file. Excludes are applied after
    includes and always win.

    Args:
        root: Directory to scan
        includes: Include glob patterns
        excludes: Exclude glob patterns

    Returns:
        Sorted POSIX-style paths relative to root

    Raises:
        PatternMatchError: If root does not exist or is not a directory
    """
    root = Path(root)
    if not root.exists():
        raise PatternMatchError(str(root), f"Directory not found: {root}")
    if not root.is_dir():
        raise PatternMatchError(str(root), f"Not a directory: {root}")

    include_patterns = list(includes) or [MATCH_ALL]
    matched = sorted(
        path
        for path in _walk_files(root)
        if matches_pattern(path, include_patterns)
        and not matches_pattern(path, excludes)
    )

    logger.debug(
        f"Matched {len(matched)} file(s) under {root} "
        f"(includes={list(includes)}, excludes={list(excludes)})"
    )
    return matched
