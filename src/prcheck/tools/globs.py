"""Glob matching for repository-relative paths.

Patterns follow the usual shell conventions per path segment (``*``, ``?`` and
``[...]`` never cross a ``/``) while a segment consisting solely of ``**``
matches zero or more directories, so ``test/**/*.js`` covers both
``test/foo.js`` and ``test/unit/deep/foo.js``.

As with minimatch, wildcards and ``**`` skip segments starting with ``.``
unless the pattern segment itself starts with ``.``.
"""

from __future__ import annotations

from fnmatch import fnmatchcase
from functools import lru_cache
from pathlib import PurePosixPath
from typing import Iterable

_RECURSIVE = "**"


def _split(value: str) -> tuple[str, ...]:
    return tuple(part for part in value.replace("\\", "/").split("/") if part and part != ".")


@lru_cache(maxsize=4096)
def _match_parts(parts: tuple[str, ...], pattern: tuple[str, ...]) -> bool:
    if not pattern:
        return not parts

    head, rest = pattern[0], pattern[1:]
    if head == _RECURSIVE:
        for index in range(len(parts) + 1):
            if _match_parts(parts[index:], rest):
                return True
            # ``**`` never descends into dot directories.
            if index < len(parts) and _is_hidden(parts[index]):
                return False
        return False

    if not parts:
        return False
    if _is_hidden(parts[0]) and not _is_hidden(head):
        return False
    return fnmatchcase(parts[0], head) and _match_parts(parts[1:], rest)


def _is_hidden(segment: str) -> bool:
    return segment.startswith(".")


def match_path(path: str | PurePosixPath, pattern: str) -> bool:
    """Return ``True`` when ``path`` matches the glob ``pattern``."""

    return _match_parts(_split(str(path)), _split(pattern))


def matches_any(path: str | PurePosixPath, patterns: Iterable[str]) -> bool:
    """Return ``True`` when ``path`` matches at least one of ``patterns``."""

    return any(match_path(path, pattern) for pattern in patterns)


__all__ = ["match_path", "matches_any"]
