"""Glob matching for library scans."""

from __future__ import annotations

import fnmatch
import re
from pathlib import Path
from typing import Iterable, Iterator


def _expand(pattern: str) -> Iterator[str]:
    """Expand shell-style ``{a,b}`` alternatives, which fnmatch lacks."""

    match = re.search(r"\{([^{}]*,[^{}]*)\}", pattern)
    if not match:
        yield pattern
        return
    prefix = pattern[: match.start()]
    suffix = pattern[match.end() :]
    for option in match.group(1).split(","):
        yield from _expand(prefix + option + suffix)


def _matches(rel: str, globs: Iterable[str]) -> bool:
    for pattern in globs:
        for expanded in _expand(pattern):
            if fnmatch.fnmatch(rel, expanded):
                return True
            # ``**/`` also matches entries directly under the root
            if expanded.startswith("**/") and fnmatch.fnmatch(rel, expanded[3:]):
                return True
    return False


def is_excluded(path: Path, globs: Iterable[str], *, root: Path) -> bool:
    """Return ``True`` if *path* matches one of the exclude *globs*.

    Matching works on the POSIX form of the path relative to *root* so the
    same globs behave identically on every platform.
    """

    return _matches(path.relative_to(root).as_posix(), globs)


def should_include(
    path: Path,
    include_globs: Iterable[str],
    exclude_globs: Iterable[str],
    *,
    root: Path,
) -> bool:
    """Return ``True`` if *path* should be scanned."""

    if is_excluded(path, exclude_globs, root=root):
        return False
    return _matches(path.relative_to(root).as_posix(), include_globs)


__all__ = ["is_excluded", "should_include"]
