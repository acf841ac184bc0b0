"""Detection of case-insensitive name collisions and file/directory conflicts."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass

from zipguard.archive.errors import NameCollision
from zipguard.archive.fold import str_to_fold


@dataclass(frozen=True)
class PathInfo:
    """Original spelling and kind of a registered path."""

    path: str
    is_dir: bool


class CollisionChecker:
    """
    Registry of every path seen in an archive, keyed by its folded form.

    Parent directories are registered implicitly, so "a/b" and "A/c" collide on
    "a"/"A" even without explicit directory entries.
    """

    def __init__(self) -> None:
        self.seen: dict[str, PathInfo] = {}

    def check(self, path: str, is_dir: bool) -> None:
        """Register `path` and its ancestors, raising NameCollision on conflict."""
        while True:
            fold = str_to_fold(path)
            other = self.seen.get(fold)
            if other is not None:
                if path != other.path:
                    raise NameCollision(
                        f"case-insensitive file name collision: {other.path!r} and {path!r}"
                    )
                if is_dir != other.is_dir:
                    raise NameCollision(f"entry {path!r} is both a file and a directory")
                if not is_dir:
                    raise NameCollision(f"multiple entries for file {path!r}")
                # Seen directories are walked again: an earlier walk may have
                # stopped at a conflict above them.
            else:
                self.seen[fold] = PathInfo(path=path, is_dir=is_dir)

            parent = posixpath.dirname(path)
            if not parent:
                return
            path, is_dir = parent, True
