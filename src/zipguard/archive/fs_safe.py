"""Filesystem-safe helpers for writing extracted files under a target directory.

These helpers enforce "no-follow" semantics for symlinks in path components to
mitigate path traversal via pre-existing symlinks in the target directory.

Important:
- This module is designed for Linux/POSIX hosts where `openat(2)` semantics
  are available via Python's `os.open(..., dir_fd=...)`, and where `O_NOFOLLOW`
  can be relied upon to fail on symlinks.
- We intentionally fail closed if the required OS features are not available.
  A best-effort lstat/realpath walk is TOCTOU-prone and is not used here.
  See: https://lwn.net/Articles/899543/
"""

from __future__ import annotations

import os
import stat
from contextlib import contextmanager
from typing import IO, Iterator, Sequence

from zipguard.archive.errors import (
    TargetNotEmpty,
    UnsafeFilesystemPath,
    UnsupportedFilesystemSafety,
)

DIR_MODE = 0o777
FILE_MODE = 0o755


def _require_nofollow_support() -> None:
    """
    Ensure we can enforce "no-follow" semantics for each path component.

    We require:
    - os.open supports dir_fd (openat)
    - os.mkdir supports dir_fd (mkdirat) for safe intermediate directory creation
    - O_NOFOLLOW is available (refuse symlink components)
    """

    supports_dir_fd = getattr(os, "supports_dir_fd", None)
    if supports_dir_fd is None or os.open not in supports_dir_fd:
        raise UnsupportedFilesystemSafety(
            "openat() support is required for safe filesystem IO."
        )
    if os.mkdir not in supports_dir_fd:
        raise UnsupportedFilesystemSafety(
            "mkdirat() support is required for safe filesystem IO."
        )
    if not hasattr(os, "O_NOFOLLOW"):
        raise UnsupportedFilesystemSafety(
            "O_NOFOLLOW is required for safe filesystem IO."
        )


def ensure_empty_directory(path: str) -> None:
    """Refuse an existing, non-empty directory. A missing one is fine."""
    try:
        with os.scandir(path) as it:
            has_children = any(True for _ in it)
    except (FileNotFoundError, NotADirectoryError):
        return
    if has_children:
        raise TargetNotEmpty(f"target directory {path} exists and is not empty")


def _open_dir_nofollow(parent_fd: int, name: str) -> int:
    flags = os.O_RDONLY | os.O_NOFOLLOW
    if hasattr(os, "O_DIRECTORY"):
        flags |= os.O_DIRECTORY
    fd = os.open(name, flags, dir_fd=parent_fd)
    if not hasattr(os, "O_DIRECTORY"):
        try:
            if not stat.S_ISDIR(os.fstat(fd).st_mode):
                raise NotADirectoryError(name)
        except Exception:
            os.close(fd)
            raise
    return fd


def _ensure_dir_nofollow(parent_fd: int, name: str) -> int:
    """Ensure a directory exists and open it without following symlinks."""
    try:
        return _open_dir_nofollow(parent_fd, name)
    except FileNotFoundError:
        os.mkdir(name, DIR_MODE, dir_fd=parent_fd)
        return _open_dir_nofollow(parent_fd, name)


def _create_file_nofollow(parent_fd: int, name: str) -> int:
    flags = os.O_WRONLY | os.O_CREAT | os.O_EXCL | os.O_NOFOLLOW
    return os.open(name, flags, FILE_MODE, dir_fd=parent_fd)


@contextmanager
def open_target_root(path: str) -> Iterator[int]:
    """Create `path` (and ancestors) if needed and yield a directory fd for it."""
    _require_nofollow_support()
    os.makedirs(path, DIR_MODE, exist_ok=True)
    root_flags = os.O_RDONLY
    if hasattr(os, "O_DIRECTORY"):
        root_flags |= os.O_DIRECTORY
    root_fd = os.open(path, root_flags)
    try:
        yield root_fd
    finally:
        os.close(root_fd)


def create_file_nofollow(root_fd: int, parts: Sequence[str]) -> IO[bytes]:
    """
    Create a new file at `parts` below `root_fd` and open it for writing.

    Missing directories are created. Symlink components and existing files are
    refused. The file mode is fixed to FILE_MODE whatever the umask.
    """

    rel_parts = list(parts)
    if not rel_parts:
        raise UnsafeFilesystemPath("Invalid target path.")
    rel_path = "/".join(rel_parts)

    current_fd = root_fd
    try:
        for part in rel_parts[:-1]:
            next_fd = _ensure_dir_nofollow(current_fd, part)
            if current_fd != root_fd:
                os.close(current_fd)
            current_fd = next_fd

        fd = _create_file_nofollow(current_fd, rel_parts[-1])
    except FileExistsError as exc:
        raise UnsafeFilesystemPath(f"{rel_path}: file already exists") from exc
    except OSError as exc:
        raise UnsafeFilesystemPath(
            f"{rel_path}: refused unsafe filesystem write ({exc.strerror})"
        ) from exc
    finally:
        if current_fd != root_fd:
            os.close(current_fd)

    try:
        os.fchmod(fd, FILE_MODE)
    except OSError:
        os.close(fd)
        raise
    return os.fdopen(fd, "wb")
