"""Extraction of a checked archive into a local directory."""

from __future__ import annotations

import shutil
from logging import getLogger

from zipguard.archive.check import check_archive
from zipguard.archive.errors import (
    ArchiveError,
    DeclaredSizeExceeded,
    PrefixNotMatched,
    ZipError,
)
from zipguard.archive.fs_safe import (
    create_file_nofollow,
    ensure_empty_directory,
    open_target_root,
)
from zipguard.archive.limits import ArchiveLimits, get_archive_limits
from zipguard.archive.reader import ZipArchive

logger = getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class BoundedReader:
    """
    Reader returning at most `limit` bytes of `stream`.

    Once the limit is reached the next read probes one more byte and raises
    DeclaredSizeExceeded if the stream has any, so no more than `limit + 1`
    bytes are ever pulled from it.
    """

    def __init__(self, stream, limit: int, name: str = ""):
        self._stream = stream
        self._remaining = limit
        self.limit = limit
        self.name = name

    def read(self, size: int = -1) -> bytes:
        if self._remaining <= 0:
            if self._stream.read(1):
                raise DeclaredSizeExceeded(
                    f"uncompressed size of file {self.name} is larger than "
                    f"declared size ({self.limit} bytes)"
                )
            return b""
        if size is None or size < 0 or size > self._remaining:
            size = self._remaining
        data = self._stream.read(size)
        self._remaining -= len(data)
        return data


def _destination_parts(name: str, prefix: str) -> tuple[str, ...] | None:
    """Return the path parts to write `name` to, or None if it is filtered out."""
    if prefix:
        if not name.startswith(prefix + "/"):
            return None
        name = name[len(prefix) + 1 :]
    return tuple(name.split("/"))


def _unzip(target_dir: str, archive: ZipArchive, prefix: str, limits: ArchiveLimits) -> int:
    # Checked before the archive so a bad target fails without touching disk.
    ensure_empty_directory(target_dir)
    check_archive(archive, limits).raise_for_error()

    files_done = 0
    prefix_matched = False
    with open_target_root(target_dir) as root_fd:
        for entry in archive.entries:
            if not entry.name or entry.is_dir:
                continue
            parts = _destination_parts(entry.name, prefix)
            if parts is None:
                continue
            prefix_matched = True

            with create_file_nofollow(root_fd, parts) as out_fp, archive.open(entry) as member_fp:
                bounded = BoundedReader(member_fp, entry.declared_size, entry.name)
                shutil.copyfileobj(bounded, out_fp, length=CHUNK_SIZE)
            files_done += 1

    if prefix and not prefix_matched:
        raise PrefixNotMatched(f"no file matched prefix {prefix!r}")
    return files_done


def unzip(
    target_dir: str,
    archive: ZipArchive,
    prefix: str = "",
    limits: ArchiveLimits | None = None,
) -> None:
    """
    Extract the file entries of `archive` into `target_dir`.

    - `target_dir` is created if missing and must be empty if it exists
    - the archive must pass `check_archive`
    - with `prefix`, only entries under "<prefix>/" are written, without it
    - every file is created exclusively with mode 0o755
    - a member yielding more bytes than declared aborts the extraction; files
      written so far stay on disk
    """
    limits = limits or get_archive_limits()
    try:
        files_done = _unzip(str(target_dir), archive, prefix, limits)
    except (ArchiveError, OSError) as exc:
        logger.info("archive_unzip: failed (path=%s target=%s)", archive.path, target_dir)
        raise ZipError("unzip", archive.path, exc) from exc
    logger.info(
        "archive_unzip: done (path=%s target=%s prefix=%s files=%s)",
        archive.path,
        target_dir,
        prefix,
        files_done,
    )
