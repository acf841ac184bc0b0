"""Thin adapter over `zipfile` exposing the entries zipguard works with."""

from __future__ import annotations

import os
import zipfile
import zlib
from dataclasses import dataclass, field
from logging import getLogger
from typing import IO

from zipguard.archive.errors import InvalidArchive
from zipguard.archive.limits import ArchiveLimits, get_archive_limits
from zipguard.archive.sizes import check_archive_size

logger = getLogger(__name__)

# zipfile reports corrupt members through several unrelated exception types.
DECODE_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError)

# General purpose flag bits.
ENCRYPTED_FLAG = 0x1
UTF8_FLAG = 0x800


def _entry_name(info: zipfile.ZipInfo) -> str:
    """
    Return the entry name as stored.

    zipfile decodes names without the UTF-8 flag as cp437, but many archivers
    write UTF-8 names without setting it. Those are decoded as UTF-8 when valid.
    """
    if info.flag_bits & UTF8_FLAG:
        return info.filename
    try:
        return info.filename.encode("cp437").decode("utf-8")
    except UnicodeError:
        return info.filename


@dataclass(frozen=True)
class Entry:
    """One file or directory marker stored in an archive."""

    name: str
    declared_size: int
    index: int = field(default=-1, compare=False, repr=False)

    @property
    def is_dir(self) -> bool:
        """Directory entries are marked by a trailing slash."""
        return self.name.endswith("/")

    @property
    def path(self) -> str:
        """Entry name without the directory marker."""
        return self.name[:-1] if self.is_dir else self.name


class EntryReader:
    """File-like view of a member stream that reports decode failures uniformly."""

    def __init__(self, fp: IO[bytes], name: str):
        self._fp = fp
        self.name = name

    def read(self, size: int = -1) -> bytes:
        try:
            return self._fp.read(size)
        except DECODE_ERRORS as exc:
            raise InvalidArchive(f"reading {self.name}: {exc}") from exc

    def close(self) -> None:
        self._fp.close()

    def __enter__(self) -> "EntryReader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class ZipArchive:
    """A decoded zip archive: ordered entries plus per-entry byte streams."""

    def __init__(self, zf: zipfile.ZipFile, path: str = "", fileobj: IO[bytes] | None = None):
        self._zf = zf
        self._fileobj = fileobj
        self.path = path
        self._infos = zf.infolist()
        self.entries = [
            Entry(name=_entry_name(info), declared_size=int(info.file_size), index=i)
            for i, info in enumerate(self._infos)
        ]

    def open(self, entry: Entry) -> EntryReader:
        """Open the decompressed stream of `entry`."""
        info = self._infos[entry.index]
        if info.flag_bits & ENCRYPTED_FLAG:
            raise InvalidArchive(f"opening {entry.name}: encrypted entries are not supported")
        try:
            fp = self._zf.open(info)
        except DECODE_ERRORS as exc:
            raise InvalidArchive(f"opening {entry.name}: {exc}") from exc
        return EntryReader(fp, entry.name)

    def close(self) -> None:
        self._zf.close()
        if self._fileobj is not None:
            self._fileobj.close()

    def __enter__(self) -> "ZipArchive":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def open_archive(path: str, limits: ArchiveLimits | None = None) -> ZipArchive:
    """
    Open a zip file from disk.

    The raw container size is checked against the budget before the central
    directory is read.
    """
    limits = limits or get_archive_limits()
    fp = open(path, "rb")  # noqa: SIM115  # pylint: disable=consider-using-with
    try:
        size = os.fstat(fp.fileno()).st_size
        check_archive_size(size, limits)
        try:
            zf = zipfile.ZipFile(fp)
        except DECODE_ERRORS as exc:
            raise InvalidArchive(f"{path}: {exc}") from exc
    except Exception:
        fp.close()
        raise
    logger.debug(
        "archive_open: decoded (path=%s size=%s entries=%s)", path, size, len(zf.infolist())
    )
    return ZipArchive(zf, path=str(path), fileobj=fp)
