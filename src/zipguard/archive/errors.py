"""Errors raised while checking, hashing and extracting archives."""

from __future__ import annotations


class ArchiveError(Exception):
    """Base class for every error reported by zipguard."""


class UsageError(ArchiveError):
    """Raised when the command line does not match any supported form."""


class InvalidArchive(ArchiveError):
    """Raised when the zip container cannot be decoded or read."""


class ArchiveTooLarge(ArchiveError):
    """Raised when the zip container itself exceeds the size budget."""


class ContentTooLarge(ArchiveError):
    """Raised when declared uncompressed sizes exceed the size budget."""


class UnsafeArchivePath(ArchiveError, ValueError):
    """Raised when an archive entry path is not clean or not portable."""


class NameCollision(ArchiveError):
    """Raised when two entries collide case-insensitively or by kind."""


class HashMismatch(ArchiveError):
    """Raised when the computed fingerprint differs from the expected one."""


class TargetNotEmpty(ArchiveError):
    """Raised when the extraction target exists and is not empty."""


class DeclaredSizeExceeded(ArchiveError):
    """Raised when an entry decompresses to more bytes than it declares."""


class PrefixNotMatched(ArchiveError):
    """Raised when an extraction prefix matched no file entry."""


class UnsafeFilesystemPath(ArchiveError, ValueError):
    """Raised when a destination path is unsafe on the local filesystem."""


class UnsupportedFilesystemSafety(UnsafeFilesystemPath):
    """Raised when the runtime cannot guarantee safe no-follow filesystem IO."""


class FileError(ArchiveError):
    """An error attached to a single archive entry."""

    def __init__(self, path: str, err: Exception):
        super().__init__(path, err)
        self.path = path
        self.err = err

    def __str__(self) -> str:
        return f"{self.path}: {self.err}"


class FileErrorList(ArchiveError):
    """All per-entry errors found in one archive, one per line."""

    def __init__(self, errors: list[FileError]):
        super().__init__(errors)
        self.errors = list(errors)

    def __str__(self) -> str:
        return "\n".join(str(e) for e in self.errors)


class ZipError(ArchiveError):
    """Wraps an error with the operation and archive it happened in."""

    def __init__(self, verb: str, path: str, err: Exception):
        super().__init__(verb, path, err)
        self.verb = verb
        self.path = path
        self.err = err

    def __str__(self) -> str:
        if not self.path:
            return f"{self.verb}: {self.err}"
        return f"{self.verb} {self.path}: {self.err}"
