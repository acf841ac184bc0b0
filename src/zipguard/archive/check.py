"""Validation of every entry of a decoded archive."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger

from zipguard.archive.collisions import CollisionChecker
from zipguard.archive.errors import ArchiveError, FileError, FileErrorList
from zipguard.archive.limits import ArchiveLimits, get_archive_limits
from zipguard.archive.reader import ZipArchive
from zipguard.archive.security import validate_entry_path
from zipguard.archive.sizes import SizeEnforcer

logger = getLogger(__name__)


@dataclass
class CheckedFiles:
    """Outcome of checking the entries of one archive."""

    # Names of file entries that passed every check, in archive order.
    valid: list[str] = field(default_factory=list)
    # Entries left out by policy rather than rejected. Never filled by zipguard.
    omitted: list[FileError] = field(default_factory=list)
    # Entries rejected by path or collision checks.
    invalid: list[FileError] = field(default_factory=list)
    # Set when the archive or its declared contents exceed the size budget.
    size_error: ArchiveError | None = None

    def err(self) -> ArchiveError | None:
        """
        Return the error describing why the archive is invalid, if it is.

        A size error takes precedence over invalid entries, which stay
        available in `invalid`.
        """
        if self.size_error is not None:
            return self.size_error
        if self.invalid:
            return FileErrorList(self.invalid)
        return None

    def raise_for_error(self) -> None:
        error = self.err()
        if error is not None:
            raise error


def check_archive(archive: ZipArchive, limits: ArchiveLimits | None = None) -> CheckedFiles:
    """Check entry names, collisions and declared sizes of every entry."""
    limits = limits or get_archive_limits()
    checked = CheckedFiles()
    collisions = CollisionChecker()
    sizes = SizeEnforcer(limits)

    for entry in archive.entries:
        try:
            validate_entry_path(entry.path, limits)
            collisions.check(entry.path, entry.is_dir)
        except ArchiveError as exc:
            checked.invalid.append(FileError(entry.name, exc))
            continue
        if entry.is_dir:
            continue
        sizes.add(entry)
        checked.valid.append(entry.name)

    checked.size_error = sizes.error
    logger.info(
        "archive_check: done (path=%s valid=%s invalid=%s total_bytes=%s size_error=%s)",
        archive.path,
        len(checked.valid),
        len(checked.invalid),
        sizes.total,
        checked.size_error is not None,
    )
    return checked
