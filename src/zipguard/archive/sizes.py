"""Size budget enforcement for archive containers and their contents."""

from __future__ import annotations

from typing import TYPE_CHECKING

from zipguard.archive.errors import ArchiveTooLarge, ContentTooLarge
from zipguard.archive.limits import ArchiveLimits

if TYPE_CHECKING:
    from zipguard.archive.reader import Entry


def check_archive_size(size: int, limits: ArchiveLimits) -> None:
    """Refuse a zip container larger than the budget before reading it."""
    if size > limits.max_zip_size:
        raise ArchiveTooLarge(
            f"zip file is too large ({size} bytes; limit is {limits.max_zip_size} bytes)"
        )


class SizeEnforcer:
    """
    Running total of declared uncompressed sizes.

    The first entry that does not fit records `error`; later entries keep being
    counted against the budget but never replace it.
    """

    def __init__(self, limits: ArchiveLimits):
        self.limits = limits
        self.total = 0
        self.error: ContentTooLarge | None = None

    def add(self, entry: Entry) -> bool:
        """Count a file entry. Return False if it did not fit the budget."""
        size = entry.declared_size
        limit = self.limits.max_zip_size
        if size > self.limits.max_file_size:
            self._record(
                ContentTooLarge(
                    f"file {entry.name} too large "
                    f"({size} bytes; limit is {self.limits.max_file_size} bytes)"
                )
            )
            return False
        if 0 <= size <= limit - self.total:
            self.total += size
            return True
        self._record(
            ContentTooLarge(
                "total uncompressed size of archive contents too large "
                f"(max size is {limit} bytes)"
            )
        )
        return False

    def _record(self, error: ContentTooLarge) -> None:
        if self.error is None:
            self.error = error
