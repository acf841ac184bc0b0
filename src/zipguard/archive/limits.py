"""Archive size and path limits.

These limits keep zip-bombs and pathological archives from exhausting memory
or disk, and keep extracted paths usable on common filesystems.

All limits are configurable via environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

MAX_ZIP_SIZE = 500 << 20  # 500 MiB


def _env_int(name: str, default: int) -> int:
    """Read an integer env var, returning `default` on missing/invalid."""

    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class ArchiveLimits:
    """Limits applied while checking and extracting an archive."""

    max_zip_size: int = MAX_ZIP_SIZE
    max_file_size: int = MAX_ZIP_SIZE
    max_path_length: int = 4096
    max_component_length: int = 255


def get_archive_limits() -> ArchiveLimits:
    """Read archive limits from environment variables."""

    max_zip_size = _env_int("ZIPGUARD_MAX_ZIP_SIZE", MAX_ZIP_SIZE)
    return ArchiveLimits(
        max_zip_size=max_zip_size,
        max_file_size=_env_int("ZIPGUARD_MAX_FILE_SIZE", max_zip_size),
        max_path_length=_env_int("ZIPGUARD_MAX_PATH_LENGTH", 4096),
        max_component_length=_env_int("ZIPGUARD_MAX_COMPONENT_LENGTH", 255),
    )
