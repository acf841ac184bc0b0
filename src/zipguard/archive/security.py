"""Archive entry path validation.

Entry paths must already be clean relative POSIX paths and must be portable to
the common filesystems (Windows, macOS, Linux). Nothing is rewritten: a path
that would need normalizing is rejected.
"""

from __future__ import annotations

import posixpath
import unicodedata

from zipguard.archive.errors import UnsafeArchivePath
from zipguard.archive.limits import ArchiveLimits, get_archive_limits

# ASCII punctuation allowed in file names. Shell specials (" ' * < > ? ` |) and
# separators (/ : \) are left out.
_ALLOWED_PUNCTUATION = frozenset("!#$%&()+,-.=@[]^_{}~ ")

_BAD_WINDOWS_NAMES = frozenset(
    ["con", "prn", "aux", "nul"]
    + [f"com{i}" for i in range(1, 10)]
    + [f"lpt{i}" for i in range(1, 10)]
)


def is_clean_path(path: str) -> bool:
    """Return True if `path` is its own clean relative form."""
    if not path or path.startswith("/"):
        return False
    if posixpath.normpath(path) != path:
        return False
    parts = path.split("/")
    return "." not in parts and ".." not in parts


def _file_name_char_ok(c: str) -> bool:
    if c.isascii():
        return c.isalnum() or c in _ALLOWED_PUNCTUATION
    return unicodedata.category(c).startswith("L")


def _check_element(elem: str, limits: ArchiveLimits) -> str | None:
    """Return the reason `elem` is not a portable path element, if any."""
    if not elem:
        return "empty path element"
    if elem.count(".") == len(elem):
        return f"invalid path element {elem!r}"
    if elem.endswith("."):
        return "trailing dot in path element"
    for c in elem:
        if not _file_name_char_ok(c):
            return f"invalid char {c!r}"
    short = elem.split(".", 1)[0]
    if short.lower() in _BAD_WINDOWS_NAMES:
        return f"{short!r} disallowed as path element component on Windows"
    if len(elem.encode("utf-8")) > limits.max_component_length:
        return f"path element longer than {limits.max_component_length} bytes"
    return None


def check_file_path(path: str, limits: ArchiveLimits | None = None) -> None:
    """
    Check that `path` is usable as a file path on every common filesystem.

    - ASCII letters, digits, a small set of punctuation and spaces
    - non-ASCII letters
    - no empty, dot-only or dot-terminated elements
    - no Windows device names (CON, NUL, COM1, ...)
    - bounded element and total length
    """
    limits = limits or get_archive_limits()
    reason = None
    if not path:
        reason = "empty string"
    elif "//" in path:
        reason = "double slash"
    elif path.endswith("/"):
        reason = "trailing slash"
    elif len(path.encode("utf-8", "surrogatepass")) > limits.max_path_length:
        reason = f"path longer than {limits.max_path_length} bytes"
    else:
        for elem in path.split("/"):
            reason = _check_element(elem, limits)
            if reason:
                break
    if reason:
        raise UnsafeArchivePath(f"malformed file path {path!r}: {reason}")


def validate_entry_path(path: str, limits: ArchiveLimits | None = None) -> None:
    """
    Validate an entry path (directory marker already stripped).

    Cleanliness is checked first, portability second; the first failure wins.
    """
    if not is_clean_path(path):
        raise UnsafeArchivePath(f"file path is not clean: {path}")
    check_file_path(path, limits)
