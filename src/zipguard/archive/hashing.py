"""Content fingerprint of an archive.

The fingerprint only depends on the (name, content) pairs of the file entries:
entry order, compression method and other container metadata do not matter.

    h1:<base64(sha256(lines))>

where `lines` holds one "<sha256 hex>  <name>\\n" line per file, sorted by name.
"""

from __future__ import annotations

import base64
import hashlib
from logging import getLogger
from typing import Iterable

from zipguard.archive.errors import InvalidArchive
from zipguard.archive.reader import Entry, ZipArchive

logger = getLogger(__name__)

HASH_PREFIX = "h1:"
CHUNK_SIZE = 1024 * 1024


def hash_lines(items: Iterable[tuple[str, str]]) -> str:
    """Build the fingerprint from (name, hex digest) pairs."""
    summary = hashlib.sha256()
    for name, digest in sorted(items, key=lambda item: item[0].encode("utf-8")):
        if "\n" in name:
            raise InvalidArchive(f"file name {name!r} contains a newline")
        summary.update(f"{digest}  {name}\n".encode("utf-8"))
    return HASH_PREFIX + base64.b64encode(summary.digest()).decode("ascii")


def _hash_entry(archive: ZipArchive, entry: Entry) -> str:
    h = hashlib.sha256()
    with archive.open(entry) as fp:
        for chunk in iter(lambda: fp.read(CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def hash_archive(archive: ZipArchive) -> str:
    """Return the fingerprint of the file entries of `archive`."""
    items = []
    for entry in archive.entries:
        if entry.is_dir:
            continue
        items.append((entry.name, _hash_entry(archive, entry)))
    fingerprint = hash_lines(items)
    logger.debug(
        "archive_hash: done (path=%s files=%s hash=%s)", archive.path, len(items), fingerprint
    )
    return fingerprint
