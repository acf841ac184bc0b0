"""Archive checking, hashing and extraction."""

from zipguard.archive.check import CheckedFiles, check_archive
from zipguard.archive.extract import unzip
from zipguard.archive.hashing import hash_archive
from zipguard.archive.reader import Entry, ZipArchive, open_archive

__all__ = [
    "CheckedFiles",
    "Entry",
    "ZipArchive",
    "check_archive",
    "hash_archive",
    "open_archive",
    "unzip",
]
