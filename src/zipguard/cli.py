"""Command line entry point.

    zipguard <zip>                          print the archive fingerprint
    zipguard <zip> <hash> <dir> [<prefix>]  verify the fingerprint and extract
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from logging import getLogger

from zipguard.archive.check import check_archive
from zipguard.archive.errors import ArchiveError, HashMismatch, UsageError
from zipguard.archive.extract import unzip
from zipguard.archive.hashing import hash_archive
from zipguard.archive.limits import get_archive_limits
from zipguard.archive.reader import open_archive

logger = getLogger(__name__)

USAGE = "usage: <zip> [<hash> <dir> [<strip_prefix>]]"


def _configure_logging() -> None:
    level = os.environ.get("ZIPGUARD_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zipguard",
        usage="%(prog)s <zip> [<hash> <dir> [<strip_prefix>]]",
        description="Check a zip archive, print its fingerprint, or verify and extract it.",
    )
    parser.add_argument("zip", help="Path to the zip archive")
    parser.add_argument("hash", nargs="?", help="Expected fingerprint (h1:...)")
    parser.add_argument("dir", nargs="?", help="Empty or missing directory to extract into")
    parser.add_argument("prefix", nargs="?", default="", help="Only extract <prefix>/..., stripped")
    return parser


def run(
    zip_path: str,
    expected_hash: str | None = None,
    target_dir: str | None = None,
    prefix: str = "",
) -> str:
    """
    Check or extract `zip_path` and return its fingerprint.

    Without `expected_hash` the archive is only checked. Otherwise the
    fingerprint must match before anything is extracted into `target_dir`.
    """
    if (expected_hash is None) != (target_dir is None):
        raise UsageError(USAGE)

    limits = get_archive_limits()
    with open_archive(zip_path, limits) as archive:
        fingerprint = hash_archive(archive)
        if expected_hash is None:
            check_archive(archive, limits).raise_for_error()
            return fingerprint

        if fingerprint != expected_hash:
            raise HashMismatch(f"got hash {fingerprint}, expected {expected_hash}")
        unzip(target_dir, archive, prefix, limits)
    return fingerprint


def main(argv: list[str] | None = None) -> int:
    _configure_logging()
    args = build_parser().parse_args(argv)
    try:
        fingerprint = run(args.zip, args.hash, args.dir, args.prefix)
    except UsageError as exc:
        print(exc, file=sys.stderr)
        return 2
    except (ArchiveError, OSError) as exc:
        logger.debug("zipguard: failed (zip=%s)", args.zip, exc_info=True)
        print(exc, file=sys.stderr)
        return 1
    if args.hash is None:
        print(fingerprint)
    return 0
