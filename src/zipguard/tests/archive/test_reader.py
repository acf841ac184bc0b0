"""
Tests for the zip reader adapter.
"""

import base64
import hashlib
import zipfile
from io import BytesIO

import pytest

from zipguard.archive.check import check_archive
from zipguard.archive.errors import ArchiveTooLarge, InvalidArchive
from zipguard.archive.hashing import hash_archive
from zipguard.archive.limits import ArchiveLimits
from zipguard.archive.reader import Entry, ZipArchive, open_archive


def _make_zip_bytes(entries, compression=zipfile.ZIP_STORED) -> bytes:
    """Build a zip file (as bytes) from (name, content) pairs."""
    buf = BytesIO()
    with zipfile.ZipFile(buf, mode="w", compression=compression) as zf:
        for name, content in entries:
            zf.writestr(name, content)
    return buf.getvalue()


def _set_flag_bits(data: bytes, bits: int) -> bytes:
    """Set general purpose flag bits in the local and central headers."""
    buf = bytearray(data)
    for signature, offset in ((b"PK\x03\x04", 6), (b"PK\x01\x02", 8)):
        pos = buf.index(signature) + offset
        flags = int.from_bytes(buf[pos : pos + 2], "little") | bits
        buf[pos : pos + 2] = flags.to_bytes(2, "little")
    return bytes(buf)


def test_entry_directory_marker():
    """A trailing slash marks a directory and is stripped from the path."""
    entry = Entry("a/b/", 0)
    assert entry.is_dir
    assert entry.path == "a/b"

    entry = Entry("a/b.txt", 2)
    assert not entry.is_dir
    assert entry.path == "a/b.txt"


def test_open_archive_lists_entries_in_order(tmp_path):
    """Entries keep archive order, names and declared sizes."""
    path = tmp_path / "m.zip"
    path.write_bytes(_make_zip_bytes([("z/", b""), ("z/1.txt", b"one"), ("a.txt", b"")]))

    with open_archive(str(path)) as archive:
        assert [(e.name, e.declared_size) for e in archive.entries] == [
            ("z/", 0),
            ("z/1.txt", 3),
            ("a.txt", 0),
        ]
        with archive.open(archive.entries[1]) as fp:
            assert fp.read() == b"one"


def test_open_archive_checks_raw_size_first(tmp_path):
    """The container size is checked before it is decoded."""
    path = tmp_path / "big.zip"
    path.write_bytes(b"\0" * 64)

    with pytest.raises(ArchiveTooLarge):
        open_archive(str(path), ArchiveLimits(max_zip_size=63))


def test_open_archive_rejects_garbage(tmp_path):
    """Files that are not zips are reported as invalid archives."""
    path = tmp_path / "garbage.zip"
    path.write_bytes(b"definitely not a zip")

    with pytest.raises(InvalidArchive, match="garbage.zip"):
        open_archive(str(path))


def test_corrupt_member_is_invalid_archive():
    """A member failing its CRC check surfaces as InvalidArchive."""
    data = bytearray(_make_zip_bytes([("f.txt", b"hello world")]))
    offset = bytes(data).index(b"hello world")
    data[offset] ^= 0xFF
    archive = ZipArchive(zipfile.ZipFile(BytesIO(bytes(data))))

    with pytest.raises(InvalidArchive, match="f.txt"):
        hash_archive(archive)


def test_encrypted_member_is_invalid_archive():
    """Encrypted members are refused with a typed error."""
    data = _set_flag_bits(_make_zip_bytes([("f.txt", b"secret")]), 0x1)
    archive = ZipArchive(zipfile.ZipFile(BytesIO(data)))

    with pytest.raises(InvalidArchive, match="opening f.txt: encrypted entries are not supported"):
        hash_archive(archive)


def test_utf8_name_without_flag():
    """UTF-8 names stored without the UTF-8 flag keep their UTF-8 spelling."""
    # Same byte length as the UTF-8 encoding of "é.txt".
    data = _make_zip_bytes([("XY.txt", b"hi")])
    data = data.replace(b"XY.txt", "é.txt".encode("utf-8"))
    archive = ZipArchive(zipfile.ZipFile(BytesIO(data)))

    assert [e.name for e in archive.entries] == ["é.txt"]
    assert check_archive(archive).valid == ["é.txt"]
    line = f"{hashlib.sha256(b'hi').hexdigest()}  é.txt\n"
    assert hash_archive(archive) == "h1:" + base64.b64encode(
        hashlib.sha256(line.encode("utf-8")).digest()
    ).decode("ascii")


def test_cp437_name_without_flag():
    """Names that are not valid UTF-8 keep the cp437 reading."""
    data = _make_zip_bytes([("X.txt", b"hi")])
    # 0x82 is "é" in cp437 and a stray continuation byte in UTF-8.
    data = data.replace(b"X.txt", b"\x82.txt")
    archive = ZipArchive(zipfile.ZipFile(BytesIO(data)))

    assert [e.name for e in archive.entries] == ["é.txt"]
