import hashlib
import io
import zipfile

import pytest

from archiver.errors import ArchiveWriteError
from archiver.writer import ArchiveWriter, resolve_compression


def test_open_replaces_stale_archive(tmp_path):
    target = tmp_path / "docs.zip"
    target.write_bytes(b"stale, not a zip")
    with ArchiveWriter(target) as writer:
        writer.write_entry("project/a.txt", 5, io.BytesIO(b"hello"))
    with zipfile.ZipFile(target) as archive:
        assert archive.namelist() == ["project/a.txt"]
        assert archive.read("project/a.txt") == b"hello"
        assert archive.getinfo("project/a.txt").file_size == 5


def test_counters_after_close(tmp_path):
    target = tmp_path / "docs.zip"
    source = tmp_path / "big.bin"
    source.write_bytes(b"z" * 5000)
    with ArchiveWriter(target, chunk_size=512) as writer:
        writer.write_file("project/big.bin", source)
        writer.write_entry("project/small.txt", 2, io.BytesIO(b"hi"))
    assert writer.entry_count == 2
    assert writer.bytes_written == 5002
    assert writer.size == target.stat().st_size
    assert "project/small.txt" in writer


def test_empty_archive_is_valid(tmp_path):
    target = tmp_path / "docs.zip"
    with ArchiveWriter(target) as writer:
        pass
    assert writer.entry_count == 0
    with zipfile.ZipFile(target) as archive:
        assert archive.namelist() == []


def test_size_mismatch_discards_archive(tmp_path):
    target = tmp_path / "docs.zip"
    with pytest.raises(ArchiveWriteError):
        with ArchiveWriter(target) as writer:
            writer.write_entry("project/a.txt", 3, io.BytesIO(b"hello"))
    assert not target.exists()


def test_short_body_is_rejected(tmp_path):
    target = tmp_path / "docs.zip"
    with pytest.raises(ArchiveWriteError):
        with ArchiveWriter(target) as writer:
            writer.write_entry("project/a.txt", 10, io.BytesIO(b"hello"))
    assert not target.exists()


def test_duplicate_entry_name_is_rejected(tmp_path):
    target = tmp_path / "docs.zip"
    with pytest.raises(ArchiveWriteError):
        with ArchiveWriter(target) as writer:
            writer.write_entry("snapshot.json", 2, io.BytesIO(b"{}"))
            writer.write_entry("snapshot.json", 2, io.BytesIO(b"{}"))


def test_write_requires_open_archive(tmp_path):
    writer = ArchiveWriter(tmp_path / "docs.zip")
    with pytest.raises(ArchiveWriteError):
        writer.write_entry("a", 1, io.BytesIO(b"a"))


def test_unknown_compression():
    assert resolve_compression("stored") == zipfile.ZIP_STORED
    with pytest.raises(ArchiveWriteError):
        resolve_compression("rar")


def test_failed_finalize_releases_handle_and_removes_archive(tmp_path, monkeypatch):
    target = tmp_path / "docs.zip"
    real_close = zipfile.ZipFile.close
    handles = []

    def failing_close(self):
        handles.append(self)
        if self.mode == "w" and self.fp is not None:
            real_close(self)
            raise OSError("disk full")
        real_close(self)

    monkeypatch.setattr(zipfile.ZipFile, "close", failing_close)
    with pytest.raises(OSError, match="disk full"):
        with ArchiveWriter(target) as writer:
            writer.write_entry("project/a.txt", 5, io.BytesIO(b"hello"))

    assert not target.exists()
    assert all(handle.fp is None for handle in handles)
    writer.close()


def test_write_feeds_digest(tmp_path):
    digest = hashlib.md5()
    with ArchiveWriter(tmp_path / "docs.zip", chunk_size=2) as writer:
        writer.write_entry("project/a.txt", 5, io.BytesIO(b"hello"), digest=digest)
    assert digest.hexdigest() == hashlib.md5(b"hello").hexdigest()
