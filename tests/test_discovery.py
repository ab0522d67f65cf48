"""Tests covering the directory scanner."""

from __future__ import annotations

import asyncio
import hashlib
import os
import sys
from pathlib import Path

import pytest

from hashdir.index import (
    DirectoryScanner,
    EnumerationError,
    HashComputer,
    IndexBuildError,
    PathEncodingError,
    build_index,
    build_index_async,
)

LOGO_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + bytes(range(64))


class DenyingHasher(HashComputer):
    """Hasher that refuses to open files with a given name."""

    def __init__(self, denied: str) -> None:
        super().__init__()
        self.denied = denied

    def compute_with_size(self, path: Path) -> tuple[str, int]:
        if path.name == self.denied:
            raise PermissionError(13, "Permission denied", str(path))
        return super().compute_with_size(path)


def _write(path: Path, payload: bytes) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(payload)
    return path


def test_logo_is_found_by_its_digest(tmp_path: Path) -> None:
    """Ensure a stored file can be looked up by the SHA-256 of its bytes.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    _write(tmp_path / "img" / "logo.png", LOGO_BYTES)

    index = build_index(tmp_path / "img")
    record = index.get_file(hashlib.sha256(LOGO_BYTES).hexdigest())

    assert record is not None
    assert record.path.name == "logo.png"


def test_records_hold_true_digests_and_sizes(tmp_path: Path) -> None:
    payloads = {
        "top.txt": b"top level",
        "nested/deeper/inner.bin": b"\x00" * 4096,
        "nested/empty": b"",
    }
    for relative, payload in payloads.items():
        _write(tmp_path / relative, payload)

    index = build_index(tmp_path)

    by_path = {record.path.relative_to(tmp_path).as_posix(): record for record in index.files}
    assert set(by_path) == set(payloads)
    for relative, payload in payloads.items():
        assert by_path[relative].content_hash == hashlib.sha256(payload).hexdigest()
        assert by_path[relative].size_bytes == len(payload)
    assert index.total_size == sum(len(payload) for payload in payloads.values())


def test_directories_are_not_indexed(tmp_path: Path) -> None:
    (tmp_path / "empty-dir").mkdir()
    _write(tmp_path / "sub" / "file.txt", b"data")

    index = build_index(tmp_path)

    assert [record.path.name for record in index.files] == ["file.txt"]


def test_hidden_files_are_indexed(tmp_path: Path) -> None:
    _write(tmp_path / ".hidden", b"secret")

    index = build_index(tmp_path)

    assert [record.path.name for record in index.files] == [".hidden"]


def test_timestamped_duplicate_is_not_canonical(tmp_path: Path) -> None:
    content = b"same picture"
    digest = hashlib.sha256(content).hexdigest()
    _write(tmp_path / "upload-20230101120000.png", content)

    assert build_index(tmp_path).get_file(digest) is None

    _write(tmp_path / "upload.png", content)
    record = build_index(tmp_path).get_file(digest)

    assert record is not None
    assert record.path.name == "upload.png"


def test_unreadable_file_is_skipped(tmp_path: Path) -> None:
    """Ensure a file that fails to open is absent and excluded from the total.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    _write(tmp_path / "locked.bin", b"x" * 500)
    readable = _write(tmp_path / "readable.txt", b"hello world")

    index = DirectoryScanner(hasher=DenyingHasher("locked.bin")).build(tmp_path)

    assert [record.path for record in index.files] == [readable]
    assert index.total_size == len(b"hello world")


@pytest.mark.skipif(
    sys.platform == "win32" or os.geteuid() == 0,
    reason="requires POSIX permissions enforced for the current user",
)
def test_permission_denied_file_is_skipped(tmp_path: Path) -> None:
    locked = _write(tmp_path / "locked.bin", b"x" * 500)
    _write(tmp_path / "readable.txt", b"abc")
    locked.chmod(0)
    try:
        index = build_index(tmp_path)
    finally:
        locked.chmod(0o600)

    assert [record.path.name for record in index.files] == ["readable.txt"]
    assert index.total_size == 3


@pytest.mark.skipif(sys.platform == "win32", reason="symlinks require privileges on Windows")
def test_broken_symlink_is_skipped(tmp_path: Path) -> None:
    (tmp_path / "dangling").symlink_to(tmp_path / "missing-target")
    _write(tmp_path / "real.txt", b"real")

    index = build_index(tmp_path)

    assert [record.path.name for record in index.files] == ["real.txt"]


def test_missing_root_yields_empty_index(tmp_path: Path) -> None:
    index = build_index(tmp_path / "does-not-exist")

    assert len(index) == 0
    assert index.total_size == 0


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX byte paths only")
def test_undecodable_root_is_fatal(tmp_path: Path) -> None:
    root = Path(os.fsdecode(os.fsencode(tmp_path) + b"/\xff-storage"))

    with pytest.raises(PathEncodingError) as excinfo:
        build_index(root)

    assert isinstance(excinfo.value, IndexBuildError)
    assert str(tmp_path) not in excinfo.value.public_message


def test_nul_in_root_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(EnumerationError):
        build_index(Path(f"{tmp_path}/bad\x00root"))


def test_build_index_async_matches_sync(tmp_path: Path) -> None:
    _write(tmp_path / "a.txt", b"alpha")
    _write(tmp_path / "b" / "b.txt", b"beta")

    index = asyncio.run(build_index_async(tmp_path))

    assert index == build_index(tmp_path)


def test_rebuild_reflects_new_files(tmp_path: Path) -> None:
    _write(tmp_path / "a.txt", b"alpha")
    first = build_index(tmp_path)

    _write(tmp_path / "b.txt", b"beta")
    second = build_index(tmp_path)

    assert len(first) == 1
    assert len(second) == 2
    assert first.total_size == 5


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX byte paths only")
def test_bytes_root_is_accepted(tmp_path: Path) -> None:
    _write(tmp_path / "a.txt", b"alpha")

    index = build_index(os.fsencode(tmp_path))

    assert [record.path for record in index.files] == [tmp_path / "a.txt"]


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX byte paths only")
def test_undecodable_bytes_root_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(PathEncodingError):
        build_index(os.fsencode(tmp_path) + b"/\xff-storage")
