"""Tests for streaming content hashes."""

import hashlib
import io
from pathlib import Path

import pytest

from hashdir.index import HashComputer


def test_compute_matches_hashlib(tmp_path: Path) -> None:
    payload = b"stored contents\n" * 100
    path = tmp_path / "blob.bin"
    path.write_bytes(payload)

    digest, size = HashComputer().compute_with_size(path)

    assert digest == hashlib.sha256(payload).hexdigest()
    assert size == len(payload)
    assert HashComputer().compute(path) == digest


def test_small_chunks_produce_same_digest() -> None:
    payload = bytes(range(256)) * 33

    digest, size = HashComputer(chunk_size=7).compute_stream(io.BytesIO(payload))

    assert digest == hashlib.sha256(payload).hexdigest()
    assert size == len(payload)


def test_stream_is_read_in_chunks() -> None:
    class RecordingStream(io.BytesIO):
        def __init__(self, data: bytes) -> None:
            super().__init__(data)
            self.requests: list[int] = []

        def read(self, size: int | None = -1) -> bytes:  # type: ignore[override]
            self.requests.append(-1 if size is None else size)
            return super().read(size)

    stream = RecordingStream(b"x" * 100)

    HashComputer(chunk_size=16).compute_stream(stream)

    assert stream.requests
    assert all(request == 16 for request in stream.requests)


def test_empty_file_hashes_to_empty_digest(tmp_path: Path) -> None:
    path = tmp_path / "empty"
    path.write_bytes(b"")

    assert HashComputer().compute_with_size(path) == (hashlib.sha256(b"").hexdigest(), 0)


def test_missing_file_raises_os_error(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        HashComputer().compute(tmp_path / "missing")


def test_chunk_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        HashComputer(chunk_size=0)
