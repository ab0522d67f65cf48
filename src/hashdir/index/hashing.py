"""Content hashing utilities."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import BinaryIO, Tuple

CHUNK_SIZE = 64 * 1024


class HashComputer:
    """Compute SHA-256 content hashes for deduplication."""

    def __init__(self, chunk_size: int = CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive.")
        self.chunk_size = chunk_size

    def compute(self, path: Path) -> str:
        """Return the hex digest of the file at ``path``.

        Raises:
            OSError: If the file cannot be opened or read.
        """
        digest, _ = self.compute_with_size(path)
        return digest

    def compute_with_size(self, path: Path) -> Tuple[str, int]:
        """Return the hex digest of ``path`` and the number of bytes hashed.

        Args:
            path: File to hash.

        Returns:
            Tuple[str, int]: Lowercase hex digest and byte count.

        Raises:
            OSError: If the file cannot be opened or read.
        """
        with path.open("rb") as handle:
            return self.compute_stream(handle)

    def compute_stream(self, stream: BinaryIO) -> Tuple[str, int]:
        """Hash an open binary stream chunk by chunk until EOF."""
        hasher = hashlib.sha256()
        size = 0
        for chunk in iter(lambda: stream.read(self.chunk_size), b""):
            hasher.update(chunk)
            size += len(chunk)
        return hasher.hexdigest(), size


__all__ = ["HashComputer", "CHUNK_SIZE"]
