"""Directory scanning that produces content indexes."""

from __future__ import annotations

import asyncio
import functools
import logging
import os
from concurrent.futures import Executor
from pathlib import Path
from typing import Iterator, Optional, Union

from .errors import EnumerationError, PathEncodingError
from .hashing import HashComputer
from .models import DirectoryIndex, FileRecord

LOGGER = logging.getLogger(__name__)

RootPath = Union[str, bytes, os.PathLike]


class DirectoryScanner:
    """Hash every regular file beneath a root into a :class:`DirectoryIndex`."""

    def __init__(
        self,
        *,
        follow_symlinks: bool = False,
        hasher: Optional[HashComputer] = None,
    ) -> None:
        self.follow_symlinks = follow_symlinks
        self.hasher = hasher or HashComputer()

    def build(self, root: RootPath) -> DirectoryIndex:
        """Scan ``root`` recursively and return a snapshot index.

        Files that cannot be opened or read are left out of the index and do
        not count towards ``total_size``. A missing root yields an empty index.

        Args:
            root: Directory to scan. Byte paths are decoded with the filesystem
                encoding; undecodable bytes fail as ``PathEncodingError``.

        Returns:
            DirectoryIndex: Records in enumeration order plus their total size.

        Raises:
            PathEncodingError: If ``root`` cannot be represented as UTF-8 text.
            EnumerationError: If the enumeration rejects ``root``.
        """
        root = Path(os.fsdecode(root))
        self._validate_root(root)

        files: list[FileRecord] = []
        total_size = 0
        for path in self._iter_paths(root):
            try:
                digest, size = self.hasher.compute_with_size(path)
            except OSError as exc:
                LOGGER.debug("Skipping unreadable file %s: %s", path, exc)
                continue
            files.append(FileRecord(path=path, content_hash=digest, size_bytes=size))
            total_size += size

        LOGGER.info("Indexed %d files (%d bytes) under %s", len(files), total_size, root)
        return DirectoryIndex(root=root, files=tuple(files), total_size=total_size)

    def _validate_root(self, root: Path) -> None:
        text = str(root)
        try:
            text.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise PathEncodingError(f"Root path {text!r} contains invalid characters: {exc}") from exc
        if "\x00" in text:
            raise EnumerationError(f"Root path {text!r} contains a NUL character.")

    def _iter_paths(self, root: Path) -> Iterator[Path]:
        """Yield regular files beneath ``root`` in walk order."""
        walker = os.walk(root, onerror=self._on_walk_error, followlinks=self.follow_symlinks)
        try:
            for dirpath, _dirnames, filenames in walker:
                directory = Path(dirpath)
                for name in filenames:
                    path = directory / name
                    if path.is_file():
                        yield path
        except ValueError as exc:
            raise EnumerationError(f"Cannot enumerate {root}: {exc}") from exc

    @staticmethod
    def _on_walk_error(exc: OSError) -> None:
        LOGGER.debug("Skipping unreadable directory %s: %s", exc.filename, exc)


def build_index(root: RootPath, *, follow_symlinks: bool = False) -> DirectoryIndex:
    """Build a :class:`DirectoryIndex` for ``root`` with a default scanner."""
    return DirectoryScanner(follow_symlinks=follow_symlinks).build(root)


async def build_index_async(
    root: RootPath,
    *,
    follow_symlinks: bool = False,
    executor: Optional[Executor] = None,
) -> DirectoryIndex:
    """Build an index in ``executor`` without blocking the running event loop.

    Args:
        root: Directory to scan.
        follow_symlinks: Whether to descend into symlinked directories.
        executor: Executor to run the scan in; the loop default when None.

    Returns:
        DirectoryIndex: Snapshot index for ``root``.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        executor, functools.partial(build_index, root, follow_symlinks=follow_symlinks)
    )


__all__ = ["DirectoryScanner", "build_index", "build_index_async"]
