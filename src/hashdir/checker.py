"""Duplicate and quota checks for files about to be stored."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel

from hashdir.config import HashdirConfig
from hashdir.index import DirectoryScanner, variant_matcher
from hashdir.index.naming import VariantPredicate, timestamped_name

LOGGER = logging.getLogger(__name__)


class CheckError(Exception):
    """Raised when the incoming file cannot be read."""


class DuplicateCheckResult(BaseModel):
    """Outcome of checking an incoming file against a storage directory.

    Attributes:
        incoming: File that was checked.
        content_hash: SHA-256 digest of the incoming file.
        size_bytes: Size of the incoming file.
        duplicate_of: Canonical stored copy with identical contents, if any.
        stored_name: Name the file would be stored under; None for duplicates.
        indexed_files: Number of files in the storage index.
        total_size: Aggregate size of the storage directory.
        max_size: Configured quota in bytes, if any.
        over_quota: Whether the storage directory already exceeds the quota.
    """

    incoming: Path
    content_hash: str
    size_bytes: int
    duplicate_of: Optional[Path] = None
    stored_name: Optional[str] = None
    indexed_files: int
    total_size: int
    max_size: Optional[int] = None
    over_quota: bool = False


def scanner_from_config(config: HashdirConfig) -> DirectoryScanner:
    """Return a scanner configured from ``config.index``."""
    return DirectoryScanner(follow_symlinks=config.index.follow_symlinks)


class DuplicateChecker:
    """Hash an incoming file and compare it with a fresh index of the storage root."""

    def __init__(
        self,
        config: HashdirConfig,
        *,
        scanner: DirectoryScanner | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        self._scanner = scanner or scanner_from_config(config)
        self._is_variant: VariantPredicate = variant_matcher(config.index.variant_pattern)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def is_variant(self) -> VariantPredicate:
        """Return the predicate used to exclude disambiguated copies."""
        return self._is_variant

    def check(self, root: Path, incoming: Path) -> DuplicateCheckResult:
        """Check ``incoming`` against the files stored under ``root``.

        Args:
            root: Storage directory.
            incoming: File about to be stored.

        Returns:
            DuplicateCheckResult: Duplicate target, proposed name, and quota state.

        Raises:
            CheckError: If ``incoming`` cannot be read.
            IndexBuildError: If ``root`` cannot be enumerated.
        """
        try:
            digest, size = self._scanner.hasher.compute_with_size(incoming)
        except OSError as exc:
            raise CheckError(f"Cannot read {incoming}: {exc}") from exc

        index = self._scanner.build(root)

        duplicate = None
        if self._config.dedupe.enabled:
            incoming_resolved = incoming.resolve()

            def _excluded(path: Path) -> bool:
                return self._is_variant(path) or path.resolve() == incoming_resolved

            record = index.get_file(digest, exclude=_excluded)
            if record is not None:
                duplicate = record.path
                LOGGER.info("%s duplicates stored file %s", incoming, duplicate)

        max_size = self._config.quota.max_size
        over_quota = max_size is not None and index.is_over_limit(max_size)
        if over_quota:
            LOGGER.warning(
                "Storage under %s uses %d bytes, above the %d byte quota",
                root,
                index.total_size,
                max_size,
            )

        return DuplicateCheckResult(
            incoming=incoming,
            content_hash=digest,
            size_bytes=size,
            duplicate_of=duplicate,
            stored_name=None if duplicate is not None else self._stored_name(root, incoming.name),
            indexed_files=len(index),
            total_size=index.total_size,
            max_size=max_size,
            over_quota=over_quota,
        )

    def _stored_name(self, root: Path, name: str) -> str:
        if not (root / name).exists():
            return name
        # Step forward a second at a time until the generated name is free.
        when = self._clock()
        candidate = timestamped_name(name, when)
        while (root / candidate).exists():
            when += timedelta(seconds=1)
            candidate = timestamped_name(name, when)
        return candidate


__all__ = ["CheckError", "DuplicateCheckResult", "DuplicateChecker", "scanner_from_config"]
