"""Index data models."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .naming import VariantPredicate, is_timestamped_variant


class FileRecord(BaseModel):
    """A stored file and the hash of its contents.

    Attributes:
        path: Path as produced by enumeration under the scanned root.
        content_hash: Lowercase hex SHA-256 digest of the file contents.
        size_bytes: Number of bytes hashed.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    content_hash: str
    size_bytes: int = Field(ge=0)


class DirectoryIndex(BaseModel):
    """Immutable snapshot of the files stored beneath a root.

    Attributes:
        root: Directory that was scanned.
        files: Records in enumeration order.
        total_size: Sum of ``size_bytes`` over ``files``.
    """

    model_config = ConfigDict(frozen=True)

    root: Path
    files: Tuple[FileRecord, ...] = ()
    total_size: int = Field(default=0, ge=0)

    def __len__(self) -> int:
        return len(self.files)

    def get_file(
        self,
        content_hash: str,
        *,
        exclude: Optional[VariantPredicate] = None,
    ) -> Optional[FileRecord]:
        """Return the first canonical record whose contents hash to ``content_hash``.

        Records whose path is a timestamp-suffixed variant are skipped.

        Args:
            content_hash: Hex digest to look up; compared exactly.
            exclude: Optional predicate overriding the variant check.

        Returns:
            Optional[FileRecord]: Matching record, or None if no canonical copy exists.
        """
        is_variant = exclude or is_timestamped_variant
        for record in self.files:
            if record.content_hash == content_hash and not is_variant(record.path):
                return record
        return None

    def find_all(self, content_hash: str) -> Tuple[FileRecord, ...]:
        """Return every record with ``content_hash``, variants included."""
        return tuple(record for record in self.files if record.content_hash == content_hash)

    def is_over_limit(self, max_bytes: int) -> bool:
        """Return True when the indexed files occupy more than ``max_bytes``."""
        return self.total_size > max_bytes


__all__ = ["FileRecord", "DirectoryIndex"]
