"""Naming convention for timestamp-disambiguated copies of stored files.

When a file is stored under a name that is already taken, the storing service
appends a generation timestamp to the stem (``upload.png`` becomes
``upload-20230101120000.png``). Such variants are never offered back as the
canonical copy of duplicate content.
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import PurePath
from typing import Callable, Pattern, Union

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"

# Separator, at least ten digits, then at most one extension.
TIMESTAMP_SUFFIX_PATTERN: Pattern[str] = re.compile(r"[-.][0-9]{10,}(\.[^./\\]*)?$")

PathLike = Union[str, PurePath]
VariantPredicate = Callable[[PurePath], bool]


def is_timestamped_variant(path: PathLike) -> bool:
    """Return True when the file name of ``path`` carries a timestamp suffix."""
    return TIMESTAMP_SUFFIX_PATTERN.search(PurePath(path).name) is not None


def variant_matcher(pattern: str | None) -> VariantPredicate:
    """Compile ``pattern`` once and return a predicate over file names.

    Args:
        pattern: Regular expression searched within each file name, or None to
            use the built-in timestamp pattern.

    Returns:
        VariantPredicate: Callable returning True for excluded paths.

    Raises:
        re.error: If ``pattern`` is not a valid regular expression.
    """
    if pattern is None:
        return is_timestamped_variant

    compiled = re.compile(pattern)

    def _matches(path: PurePath) -> bool:
        return compiled.search(PurePath(path).name) is not None

    return _matches


def timestamped_name(name: str, when: datetime) -> str:
    """Return ``name`` with ``when`` appended to its stem.

    Args:
        name: Original file name, e.g. ``upload.png``.
        when: Timestamp used to disambiguate the name.

    Returns:
        str: Disambiguated name such as ``upload-20230101120000.png``.
    """
    original = PurePath(name)
    stamp = when.strftime(TIMESTAMP_FORMAT)
    return f"{original.stem}-{stamp}{original.suffix}"


__all__ = [
    "TIMESTAMP_FORMAT",
    "TIMESTAMP_SUFFIX_PATTERN",
    "VariantPredicate",
    "is_timestamped_variant",
    "variant_matcher",
    "timestamped_name",
]
