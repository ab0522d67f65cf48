"""Content-addressable index over a storage directory."""

from .discovery import DirectoryScanner, build_index, build_index_async
from .errors import EnumerationError, IndexBuildError, PathEncodingError
from .hashing import HashComputer
from .models import DirectoryIndex, FileRecord
from .naming import is_timestamped_variant, timestamped_name, variant_matcher

__all__ = [
    "DirectoryIndex",
    "DirectoryScanner",
    "EnumerationError",
    "FileRecord",
    "HashComputer",
    "IndexBuildError",
    "PathEncodingError",
    "build_index",
    "build_index_async",
    "is_timestamped_variant",
    "timestamped_name",
    "variant_matcher",
]
