"""Content-addressable storage index for duplicate and quota checks."""

from importlib import metadata as _metadata

from hashdir.index import DirectoryIndex, FileRecord, IndexBuildError, build_index

__all__ = ["DirectoryIndex", "FileRecord", "IndexBuildError", "build_index", "__version__"]


def __getattr__(name: str):
    if name == "__version__":
        return _metadata.version("hashdir")
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
