"""Index build errors."""

PUBLIC_BUILD_FAILURE = "Internal error while indexing the storage directory."


class IndexBuildError(Exception):
    """Base exception for failed index builds.

    ``str(exc)`` carries the detailed cause for logs; ``public_message`` is
    safe to hand to remote callers.
    """

    public_message = PUBLIC_BUILD_FAILURE


class PathEncodingError(IndexBuildError):
    """Raised when the root path cannot be represented as text."""


class EnumerationError(IndexBuildError):
    """Raised when the directory enumeration rejects the root path."""
