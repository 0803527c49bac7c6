"""Error taxonomy for the search pipeline.

Every pipeline stage raises a ``SearchError`` subclass. The ``search`` tool is
the single place that turns them into protocol errors, keyed by ``reason``.
"""


class ConfigError(Exception):
    """Startup configuration is invalid (e.g. the root directory is missing)."""


class SearchError(Exception):
    """Base class for failures of a single search request."""

    reason = "internal"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidParams(SearchError):
    """Missing or malformed tool-call parameters."""

    reason = "invalid_params"


class PathTraversal(SearchError):
    """The requested path resolves outside the search root."""

    reason = "path_traversal"


class EngineNotFound(SearchError):
    """The ripgrep executable could not be found."""

    reason = "engine_not_found"


class SearchTimeout(SearchError):
    """The search ran past its wall-clock bound and was killed."""

    reason = "timeout"


class ExecutionFailed(SearchError):
    """ripgrep exited with an error status."""

    reason = "execution_failed"

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class InternalError(SearchError):
    """Unexpected failure while running a search."""

    reason = "internal"


class SearchCancelled(SearchError):
    """The search was stopped because the server is shutting down."""

    reason = "cancelled"
