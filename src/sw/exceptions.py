"""
Custom exception hierarchy for the offline cache controller.

All exceptions inherit from SWError, which provides optional context
for structured error handling and logging.
"""

from __future__ import annotations

from typing import Any


class SWError(Exception):
    """Base exception for all cache controller errors.

    Attributes:
        message: Human-readable error message.
        context: Optional structured context for logging/debugging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class ConfigurationError(SWError):
    """Raised when configuration is invalid or missing."""

    pass


class NetworkError(SWError):
    """Raised when a fetch fails or returns a non-ok status where ok is required.

    Context should include:
        - url: The URL that was being fetched
        - status: HTTP status code if a response was received
    """

    pass


class CacheMiss(SWError):
    """Raised when no cached entry matches a request.

    Context should include:
        - url: The URL that was looked up
        - namespaces: Namespaces that were searched
    """

    pass


class CacheWriteError(SWError):
    """Raised when an entry cannot be stored (e.g. a non-GET request)."""

    pass


class InstallFailure(SWError):
    """Raised when priming the shell assets fails.

    The install step is all-or-nothing; the host retries it.

    Context should include:
        - url: The shell asset that could not be fetched
        - namespace: The static namespace being primed
    """

    pass
