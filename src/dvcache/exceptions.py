"""
Custom exception hierarchy for the disk cache.

All exceptions inherit from CacheError, which carries a stable
machine-readable code plus optional context for structured logging.
"""

from __future__ import annotations

from typing import Any


class CacheError(Exception):
    """Base exception for all cache errors.

    Attributes:
        code: Stable machine-readable error code.
        message: Human-readable error message.
        context: Optional structured context for logging/debugging.
    """

    code: str = "ECACHE"
    default_message: str = "Cache operation failed"

    def __init__(
        self,
        message: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx_str})"
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class AggregateCacheError(CacheError):
    """A cache error raised after several individual failures.

    Attributes:
        failures: The underlying exceptions, in the order they occurred.
    """

    def __init__(
        self,
        message: str | None = None,
        context: dict[str, Any] | None = None,
        failures: list[Exception] | None = None,
    ) -> None:
        self.failures = list(failures or [])
        context = dict(context or {})
        context.setdefault("failure_count", len(self.failures))
        super().__init__(message, context)


class InvalidKeyError(CacheError):
    """Raised when a non-string key is passed to set or get."""

    code = "ECACHEIKEY"
    default_message = "Invalid Key"


class InvalidValueError(CacheError):
    """Raised when a non-string value is passed to set."""

    code = "ECACHEIVAL"
    default_message = "Invalid Value"


class RestoreError(CacheError):
    """Raised when the index file exists but cannot be read or parsed.

    Context should include:
        - path: The index file path
        - error: The underlying read or parse error
    """

    code = "ECACHEREST"
    default_message = "Cache restoration failed"


class SaveError(AggregateCacheError):
    """Raised when one or more data or index file writes failed during save."""

    code = "ECACHESAVE"
    default_message = "Cache saving failed"


class ReadItemDataError(CacheError):
    """Raised when an item's data file cannot be read.

    Context should include:
        - key: The requested key
        - path: The data file path
    """

    code = "ECACHERITEM"
    default_message = "Reading item's data failed"


class UnsetError(CacheError):
    """Raised when an item's data file cannot be removed."""

    code = "ECACHEUNSET"
    default_message = "Item unset failed"


class RefreshError(AggregateCacheError):
    """Raised when expired items could not all be removed during a sweep."""

    code = "ECACHEREFR"
    default_message = "Cache refreshing failed"


class DestroyError(CacheError):
    """Raised when the cache directory cannot be removed."""

    code = "ECACHECLEAR"
    default_message = "Cache destroying failed"
