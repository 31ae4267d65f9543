from __future__ import annotations


class SessionCacheError(Exception):
    """Base error for the session cache server."""


class ValidationError(SessionCacheError):
    """Raised when user input is invalid."""


class SizeLimitExceeded(ValidationError):
    """Raised when a serialized value is larger than the store allows."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Value size {size} bytes exceeds {limit} byte limit")
        self.size = size
        self.limit = limit


class ConfigurationError(SessionCacheError):
    """Raised when the store is constructed with invalid settings."""


class NotFoundError(SessionCacheError):
    """Raised when a requested session is not found."""
