"""Errors raised by the storage adapter.

Provider failures are not wrapped: whatever ``google-cloud-storage`` raises
reaches the caller unchanged. ``ProviderError`` is re-exported so callers can
catch it without importing from ``google.api_core`` themselves.
"""

from google.api_core.exceptions import GoogleAPIError as ProviderError


class StorageAdapterError(Exception):
    """Base class for errors raised by the adapter itself."""


class ConfigurationError(StorageAdapterError):
    """Raised at construction when a required option is missing or invalid."""


class NameGenerationError(StorageAdapterError):
    """Raised when the filename strategy fails to produce a name."""


class FilenameCollisionError(StorageAdapterError):
    """Raised when every generated filename already exists in the bucket."""

    def __init__(self, bucket: str, attempts: int) -> None:
        self.bucket = bucket
        self.attempts = attempts
        super().__init__(
            f"Could not find a free filename in bucket {bucket!r} after {attempts} attempt(s)"
        )


__all__ = [
    "ConfigurationError",
    "FilenameCollisionError",
    "NameGenerationError",
    "ProviderError",
    "StorageAdapterError",
]
