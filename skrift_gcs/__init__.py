"""Google Cloud Storage adapter for CMS file uploads."""

from skrift_gcs.config import GCloudConfig
from skrift_gcs.lib.exceptions import (
    ConfigurationError,
    FilenameCollisionError,
    NameGenerationError,
    ProviderError,
)
from skrift_gcs.lib.storage import FileRecord, GCloudStorageAdapter, StoredObject

__all__ = [
    "ConfigurationError",
    "FileRecord",
    "FilenameCollisionError",
    "GCloudConfig",
    "GCloudStorageAdapter",
    "NameGenerationError",
    "ProviderError",
    "StoredObject",
]
