"""Google Cloud Storage backend for host-framework file fields."""

from skrift_gcs.lib.storage.base import FileRecord, FilenameStrategy, StoredObject
from skrift_gcs.lib.storage.gcloud import GCloudStorageAdapter
from skrift_gcs.lib.storage.naming import (
    CallableStrategy,
    original_filename,
    random_filename,
    resolve_strategy,
)

__all__ = [
    "CallableStrategy",
    "FileRecord",
    "FilenameStrategy",
    "GCloudStorageAdapter",
    "StoredObject",
    "original_filename",
    "random_filename",
    "resolve_strategy",
]
