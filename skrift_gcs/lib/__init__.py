from skrift_gcs.lib.exceptions import (
    ConfigurationError,
    FilenameCollisionError,
    NameGenerationError,
    ProviderError,
    StorageAdapterError,
)

__all__ = [
    "ConfigurationError",
    "FilenameCollisionError",
    "NameGenerationError",
    "ProviderError",
    "StorageAdapterError",
]
