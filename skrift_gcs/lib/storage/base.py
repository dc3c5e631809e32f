"""File record, stored-object metadata, and the filename strategy protocol."""

from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from google.cloud.storage import Blob


@dataclass
class FileRecord:
    """File metadata as held by the host framework.

    Before upload ``path`` is the local source file. After a successful upload
    it no longer points at anything local.
    """

    filename: str = ""
    path: str = ""
    bucket: str | None = None
    mimetype: str = ""
    etag: str = ""
    originalname: str = ""


@dataclass
class StoredObject:
    """Metadata for an object that exists in a bucket."""

    name: str
    bucket: str
    etag: str | None
    size: int | None
    content_type: str | None
    generation: int | None
    updated: datetime | None

    @classmethod
    def from_blob(cls, blob: Blob) -> StoredObject:
        return cls(
            name=blob.name,
            bucket=blob.bucket.name,
            etag=blob.etag,
            size=blob.size,
            content_type=blob.content_type,
            generation=blob.generation,
            updated=blob.updated,
        )


@runtime_checkable
class FilenameStrategy(Protocol):
    """Produces the stored filename for a record.

    ``attempt`` starts at 0 and increases each time the previous name
    collided with an existing object.
    """

    def generate(self, record: FileRecord, attempt: int) -> str | Awaitable[str]:
        ...
