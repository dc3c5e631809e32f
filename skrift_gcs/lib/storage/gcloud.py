"""Google Cloud Storage adapter for host-framework file fields."""

from __future__ import annotations

import asyncio
import gzip
import inspect
import logging
import mimetypes
from collections.abc import Mapping
from dataclasses import replace
from pathlib import Path
from typing import Any

from google.api_core.exceptions import PreconditionFailed
from google.cloud import storage

from skrift_gcs.config import GCloudConfig, ensure_leading_slash, get_config_defaults
from skrift_gcs.lib.exceptions import (
    ConfigurationError,
    FilenameCollisionError,
    NameGenerationError,
)
from skrift_gcs.lib.storage.base import FileRecord, StoredObject
from skrift_gcs.lib.storage.keys import (
    encode_special_characters,
    relative_key,
    remove_leading_slash,
    resolve_key,
)
from skrift_gcs.lib.storage.naming import resolve_strategy

logger = logging.getLogger(__name__)


class GCloudStorageAdapter:
    """Store uploaded files in a Google Cloud Storage bucket.

    Options may be passed directly or nested under a ``gcloud`` key, and are
    merged over the ``gcloud`` section of app.yaml and ``GCLOUD_*``
    environment variables. ``project_id`` and ``bucket`` are required.

    The schema can persist the optional fields ``bucket``, ``path`` and
    ``etag``. When ``bucket`` or ``path`` is persisted, upload writes the
    resolved value onto the record.
    """

    COMPATIBILITY_LEVEL = 1

    REQUIRED_OPTIONS = ("project_id", "bucket")

    # All the extra schema fields supported by this adapter.
    SCHEMA_TYPES: dict[str, type] = {
        "filename": str,
        "bucket": str,
        "path": str,
        "etag": str,
    }

    SCHEMA_FIELD_DEFAULTS: dict[str, bool] = {
        "filename": True,
        "bucket": False,
        "path": False,
        "etag": False,
    }

    def __init__(
        self,
        options: Mapping[str, Any] | GCloudConfig | None = None,
        schema: Mapping[str, bool] | None = None,
        *,
        client: storage.Client | None = None,
    ) -> None:
        self.config = self._build_config(options)

        for key in self.REQUIRED_OPTIONS:
            if not getattr(self.config, key):
                raise ConfigurationError(f"Configuration error: Missing required option `{key}`")

        self.schema = {**self.SCHEMA_FIELD_DEFAULTS, **(schema or {})}
        self._strategy = resolve_strategy(self.config.generate_filename)
        self._client = client

    @staticmethod
    def _build_config(options: Mapping[str, Any] | GCloudConfig | None) -> GCloudConfig:
        if isinstance(options, GCloudConfig):
            return options

        options = dict(options or {})
        if "gcloud" in options:
            options = dict(options["gcloud"] or {})

        try:
            return GCloudConfig(**{**get_config_defaults(), **options})
        except ValueError as exc:
            # Covers pydantic validation and unset $VAR references in app.yaml
            raise ConfigurationError(f"Configuration error: {exc}") from exc

    @property
    def client(self) -> storage.Client:
        """The storage client, built from the configured credentials on first use.

        Read on the event-loop thread only, never inside a worker thread.
        """
        if self._client is None:
            if self.config.credentials_file:
                self._client = storage.Client.from_service_account_json(
                    self.config.credentials_file, project=self.config.project_id
                )
            else:
                self._client = storage.Client(project=self.config.project_id)
        return self._client

    # -- key resolution --

    def _resolve_bucket(self, file: FileRecord | None = None) -> str:
        if file is not None and file.bucket:
            return file.bucket
        return self.config.bucket

    def _resolve_path(self, file: FileRecord | None = None) -> str:
        # Records written by older adapters may store the path without the
        # leading slash.
        path = (file.path if file is not None else "") or self.config.path
        return ensure_leading_slash(path)

    def _resolve_object_name(self, file: FileRecord) -> str:
        """The provider object name: the resolved key without its leading slash."""
        return remove_leading_slash(resolve_key(self._resolve_path(file), file.filename))

    def _resolve_absolute_path(self, file: FileRecord) -> str:
        """Absolute, URL-safe key for *file*."""
        return encode_special_characters(resolve_key(self._resolve_path(file), file.filename))

    # -- operations --

    async def upload_file(self, file: FileRecord) -> FileRecord:
        """Upload the local file at ``file.path`` and update *file* in place.

        The record is only modified once the upload succeeded. A name that
        already exists in the bucket is retried with the next attempt index
        until ``max_attempts`` is reached.

        Raises:
            NameGenerationError: The filename strategy failed.
            FilenameCollisionError: Every generated name was taken.
        """
        source = file.path
        # The strategy sees the local source; the storage key does not.
        candidate = replace(file)
        bucket = self._resolve_bucket(file)
        content_type = self._resolve_content_type(file, source)
        payload: bytes | None = None

        for attempt in range(self.config.max_attempts):
            filename = await self._generate_filename(candidate, attempt)
            object_name = self._resolve_object_name(replace(file, path="", filename=filename))

            if payload is None:
                payload = await asyncio.to_thread(self._read_payload, source)

            logger.debug(
                'Uploading file "%s" to "%s" bucket with mimetype "%s"',
                object_name, bucket, content_type,
            )
            try:
                blob = await asyncio.to_thread(
                    self._write_object, self.client.bucket(bucket), object_name, payload, content_type
                )
            except PreconditionFailed:
                logger.info(
                    'File "%s" already exists in "%s" bucket (attempt %d of %d)',
                    object_name, bucket, attempt + 1, self.config.max_attempts,
                )
                continue

            file.filename = relative_key(blob.name, self.config.path)
            file.etag = blob.etag or ""
            file.path = self.config.path if self.schema.get("path") else ""
            if self.schema.get("bucket"):
                file.bucket = bucket
            return file

        logger.warning(
            'Giving up on upload to "%s" bucket after %d attempt(s)',
            bucket, self.config.max_attempts,
        )
        raise FilenameCollisionError(bucket, self.config.max_attempts)

    def get_file_url(self, file: FileRecord) -> str:
        """Return the public URL for *file*.

        The URL only resolves if the object or bucket is publicly readable, or
        the request for it carries credentials.
        """
        bucket = self._resolve_bucket(file)
        absolute_path = self._resolve_absolute_path(file)
        return f"https://{self.config.public_host}/{bucket}{absolute_path}"

    async def remove_file(self, file: FileRecord) -> None:
        bucket = self._resolve_bucket(file)
        object_name = self._resolve_object_name(file)

        logger.debug('Removing file "%s" from "%s" bucket', object_name, bucket)

        await asyncio.to_thread(self._delete_object, self.client.bucket(bucket), object_name)

    async def file_exists(self, filename: str) -> StoredObject | None:
        """Return metadata for *filename* in the default bucket, or None if absent."""
        bucket = self._resolve_bucket()

        logger.debug('Checking file exists "%s" in "%s" bucket', filename, bucket)

        blob = await asyncio.to_thread(self.client.bucket(bucket).get_blob, filename)
        if blob is None:
            return None
        return StoredObject.from_blob(blob)

    # -- internal helpers --

    async def _generate_filename(self, file: FileRecord, attempt: int) -> str:
        try:
            filename = self._strategy.generate(file, attempt)
            if inspect.isawaitable(filename):
                filename = await filename
        except Exception as exc:
            raise NameGenerationError(
                f"Filename strategy {self._strategy!r} failed on attempt {attempt}: {exc}"
            ) from exc

        if not filename:
            raise NameGenerationError(
                f"Filename strategy {self._strategy!r} returned an empty filename"
            )
        return filename

    @staticmethod
    def _resolve_content_type(file: FileRecord, source: str) -> str:
        if file.mimetype:
            return file.mimetype
        guessed, _ = mimetypes.guess_type(file.originalname or source)
        return guessed or "application/octet-stream"

    def _read_payload(self, source: str) -> bytes:
        data = Path(source).read_bytes()
        if self.config.gzip:
            return gzip.compress(data)
        return data

    def _write_object(
        self, bucket: storage.Bucket, object_name: str, payload: bytes, content_type: str
    ) -> storage.Blob:
        blob = bucket.blob(object_name)
        blob.cache_control = self.config.cache_control
        if self.config.gzip:
            blob.content_encoding = "gzip"

        upload_kwargs: dict[str, Any] = {"content_type": content_type}
        if self.config.public:
            upload_kwargs["predefined_acl"] = "publicRead"
        if not self.config.overwrite:
            upload_kwargs["if_generation_match"] = 0

        blob.upload_from_string(payload, **upload_kwargs)
        return blob

    @staticmethod
    def _delete_object(bucket: storage.Bucket, object_name: str) -> None:
        bucket.blob(object_name).delete()
