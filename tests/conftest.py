"""Shared pytest fixtures."""

import os

import pytest
from google.api_core.exceptions import PreconditionFailed

from skrift_gcs.config import get_config_defaults
from skrift_gcs.lib.storage import FileRecord, GCloudStorageAdapter


class FakeBlob:
    """Minimal stand-in for ``google.cloud.storage.Blob``."""

    def __init__(self, bucket, name):
        self.bucket = bucket
        self.name = name
        self.etag = None
        self.size = None
        self.content_type = None
        self.generation = None
        self.updated = None
        self.cache_control = None
        self.content_encoding = None
        self.data = None
        self.upload_kwargs = None

    def upload_from_string(self, data, content_type=None, predefined_acl=None, if_generation_match=None):
        client = self.bucket.client
        client.upload_attempts.append((self.bucket.name, self.name))
        if client.upload_error is not None:
            raise client.upload_error
        if if_generation_match == 0 and (self.bucket.name, self.name) in client.objects:
            raise PreconditionFailed(f"{self.name} already exists")

        self.data = data
        self.size = len(data)
        self.content_type = content_type
        self.upload_kwargs = {
            "content_type": content_type,
            "predefined_acl": predefined_acl,
            "if_generation_match": if_generation_match,
        }
        client.generation += 1
        self.generation = client.generation
        self.etag = client.etag or f"etag-{self.generation}"
        if client.echo_name is not None:
            self.name = client.echo_name
        client.objects[(self.bucket.name, self.name)] = self

    def delete(self):
        client = self.bucket.client
        client.deleted.append((self.bucket.name, self.name))
        if client.delete_error is not None:
            raise client.delete_error
        client.objects.pop((self.bucket.name, self.name), None)


class FakeBucket:
    def __init__(self, client, name):
        self.client = client
        self.name = name

    def blob(self, name):
        return FakeBlob(self, name)

    def get_blob(self, name):
        if self.client.exists_error is not None:
            raise self.client.exists_error
        return self.client.objects.get((self.name, name))


class FakeStorageClient:
    """In-memory stand-in for ``google.cloud.storage.Client``."""

    def __init__(self, etag=None, echo_name=None):
        self.etag = etag
        self.echo_name = echo_name
        self.objects = {}
        self.generation = 0
        self.upload_attempts = []
        self.deleted = []
        self.upload_error = None
        self.delete_error = None
        self.exists_error = None

    def bucket(self, name):
        return FakeBucket(self, name)

    def add_object(self, bucket, name, **attrs):
        blob = FakeBlob(FakeBucket(self, bucket), name)
        for key, value in attrs.items():
            setattr(blob, key, value)
        self.objects[(bucket, name)] = blob
        return blob


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Run each test in an empty directory with no GCLOUD_* variables set."""
    for key in list(os.environ):
        if key.startswith("GCLOUD_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    get_config_defaults.cache_clear()
    yield
    get_config_defaults.cache_clear()


@pytest.fixture
def fake_client():
    return FakeStorageClient()


@pytest.fixture
def make_adapter(fake_client):
    """Factory for adapters wired to the fake client."""
    def _make(schema=None, **options):
        options = {"project_id": "p", "bucket": "b", **options}
        return GCloudStorageAdapter(options, schema, client=fake_client)
    return _make


@pytest.fixture
def local_file(tmp_path):
    """Factory that writes a local upload and returns a FileRecord for it."""
    def _make(name="x.png", content=b"\x89PNG fake image", mimetype="image/png", **fields):
        source = tmp_path / "uploads" / name
        source.parent.mkdir(parents=True, exist_ok=True)
        source.write_bytes(content)
        return FileRecord(path=str(source), mimetype=mimetype, originalname=name, **fields)
    return _make
