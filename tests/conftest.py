"""Pytest configuration and shared fixtures."""
import io
import os
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

os.environ.setdefault("ENVIRONMENT", "test")

from app.core.config import settings  # noqa: E402
from app.domain.domain import IncomingFile  # noqa: E402
from app.infrastructure.file_store import FileStore, UploadConfig  # noqa: E402
from app.services.domains import DomainRecordManager  # noqa: E402

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class InMemoryCollection:
    """Stand-in for a pymongo Collection supporting the calls the manager makes."""

    def __init__(self):
        self.documents = []

    @staticmethod
    def _matches(document, filter_):
        return all(document.get(key) == value for key, value in filter_.items())

    def find_one(self, filter_):
        for document in self.documents:
            if self._matches(document, filter_):
                return dict(document)
        return None

    def find(self, filter_=None):
        return iter([dict(d) for d in self.documents if self._matches(d, filter_ or {})])

    def insert_one(self, document):
        document.setdefault("_id", ObjectId())
        self.documents.append(dict(document))
        return SimpleNamespace(inserted_id=document["_id"], acknowledged=True)

    def update_one(self, filter_, update):
        for document in self.documents:
            if self._matches(document, filter_):
                document.update(update["$set"])
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    def find_one_and_delete(self, filter_):
        for index, document in enumerate(self.documents):
            if self._matches(document, filter_):
                return self.documents.pop(index)
        return None


@pytest.fixture
def collection():
    """Empty in-memory domains collection."""
    return InMemoryCollection()


@pytest.fixture
def upload_config():
    """Upload rules built from default settings."""
    return UploadConfig.from_settings(settings)


@pytest.fixture
def file_store(tmp_path, upload_config):
    """File store rooted in a temporary directory."""
    return FileStore(tmp_path, upload_config)


@pytest.fixture
def manager(collection, file_store):
    """Record manager wired to the in-memory collection and temp file store."""
    return DomainRecordManager(collection, file_store)


@pytest.fixture
def make_upload():
    """Factory for decoded uploads."""
    def _make(filename, content=b"data", content_type=None):
        return IncomingFile(filename=filename, content_type=content_type, stream=io.BytesIO(content))
    return _make


@pytest.fixture
def mapper_upload(make_upload):
    return make_upload("mapper.xlsx", b"mapper-v1", XLSX)


@pytest.fixture
def image_upload(make_upload):
    return make_upload("logo.png", b"\x89PNG-v1", "image/png")


@pytest.fixture
def created_domain(manager, mapper_upload, image_upload):
    """A domain titled 'Acme' created through the manager."""
    result = manager.create(
        "Acme", "https://acme.example.com", "Acme supplier mapping", mapper_upload, image_upload
    )
    assert result.ok, result.message
    return result.domain


@pytest.fixture
def test_client(manager):
    """FastAPI test client with the record manager overridden."""
    from main import app
    from app.api.routes import get_domain_manager

    app.dependency_overrides[get_domain_manager] = lambda: manager
    yield TestClient(app)
    app.dependency_overrides.clear()
