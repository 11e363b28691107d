"""
Root conftest.py for doc-vault tests.

Provides:
1. Marker registration
2. Storage fixtures rooted in a per-test temporary directory
3. HTTP fixtures (FastAPI app + httpx AsyncClient over ASGITransport)
"""

from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from doc_vault.api.fastapi import create_app
from doc_vault.app.settings import StorageSettings
from doc_vault.documents.service import DocumentService
from doc_vault.documents.upload import UploadLimits, UploadPipeline
from doc_vault.storage.blob import LocalBlobStore
from doc_vault.storage.metadata import JsonMetadataStore


def pytest_collection_modifyitems(config, items):
    """Tag everything under tests/acceptance/ with the `acceptance` marker."""
    for item in items:
        norm = str(item.fspath).replace("\\", "/")
        if "/tests/acceptance/" in norm:
            item.add_marker(pytest.mark.acceptance)


def pytest_configure(config):
    for name, desc in [
        ("storage", "Blob store and metadata store tests"),
        ("documents", "Upload pipeline, query engine and service tests"),
        ("concurrency", "Concurrent mutation / lost-update tests"),
        ("acceptance", "End-to-end HTTP tests"),
    ]:
        config.addinivalue_line("markers", f"{name}: {desc}")


# =============================================================================
# STORAGE
# =============================================================================


@pytest.fixture
def storage_settings(tmp_path: Path) -> StorageSettings:
    """Small limits and no verification sleeps so tests stay fast."""
    return StorageSettings(
        storage_dir=tmp_path / "storage",
        max_file_size=1024,
        max_files_per_batch=20,
        chunk_size=64,
        verify_attempts=3,
        verify_delay=0,
        verify_backoff=1,
        cors_origins=["*"],
    )


@pytest.fixture
def limits(storage_settings: StorageSettings) -> UploadLimits:
    return UploadLimits(
        max_file_size=storage_settings.max_file_size,
        max_files_per_batch=storage_settings.max_files_per_batch,
        verify_attempts=storage_settings.verify_attempts,
        verify_delay=storage_settings.verify_delay,
        verify_backoff=storage_settings.verify_backoff,
    )


@pytest.fixture
def blob_store(storage_settings: StorageSettings) -> LocalBlobStore:
    store = LocalBlobStore(storage_settings.upload_dir, chunk_size=storage_settings.chunk_size)
    store.initialize()
    return store


@pytest.fixture
def metadata_store(storage_settings: StorageSettings) -> JsonMetadataStore:
    return JsonMetadataStore(storage_settings.metadata_file)


@pytest.fixture
def pipeline(blob_store, metadata_store, limits) -> UploadPipeline:
    return UploadPipeline(blob_store, metadata_store, limits)


@pytest.fixture
def service(blob_store, metadata_store, limits) -> DocumentService:
    svc = DocumentService(blob_store, metadata_store, limits)
    svc.initialize()
    return svc


# =============================================================================
# HTTP
# =============================================================================


@pytest.fixture
def app(storage_settings, service):
    return create_app(storage_settings, service=service)


@pytest_asyncio.fixture
async def client(app) -> AsyncClient:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
