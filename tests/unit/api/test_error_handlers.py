from __future__ import annotations

import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient

from doc_vault.api.fastapi.middleware.errors.catchall import CatchAllExceptionMiddleware
from doc_vault.api.fastapi.middleware.errors.handlers import (
    public_message,
    register_error_handlers,
    status_for,
)
from doc_vault.api.fastapi.routers import register_all_routers
from doc_vault.exceptions import (
    BlobDeleteError,
    BlobMissingError,
    BlobWriteError,
    DocumentNotFoundError,
    DocVaultError,
    FileTooLargeError,
    InvalidQueryError,
    MetadataStoreError,
    NoFilesError,
    TooManyFilesError,
)


@pytest.mark.parametrize(
    "exc,status",
    [
        (NoFilesError(), 400),
        (TooManyFilesError(51, 50), 400),
        (InvalidQueryError("bad page"), 400),
        (FileTooLargeError("big.bin", 100 * 1024 * 1024), 413),
        (DocumentNotFoundError("abc"), 404),
        (BlobMissingError("abc.pdf", document_id="abc"), 404),
        (BlobWriteError("disk full"), 500),
        (BlobDeleteError("busy"), 500),
        (MetadataStoreError("disk full"), 500),
        (DocVaultError("unclassified"), 500),
    ],
)
def test_status_for(exc, status):
    assert status_for(exc) == status


def test_public_messages_hide_storage_details():
    assert public_message(DocumentNotFoundError("abc")) == "Document not found"
    assert public_message(BlobMissingError("abc.pdf")) == "File not found on disk"
    assert public_message(MetadataStoreError("/srv/metadata.json: disk full")) == "Failed to update document index"
    assert public_message(BlobWriteError("/srv/uploads/x: EIO")) == "Storage error"
    assert public_message(NoFilesError()) == "No files uploaded"
    assert public_message(TooManyFilesError(51, 50)) == "Too many files. Maximum 50 files allowed"


def _app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(CatchAllExceptionMiddleware)
    register_error_handlers(app)

    @app.get("/missing")
    async def missing():
        raise DocumentNotFoundError("abc")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("unexpected")

    return app


def test_registered_handler_renders_json():
    r = TestClient(_app()).get("/missing")
    assert r.status_code == 404
    assert r.json() == {"error": "Document not found"}


def test_unhandled_exception_becomes_500():
    r = TestClient(_app(), raise_server_exceptions=False).get("/boom")
    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error", "type": "RuntimeError"}


def test_register_all_routers_applies_prefixes():
    app = FastAPI()
    included = register_all_routers(app, prefix="/api")

    assert sorted(m.rsplit(".", 1)[-1] for m in included) == ["documents", "health"]
    paths = {route.path for route in app.routes}
    assert "/api/documents" in paths
    assert "/api/documents/{document_id}/download" in paths
    assert "/api/documents/{document_id}" in paths
    assert "/api/health" in paths


def test_register_all_routers_rejects_modules():
    with pytest.raises(RuntimeError):
        register_all_routers(FastAPI(), base_package="doc_vault.exceptions")
