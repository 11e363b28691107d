"""Map engine exceptions to JSON error responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from doc_vault.exceptions import (
    BlobMissingError,
    DocumentNotFoundError,
    DocVaultError,
    FileTooLargeError,
    MetadataStoreError,
    NotFoundError,
    StorageIOError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins.
STATUS_BY_ERROR: list[tuple[type[DocVaultError], int]] = [
    (FileTooLargeError, 413),
    (ValidationError, 400),
    (NotFoundError, 404),
    (StorageIOError, 500),
]


def status_for(exc: DocVaultError) -> int:
    for exc_type, status in STATUS_BY_ERROR:
        if isinstance(exc, exc_type):
            return status
    return 500


def public_message(exc: DocVaultError) -> str:
    if isinstance(exc, DocumentNotFoundError):
        return "Document not found"
    if isinstance(exc, BlobMissingError):
        return "File not found on disk"
    if isinstance(exc, MetadataStoreError):
        return "Failed to update document index"
    if isinstance(exc, StorageIOError):
        return "Storage error"
    return exc.message or type(exc).__name__


async def handle_doc_vault_error(request: Request, exc: DocVaultError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error(
            "%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc, exc_info=exc
        )
    else:
        logger.info("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"error": public_message(exc)})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DocVaultError, handle_doc_vault_error)  # type: ignore[arg-type]
