from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from doc_vault.app.settings import StorageSettings, get_storage_settings
from doc_vault.documents.service import DocumentService


def get_document_service(request: Request) -> DocumentService:
    """The service instance created by the app's lifespan."""
    return request.app.state.document_service  # type: ignore[attr-defined]


def get_settings(request: Request) -> StorageSettings:
    return getattr(request.app.state, "storage_settings", None) or get_storage_settings()


ServiceDep = Annotated[DocumentService, Depends(get_document_service)]
SettingsDep = Annotated[StorageSettings, Depends(get_settings)]
