"""HTTP response bodies. Field names are camelCase on the wire."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from doc_vault.documents.models import Document


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadResponse(_CamelModel):
    success: bool
    message: str
    documents: list[Document]
    count: int
    failed_files: list[str]


class UploadFailedResponse(_CamelModel):
    error: str
    failed_files: list[str]


class Pagination(_CamelModel):
    page: int
    page_size: int
    total: int
    total_pages: int


class DocumentListResponse(_CamelModel):
    documents: list[Document]
    pagination: Pagination


class DeleteResponse(_CamelModel):
    success: bool
    message: str
    id: str


class ErrorResponse(BaseModel):
    error: str
