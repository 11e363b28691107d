"""Document endpoints: batch upload, listing, streamed download, delete."""

from __future__ import annotations

from typing import Annotated, Optional
from urllib.parse import quote

from fastapi import APIRouter, File, Query, UploadFile, status
from fastapi.responses import JSONResponse, StreamingResponse

from doc_vault.documents.models import BatchStatus, DocumentQuery, IncomingFile, SortOrder
from doc_vault.exceptions import InvalidQueryError

from ..deps import ServiceDep, SettingsDep
from ..schemas import (
    DeleteResponse,
    DocumentListResponse,
    ErrorResponse,
    Pagination,
    UploadFailedResponse,
    UploadResponse,
)

ROUTER_PREFIX = "/documents"
ROUTER_TAG = "Documents"

router = APIRouter()


def content_disposition(title: str) -> str:
    """``attachment`` header carrying the original title, RFC 5987 encoded."""
    fallback = "".join(
        c if 32 <= ord(c) < 127 and c not in '"\\' else "_" for c in title
    ) or "download"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(title, safe='')}"


@router.post(
    "",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": UploadFailedResponse},
    },
    summary="Upload one or more documents",
)
async def upload_documents(
    service: ServiceDep,
    files: Annotated[Optional[list[UploadFile]], File(description="Files to store")] = None,
):
    """
    Upload a batch of files (multipart field ``files``, repeated).

    Files that fail to persist are listed in ``failedFiles`` while the rest
    are stored. If none could be stored the response is a 500 that still
    lists the failed names.
    """
    incoming = [
        IncomingFile(
            filename=f.filename or "unnamed",
            stream=f,
            content_type=f.content_type,
            declared_size=f.size,
        )
        for f in files or []
    ]
    result = await service.upload_batch(incoming)

    if result.status is BatchStatus.FAILED:
        body = UploadFailedResponse(error=result.message, failed_files=result.failed)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(by_alias=True),
        )

    return UploadResponse(
        success=True,
        message=result.message,
        documents=result.succeeded,
        count=len(result.succeeded),
        failed_files=result.failed,
    )


@router.get("", response_model=DocumentListResponse, summary="List documents")
async def list_documents(
    service: ServiceDep,
    settings: SettingsDep,
    q: Annotated[Optional[str], Query(description="Case-insensitive title search")] = None,
    sort_order: Annotated[SortOrder, Query(alias="sortOrder")] = SortOrder.DESC,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[Optional[int], Query(alias="pageSize", ge=1)] = None,
):
    size = page_size or settings.default_page_size
    if size > settings.max_page_size:
        raise InvalidQueryError(f"pageSize must be at most {settings.max_page_size}")

    result = await service.list_documents(
        DocumentQuery(text=q, sort_order=sort_order, page=page, page_size=size)
    )
    return DocumentListResponse(
        documents=result.documents,
        pagination=Pagination(
            page=result.page,
            page_size=result.page_size,
            total=result.total,
            total_pages=result.total_pages,
        ),
    )


@router.get(
    "/{document_id}/download",
    response_class=StreamingResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Download a document",
)
async def download_document(document_id: str, service: ServiceDep):
    download = await service.open_download(document_id)
    return StreamingResponse(
        download.stream,
        media_type=download.media_type,
        headers={
            "Content-Disposition": content_disposition(download.filename),
            "Content-Length": str(download.size),
            "Cache-Control": "no-cache",
            "Accept-Ranges": "bytes",
        },
    )


@router.delete(
    "/{document_id}",
    response_model=DeleteResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a document",
)
async def delete_document(document_id: str, service: ServiceDep):
    await service.delete_document(document_id)
    return DeleteResponse(success=True, message="Document deleted successfully", id=document_id)
