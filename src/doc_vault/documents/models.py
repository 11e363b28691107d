"""Document models for the storage engine.

:class:`Document` is the only persisted entity. Its JSON form uses
camelCase keys (``storageName``, ``mimeType``, ``uploadDate``), which is
both the on-disk layout of the metadata document and the shape returned
over HTTP.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import AsyncIterator, Protocol
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_MIME_TYPE = "application/octet-stream"


class AsyncReadable(Protocol):
    """Anything with an async ``read(size)``, e.g. Starlette's ``UploadFile``."""

    async def read(self, size: int = -1) -> bytes: ...


class Document(BaseModel):
    """Metadata record describing one stored file. Write-once."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(..., description="Document ID (uuid4)")
    title: str = Field(..., description="Original filename supplied by the client")
    storage_name: str = Field(..., description="Generated blob key inside the upload directory")
    size: int = Field(..., ge=1, description="Verified byte length of the stored blob")
    mime_type: str = Field(DEFAULT_MIME_TYPE, description="Client-declared MIME type")
    upload_date: datetime = Field(..., description="Creation timestamp (UTC)")

    @classmethod
    def create(
        cls,
        *,
        title: str,
        storage_name: str,
        size: int,
        mime_type: str | None = None,
        upload_date: datetime | None = None,
    ) -> "Document":
        return cls(
            id=str(uuid4()),
            title=title,
            storage_name=storage_name,
            size=size,
            mime_type=mime_type or DEFAULT_MIME_TYPE,
            upload_date=upload_date or datetime.now(timezone.utc),
        )


@dataclass(frozen=True)
class IncomingFile:
    """One member of an upload batch, before anything is written."""

    filename: str
    stream: AsyncReadable
    content_type: str | None = None
    declared_size: int | None = None


@dataclass(frozen=True)
class StoredBlob:
    """A blob whose source stream was fully drained to disk."""

    storage_name: str
    size: int


class BatchStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class UploadResult:
    succeeded: list[Document]
    failed: list[str]

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def status(self) -> BatchStatus:
        if not self.succeeded:
            return BatchStatus.FAILED
        if self.failed:
            return BatchStatus.PARTIAL
        return BatchStatus.SUCCESS

    @property
    def message(self) -> str:
        if self.status is BatchStatus.FAILED:
            return "No files were successfully saved"
        if self.status is BatchStatus.PARTIAL:
            return (
                f"Uploaded {len(self.succeeded)} out of {self.total} files. "
                f"Failed: {', '.join(self.failed)}"
            )
        return f"Successfully uploaded {len(self.succeeded)} file(s)"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class DocumentQuery(BaseModel):
    """Search, sort and pagination parameters for a listing."""

    text: str | None = None
    sort_order: SortOrder = SortOrder.DESC
    page: int = 1
    page_size: int = 10


class DocumentPage(BaseModel):
    documents: list[Document]
    page: int
    page_size: int
    total: int
    total_pages: int

    @staticmethod
    def count_pages(total: int, page_size: int) -> int:
        return math.ceil(total / page_size) if total else 0


@dataclass(frozen=True)
class DocumentDownload:
    """An opened blob plus the record describing it."""

    document: Document
    stream: AsyncIterator[bytes]

    @property
    def filename(self) -> str:
        return self.document.title

    @property
    def media_type(self) -> str:
        return self.document.mime_type or DEFAULT_MIME_TYPE

    @property
    def size(self) -> int:
        return self.document.size
