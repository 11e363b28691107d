"""Stream doubles for feeding the upload pipeline without HTTP."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

from doc_vault.documents.models import Document, IncomingFile


class AsyncBytesReader:
    """Async ``read(size)`` over in-memory bytes.

    ``fail_after`` raises ``OSError`` once that many bytes were served;
    ``block_after`` stalls forever at that offset (for cancellation tests).
    """

    def __init__(self, data: bytes, *, fail_after: int | None = None, block_after: int | None = None):
        self.data = data
        self.pos = 0
        self.fail_after = fail_after
        self.block_after = block_after
        self.blocked = asyncio.Event()

    async def read(self, size: int = -1) -> bytes:
        if self.fail_after is not None and self.pos >= self.fail_after:
            raise OSError("connection reset while reading upload")
        if self.block_after is not None and self.pos >= self.block_after:
            self.blocked.set()
            await asyncio.Event().wait()
        end = len(self.data) if size is None or size < 0 else self.pos + size
        if self.fail_after is not None:
            end = min(end, self.fail_after)
        if self.block_after is not None:
            end = min(end, self.block_after)
        chunk = self.data[self.pos : end]
        self.pos += len(chunk)
        return chunk


def incoming(
    filename: str,
    data: bytes,
    content_type: str | None = "text/plain",
    declared_size: int | None = None,
    **reader_kwargs,
) -> IncomingFile:
    return IncomingFile(
        filename=filename,
        stream=AsyncBytesReader(data, **reader_kwargs),
        content_type=content_type,
        declared_size=declared_size,
    )


BASE_DATE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_doc(title: str, minutes: int = 0, size: int = 1) -> Document:
    """Record with an upload date ``minutes`` after BASE_DATE."""
    return Document.create(
        title=title,
        storage_name=f"{title.replace('.', '_')}.bin",
        size=size,
        upload_date=BASE_DATE + timedelta(minutes=minutes),
    )
