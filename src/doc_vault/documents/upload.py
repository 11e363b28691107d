"""Batch upload pipeline.

Each file in a batch is written and verified on its own; a failure is
recorded by name and the rest of the batch carries on. Survivors are
registered with a single metadata append once every file has been handled,
so a batch costs one acquisition of the metadata lock regardless of size.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..exceptions import (
    BlobMissingError,
    BlobVerificationError,
    BlobWriteError,
    FileTooLargeError,
    MetadataStoreError,
    NoFilesError,
    StorageIOError,
    TooManyFilesError,
)
from ..storage.blob import LocalBlobStore
from ..storage.metadata import JsonMetadataStore
from .models import Document, IncomingFile, StoredBlob, UploadResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadLimits:
    max_file_size: int = 100 * 1024 * 1024
    max_files_per_batch: int = 50
    verify_attempts: int = 10
    verify_delay: float = 0.1
    verify_backoff: float = 1.5


class UploadPipeline:
    def __init__(
        self,
        blobs: LocalBlobStore,
        metadata: JsonMetadataStore,
        limits: UploadLimits | None = None,
    ):
        self.blobs = blobs
        self.metadata = metadata
        self.limits = limits or UploadLimits()

    def validate(self, files: Sequence[IncomingFile]) -> None:
        """Reject the batch before anything is written."""
        if not files:
            raise NoFilesError()
        if len(files) > self.limits.max_files_per_batch:
            raise TooManyFilesError(len(files), self.limits.max_files_per_batch)
        for f in files:
            if f.declared_size is not None and f.declared_size > self.limits.max_file_size:
                raise FileTooLargeError(f.filename, self.limits.max_file_size)

    async def ingest(self, files: Sequence[IncomingFile]) -> UploadResult:
        self.validate(files)
        logger.info("Received %d file(s) for upload", len(files), extra={"batch_size": len(files)})

        succeeded: list[Document] = []
        failed: list[str] = []
        try:
            for incoming in files:
                doc = await self._ingest_one(incoming)
                if doc is None:
                    failed.append(incoming.filename)
                else:
                    succeeded.append(doc)
        except BaseException:
            # oversized file, client gone or anything else that aborts the
            # batch: nothing from it survives
            await self._discard_blobs(d.storage_name for d in succeeded)
            raise

        if succeeded:
            try:
                await self.metadata.append_all(succeeded)
            except MetadataStoreError:
                logger.error(
                    "Metadata append failed; leaving %d orphaned blob(s)",
                    len(succeeded),
                    exc_info=True,
                )
                raise

        logger.info(
            "Upload complete: %d succeeded, %d failed",
            len(succeeded),
            len(failed),
            extra={"batch_size": len(files)},
        )
        return UploadResult(succeeded=succeeded, failed=failed)

    async def _ingest_one(self, incoming: IncomingFile) -> Document | None:
        storage_name = self.blobs.new_storage_name(incoming.filename)
        try:
            blob = await self.blobs.put(
                incoming.stream,
                filename=incoming.filename,
                storage_name=storage_name,
                max_bytes=self.limits.max_file_size,
            )
            size = await self.verify(blob)
        except (BlobWriteError, BlobVerificationError) as e:
            logger.error(
                "Error storing file %s: %s", incoming.filename, e, extra={"title": incoming.filename}
            )
            await self._discard_blobs([storage_name])
            return None
        except BaseException:
            await self._discard_blobs([storage_name])
            raise

        doc = Document.create(
            title=incoming.filename,
            storage_name=blob.storage_name,
            size=size,
            mime_type=incoming.content_type,
        )
        logger.info(
            "File saved: %s (%d bytes)",
            incoming.filename,
            size,
            extra={"document_id": doc.id, "storage_name": doc.storage_name},
        )
        return doc

    async def verify(self, blob: StoredBlob) -> int:
        """Confirm the blob is on disk, complete and non-empty.

        The drained byte count from the write is authoritative; polling only
        covers the window where the file is not yet visible at full size.
        Returns the on-disk size.
        """
        if blob.size == 0:
            raise BlobVerificationError(f"{blob.storage_name} is empty")

        delay = self.limits.verify_delay
        on_disk = 0
        for attempt in range(1, self.limits.verify_attempts + 1):
            try:
                on_disk = await self.blobs.size(blob.storage_name)
            except BlobMissingError:
                on_disk = 0
            if on_disk and on_disk == blob.size:
                return on_disk
            if attempt < self.limits.verify_attempts:
                await asyncio.sleep(delay)
                delay *= self.limits.verify_backoff
        raise BlobVerificationError(
            f"{blob.storage_name} not fully written after {self.limits.verify_attempts} attempts "
            f"({on_disk} of {blob.size} bytes visible)"
        )

    async def _discard_blobs(self, storage_names: Iterable[str]) -> None:
        for name in storage_names:
            try:
                await asyncio.shield(self.blobs.delete(name))
            except StorageIOError as e:
                logger.warning("Could not clean up blob %s: %s", name, e, extra={"storage_name": name})