"""Document service: the four operations the transport layer calls.

``DocumentService`` ties one blob store and one metadata store together.
The metadata store decides whether a document exists; the blob store is
only consulted once a record has been found.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Sequence

from ..app.settings import StorageSettings
from ..exceptions import (
    BlobMissingError,
    DocumentNotFoundError,
    DocVaultError,
    InvalidStorageNameError,
)
from ..storage.blob import LocalBlobStore
from ..storage.metadata import JsonMetadataStore
from .models import Document, DocumentDownload, DocumentPage, DocumentQuery, IncomingFile, UploadResult
from .query import query_documents
from .upload import UploadLimits, UploadPipeline

logger = logging.getLogger(__name__)


@dataclass
class OrphanReport:
    """Blobs no record points at, and records whose blob is gone.

    ``foreign_files`` were not written by the blob store and are only
    reported. ``not_pruned`` lists names a prune tried and failed to delete.
    """

    orphan_blobs: list[str] = field(default_factory=list)
    stale_temp_files: list[str] = field(default_factory=list)
    foreign_files: list[str] = field(default_factory=list)
    dangling_records: list[Document] = field(default_factory=list)
    not_pruned: list[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not (
            self.orphan_blobs or self.stale_temp_files or self.foreign_files or self.dangling_records
        )


class DocumentService:
    def __init__(
        self,
        blobs: LocalBlobStore,
        metadata: JsonMetadataStore,
        limits: UploadLimits | None = None,
    ):
        self.blobs = blobs
        self.metadata = metadata
        self.pipeline = UploadPipeline(blobs, metadata, limits)

    @classmethod
    def from_settings(cls, settings: StorageSettings) -> "DocumentService":
        return cls(
            LocalBlobStore(settings.upload_dir, chunk_size=settings.chunk_size),
            JsonMetadataStore(settings.metadata_file),
            UploadLimits(
                max_file_size=settings.max_file_size,
                max_files_per_batch=settings.max_files_per_batch,
                verify_attempts=settings.verify_attempts,
                verify_delay=settings.verify_delay,
                verify_backoff=settings.verify_backoff,
            ),
        )

    @property
    def limits(self) -> UploadLimits:
        return self.pipeline.limits

    def initialize(self) -> None:
        self.blobs.initialize()
        self.metadata.initialize()

    # Upload / list

    async def upload_batch(self, files: Sequence[IncomingFile]) -> UploadResult:
        return await self.pipeline.ingest(files)

    async def list_documents(self, query: DocumentQuery | None = None) -> DocumentPage:
        return query_documents(await self.metadata.load_all(), query or DocumentQuery())

    async def get_document(self, document_id: str) -> Document:
        doc = await self.metadata.get(document_id)
        if doc is None:
            raise DocumentNotFoundError(document_id)
        return doc

    # Download / delete

    async def open_download(self, document_id: str) -> DocumentDownload:
        """Resolve a document and open its blob for streaming.

        Raises:
            DocumentNotFoundError: no record for ``document_id``
            BlobMissingError: the record exists but its blob does not
        """
        doc = await self.get_document(document_id)
        try:
            stream = await self.blobs.open_for_read(doc.storage_name)
        except (BlobMissingError, InvalidStorageNameError) as e:
            logger.error(
                "Blob %s missing for document %s",
                doc.storage_name,
                doc.id,
                extra={"document_id": doc.id, "storage_name": doc.storage_name},
            )
            raise BlobMissingError(doc.storage_name, document_id=doc.id) from e
        return DocumentDownload(document=doc, stream=stream)

    async def delete_document(self, document_id: str) -> Document:
        """Delete a document's blob (best effort), then its record.

        The record's removal is what makes the delete succeed.
        """
        doc = await self.get_document(document_id)

        try:
            removed = await self.blobs.delete(doc.storage_name)
            if not removed:
                logger.warning(
                    "Blob %s was already gone",
                    doc.storage_name,
                    extra={"document_id": doc.id, "storage_name": doc.storage_name},
                )
        except DocVaultError as e:
            logger.warning(
                "Error deleting blob %s: %s",
                doc.storage_name,
                e,
                extra={"document_id": doc.id, "storage_name": doc.storage_name},
            )

        if await self.metadata.remove_by_id(document_id) is None:
            # a concurrent delete removed it first
            raise DocumentNotFoundError(document_id)
        return doc

    # Maintenance

    async def find_orphans(self) -> OrphanReport:
        records = await self.metadata.load_all()
        referenced = {d.storage_name for d in records}
        names = await self.blobs.list_storage_names()
        on_disk = set(names)
        return OrphanReport(
            orphan_blobs=[n for n in names if n not in referenced],
            stale_temp_files=await self.blobs.list_temp_names(),
            foreign_files=await self.blobs.list_foreign_names(),
            dangling_records=[d for d in records if d.storage_name not in on_disk],
        )

    async def prune_orphans(self) -> OrphanReport:
        """Delete blobs and temporaries no record references.

        Dangling records and foreign files are reported, never removed. A
        file that cannot be deleted is logged and listed in ``not_pruned``;
        the rest are still pruned.
        """
        report = await self.find_orphans()
        for name in report.orphan_blobs:
            await self._prune(report, name, self.blobs.delete)
        for name in report.stale_temp_files:
            await self._prune(report, name, self.blobs.delete_temp)
        return report

    async def _prune(self, report: OrphanReport, name: str, delete) -> None:
        try:
            await delete(name)
        except DocVaultError as e:
            logger.warning("Could not prune %s: %s", name, e, extra={"storage_name": name})
            report.not_pruned.append(name)
            return
        logger.info("Pruned %s", name, extra={"storage_name": name})

    async def health(self) -> dict[str, object]:
        records = await self.metadata.load_all()
        upload_dir_ok = await asyncio.to_thread(self.blobs.root.is_dir)
        return {"ok": upload_dir_ok, "documents": len(records)}
