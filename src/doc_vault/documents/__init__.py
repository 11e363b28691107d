"""Document records and the pure query engine.

The service and upload pipeline depend on ``doc_vault.storage`` and are
imported from their own modules (``doc_vault.documents.service``,
``doc_vault.documents.upload``).
"""

from .models import (
    BatchStatus,
    Document,
    DocumentDownload,
    DocumentPage,
    DocumentQuery,
    IncomingFile,
    SortOrder,
    StoredBlob,
    UploadResult,
)
from .query import query_documents

__all__ = [
    "BatchStatus",
    "Document",
    "DocumentDownload",
    "DocumentPage",
    "DocumentQuery",
    "IncomingFile",
    "SortOrder",
    "StoredBlob",
    "UploadResult",
    "query_documents",
]
