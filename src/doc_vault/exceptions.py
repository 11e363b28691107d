"""Exception hierarchy for doc-vault.

Every error the storage engine raises derives from :class:`DocVaultError`,
grouped by what the caller can do about it:

- :class:`NotFoundError` - the document (or its blob) does not exist
- :class:`ValidationError` - the request was rejected before anything was written
- :class:`StorageIOError` - the disk misbehaved

A batch where only some files made it is not an error; see
``doc_vault.documents.models.UploadResult``.
"""

from __future__ import annotations


class DocVaultError(Exception):
    """Base exception for doc-vault."""

    def __init__(self, message: str = "", **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


# Not found


class NotFoundError(DocVaultError):
    """Requested document is not available."""


class DocumentNotFoundError(NotFoundError):
    """No record exists for the given document id."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"Document not found: {document_id}", document_id=document_id)
        self.document_id = document_id


class BlobMissingError(NotFoundError):
    """A record exists but its blob is gone from disk."""

    def __init__(self, storage_name: str, document_id: str | None = None) -> None:
        super().__init__(
            f"Blob not found on disk: {storage_name}",
            storage_name=storage_name,
            document_id=document_id,
        )
        self.storage_name = storage_name
        self.document_id = document_id


# Validation


class ValidationError(DocVaultError):
    """Request rejected before any state was changed."""


class NoFilesError(ValidationError):
    def __init__(self) -> None:
        super().__init__("No files uploaded")


class TooManyFilesError(ValidationError):
    def __init__(self, count: int, limit: int) -> None:
        super().__init__(
            f"Too many files. Maximum {limit} files allowed", count=count, limit=limit
        )
        self.count = count
        self.limit = limit


class FileTooLargeError(ValidationError):
    def __init__(self, filename: str, limit: int) -> None:
        super().__init__(
            f"File size exceeds {_format_bytes(limit)} limit: {filename}",
            filename=filename,
            limit=limit,
        )
        self.filename = filename
        self.limit = limit


class InvalidQueryError(ValidationError):
    """Pagination or sort parameters are out of range."""


class InvalidStorageNameError(ValidationError):
    """Storage name would escape the blob directory."""

    def __init__(self, storage_name: str) -> None:
        super().__init__(f"Invalid storage name: {storage_name!r}", storage_name=storage_name)
        self.storage_name = storage_name


# I/O


class StorageIOError(DocVaultError):
    """Disk error while reading or writing persisted state."""


class BlobWriteError(StorageIOError):
    pass


class BlobDeleteError(StorageIOError):
    pass


class BlobVerificationError(StorageIOError):
    """A written blob never became visible complete and non-empty."""


class MetadataStoreError(StorageIOError):
    """The metadata document could not be read or persisted."""


def _format_bytes(n: int) -> str:
    mib = n / (1024 * 1024)
    if mib >= 1 and mib == int(mib):
        return f"{int(mib)}MB"
    return f"{n} bytes"


__all__ = [
    "DocVaultError",
    "NotFoundError",
    "DocumentNotFoundError",
    "BlobMissingError",
    "ValidationError",
    "NoFilesError",
    "TooManyFilesError",
    "FileTooLargeError",
    "InvalidQueryError",
    "InvalidStorageNameError",
    "StorageIOError",
    "BlobWriteError",
    "BlobDeleteError",
    "BlobVerificationError",
    "MetadataStoreError",
]
