from . import app

from .exceptions import (
    DocVaultError,
    DocumentNotFoundError,
    BlobMissingError,
    NotFoundError,
    ValidationError,
    StorageIOError,
)

__version__ = "0.1.0"

__all__ = [
    "app",
    "DocVaultError",
    "DocumentNotFoundError",
    "BlobMissingError",
    "NotFoundError",
    "ValidationError",
    "StorageIOError",
]
