"""Persistence layer: blob bytes on disk and the JSON metadata document."""

from .blob import LocalBlobStore
from .metadata import JsonMetadataStore

__all__ = ["LocalBlobStore", "JsonMetadataStore"]
