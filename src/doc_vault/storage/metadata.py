"""JSON-file metadata store.

The whole record set lives in one JSON array. Every mutation is a
read-modify-write of that array performed under one ``asyncio.Lock``, and
the new snapshot replaces the old one with ``os.replace`` after being
fsynced to a sibling temporary file. Readers skip the lock: they always
open either the previous or the next complete file.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, Iterable

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..documents.models import Document
from ..exceptions import MetadataStoreError

logger = logging.getLogger(__name__)

_records = TypeAdapter(list[Document])


class JsonMetadataStore:
    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def initialize(self) -> None:
        """Create the parent directory and an empty store if none exists."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if not self.path.exists():
                self._write([])
        except OSError as e:
            raise MetadataStoreError(f"Cannot initialize metadata store: {e}") from e

    # Reads

    async def load_all(self) -> list[Document]:
        return await asyncio.to_thread(self._read)

    async def get(self, document_id: str) -> Document | None:
        for doc in await self.load_all():
            if doc.id == document_id:
                return doc
        return None

    # Mutations

    async def append_all(self, records: Iterable[Document]) -> None:
        new = list(records)
        if not new:
            return
        await self._mutate(lambda current: (current + new, None))
        logger.info("Appended %d record(s) to metadata store", len(new), extra={"batch_size": len(new)})

    async def remove_by_id(self, document_id: str) -> Document | None:
        """Remove a record; returns it, or ``None`` if it was not present."""

        def remove(current: list[Document]) -> tuple[list[Document] | None, Document | None]:
            for i, doc in enumerate(current):
                if doc.id == document_id:
                    return current[:i] + current[i + 1 :], doc
            return None, None

        removed = await self._mutate(remove)
        if removed is not None:
            logger.info("Removed record %s", document_id, extra={"document_id": document_id})
        return removed

    async def _mutate(self, change: Callable[[list[Document]], tuple[list[Document] | None, object]]):
        """Apply ``change`` to the current snapshot under the mutation lock.

        ``change`` returns ``(new_records, result)``; ``new_records`` of
        ``None`` means nothing changed and nothing is written.
        """
        async with self._lock:
            current = await asyncio.to_thread(self._read)
            updated, result = change(current)
            if updated is not None:
                await asyncio.to_thread(self._write, updated)
            return result

    # File I/O

    def _read(self) -> list[Document]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise MetadataStoreError(f"Cannot read metadata store {self.path}: {e}") from e
        try:
            return _records.validate_json(raw)
        except PydanticValidationError as e:
            raise MetadataStoreError(f"Corrupt metadata store {self.path}: {e}") from e

    def _write(self, records: list[Document]) -> None:
        payload = json.dumps(
            _records.dump_python(records, mode="json", by_alias=True), indent=2, ensure_ascii=False
        )
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise MetadataStoreError(f"Cannot write metadata store {self.path}: {e}") from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError as cleanup_error:
                    logger.warning("Could not remove temporary snapshot %s: %s", tmp_name, cleanup_error)
