"""Local filesystem blob store.

Blobs are opaque files in a single directory, each named by a generated
storage name. Nothing else about a document is kept here; the metadata
store is the only record of which blobs belong to which document.

Writes land in a hidden ``.<storage_name>.part`` file and are renamed into
place only after the source stream returned EOF, so a blob under its final
name is always complete.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
from pathlib import Path
from typing import AsyncIterator, BinaryIO
from uuid import uuid4

from ..documents.models import AsyncReadable, StoredBlob
from ..exceptions import (
    BlobDeleteError,
    BlobMissingError,
    BlobWriteError,
    FileTooLargeError,
    InvalidStorageNameError,
)

logger = logging.getLogger(__name__)

TEMP_PREFIX = "."
TEMP_SUFFIX = ".part"

_SAFE_EXTENSION = re.compile(r"^\.[A-Za-z0-9]{1,16}$")
_SAFE_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def safe_extension(filename: str) -> str:
    """Extension of ``filename`` if it is short and alphanumeric, else ''."""
    ext = os.path.splitext(os.path.basename(filename.replace("\\", "/")))[1]
    return ext.lower() if _SAFE_EXTENSION.match(ext) else ""


def is_storage_name(name: str) -> bool:
    """True if ``name`` could have been generated by :meth:`LocalBlobStore.new_storage_name`."""
    return bool(_SAFE_NAME.match(name)) and ".." not in name


def _is_temp_name(name: str) -> bool:
    return (
        name.startswith(TEMP_PREFIX)
        and name.endswith(TEMP_SUFFIX)
        and is_storage_name(name[len(TEMP_PREFIX) : -len(TEMP_SUFFIX)])
    )


class LocalBlobStore:
    def __init__(self, root: str | Path, *, chunk_size: int = 1024 * 1024):
        self.root = Path(root)
        self.chunk_size = chunk_size

    def initialize(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    # Naming

    def new_storage_name(self, filename: str = "") -> str:
        return f"{uuid4().hex}{safe_extension(filename)}"

    def _path(self, storage_name: str) -> Path:
        if not is_storage_name(storage_name):
            raise InvalidStorageNameError(storage_name)
        return self.root / storage_name

    def _temp_path(self, storage_name: str) -> Path:
        return self.root / f"{TEMP_PREFIX}{storage_name}{TEMP_SUFFIX}"

    # Writes

    async def put(
        self,
        stream: AsyncReadable,
        *,
        filename: str = "",
        storage_name: str | None = None,
        max_bytes: int | None = None,
    ) -> StoredBlob:
        """Drain ``stream`` into a new blob and return its name and size.

        Raises:
            FileTooLargeError: the stream produced more than ``max_bytes``
            BlobWriteError: the disk write failed
        """
        name = storage_name or self.new_storage_name(filename)
        final = self._path(name)
        temp = self._temp_path(name)

        try:
            fh = await asyncio.to_thread(self._open_temp, temp)
        except OSError as e:
            raise BlobWriteError(f"Cannot create blob {name}: {e}", storage_name=name) from e

        written = 0
        completed = False
        try:
            while True:
                chunk = await stream.read(self.chunk_size)
                if not chunk:
                    break
                written += len(chunk)
                if max_bytes is not None and written > max_bytes:
                    raise FileTooLargeError(filename or name, max_bytes)
                await asyncio.to_thread(fh.write, chunk)
            await asyncio.to_thread(self._finish, fh, temp, final)
            completed = True
        except OSError as e:
            raise BlobWriteError(f"Write failed for blob {name}: {e}", storage_name=name) from e
        finally:
            if not completed:
                # also runs on cancellation; the shield keeps the cleanup
                # from being interrupted by the same cancel
                await asyncio.shield(asyncio.to_thread(self._discard, fh, temp))

        logger.debug("Stored blob %s (%d bytes)", name, written, extra={"storage_name": name})
        return StoredBlob(storage_name=name, size=written)

    @staticmethod
    def _open_temp(temp: Path) -> BinaryIO:
        temp.parent.mkdir(parents=True, exist_ok=True)
        return open(temp, "xb")

    @staticmethod
    def _finish(fh: BinaryIO, temp: Path, final: Path) -> None:
        fh.flush()
        os.fsync(fh.fileno())
        fh.close()
        os.replace(temp, final)

    @staticmethod
    def _discard(fh: BinaryIO, temp: Path) -> None:
        try:
            fh.close()
        except OSError:
            pass
        try:
            temp.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove partial blob %s: %s", temp.name, e)

    # Reads

    async def exists(self, storage_name: str) -> bool:
        return await asyncio.to_thread(self._path(storage_name).is_file)

    async def size(self, storage_name: str) -> int:
        path = self._path(storage_name)
        try:
            st = await asyncio.to_thread(path.stat)
        except FileNotFoundError as e:
            raise BlobMissingError(storage_name) from e
        return st.st_size

    async def open_for_read(self, storage_name: str) -> AsyncIterator[bytes]:
        """Open a blob and return an async iterator over its chunks.

        The file is opened eagerly so a missing blob is reported before the
        caller starts streaming.
        """
        path = self._path(storage_name)
        try:
            fh = await asyncio.to_thread(open, path, "rb")
        except FileNotFoundError as e:
            raise BlobMissingError(storage_name) from e
        return self._iter_chunks(fh)

    async def _iter_chunks(self, fh: BinaryIO) -> AsyncIterator[bytes]:
        try:
            while True:
                chunk = await asyncio.to_thread(fh.read, self.chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            fh.close()

    async def read_bytes(self, storage_name: str) -> bytes:
        return b"".join([chunk async for chunk in await self.open_for_read(storage_name)])

    # Delete / listing

    async def delete(self, storage_name: str) -> bool:
        path = self._path(storage_name)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise BlobDeleteError(
                f"Could not delete blob {storage_name}: {e}", storage_name=storage_name
            ) from e
        return True

    async def delete_temp(self, temp_name: str) -> bool:
        if not _is_temp_name(temp_name):
            raise InvalidStorageNameError(temp_name)
        try:
            await asyncio.to_thread((self.root / temp_name).unlink)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise BlobDeleteError(f"Could not delete temp file {temp_name}: {e}", storage_name=temp_name) from e
        return True

    async def list_storage_names(self) -> list[str]:
        return sorted(n for n in await self._scan() if is_storage_name(n))

    async def list_foreign_names(self) -> list[str]:
        """Files in the blob directory that are neither blobs nor temporaries.

        These were not written by this store; they are never deleted.
        """
        return sorted(
            n
            for n in await self._scan()
            if not (is_storage_name(n) or _is_temp_name(n))
        )

    async def list_temp_names(self) -> list[str]:
        return sorted(n for n in await self._scan() if _is_temp_name(n))

    async def _scan(self) -> list[str]:
        def scan() -> list[str]:
            if not self.root.is_dir():
                return []
            return [p.name for p in self.root.iterdir() if p.is_file()]

        return await asyncio.to_thread(scan)
