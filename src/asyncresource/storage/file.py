"""Native file storage.

Blocking filesystem calls run in a worker thread via
:func:`asyncio.to_thread` so the event loop is never stalled by disk I/O.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from asyncresource.config import atomic_write
from asyncresource.exceptions import StorageError
from asyncresource.storage.base import Content


class FileStorage:
    """A single file holding a resource's raw content.

    Args:
        path: The file to read and write.
        binary: Read content as ``bytes`` instead of ``str``.
        encoding: Text encoding used when *binary* is ``False``.
    """

    def __init__(
        self,
        path: Union[str, Path],
        binary: bool = False,
        encoding: str = "utf-8",
    ) -> None:
        self._path = Path(path)
        self._binary = binary
        self._encoding = encoding

    @property
    def location(self) -> str:
        return str(self._path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def binary(self) -> bool:
        return self._binary

    async def exists(self) -> bool:
        return await asyncio.to_thread(self._path.is_file)

    async def last_modified(self) -> Optional[datetime]:
        return await asyncio.to_thread(self._stat_mtime)

    async def read(self) -> Optional[Content]:
        return await asyncio.to_thread(self._read)

    async def write(self, content: Content) -> None:
        await asyncio.to_thread(self._write, content)

    async def delete(self) -> None:
        await asyncio.to_thread(self._delete)

    # ------------------------------------------------------------------ #
    # Blocking helpers
    # ------------------------------------------------------------------ #

    def _stat_mtime(self) -> Optional[datetime]:
        try:
            mtime = self._path.stat().st_mtime
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Cannot stat {self._path}: {exc}") from exc
        return datetime.fromtimestamp(mtime, tz=timezone.utc)

    def _read(self) -> Optional[Content]:
        try:
            if self._binary:
                return self._path.read_bytes()
            return self._path.read_text(encoding=self._encoding)
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"Cannot read {self._path}: {exc}") from exc

    def _write(self, content: Content) -> None:
        try:
            atomic_write(self._path, content, encoding=self._encoding)
        except OSError as exc:
            raise StorageError(f"Cannot write {self._path}: {exc}") from exc

    def _delete(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot delete {self._path}: {exc}") from exc
