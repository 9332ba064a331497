"""Key/value storage backed by :mod:`diskcache`.

Plays the role that preference stores or browser local storage play on
other platforms: a named entry in a shared store. Each entry is saved as a
dict holding the raw ``content`` and the POSIX ``modified`` timestamp of
the write, which is what :meth:`KeyValueStorage.last_modified` reports.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

import diskcache

from asyncresource.exceptions import StorageError
from asyncresource.storage.base import Content


class KeyValueStorage:
    """One entry of a :class:`diskcache.Cache`.

    Args:
        key: Name of the entry.
        store: Either an open :class:`diskcache.Cache` (shared, not closed
            by :meth:`close`) or a directory in which to open one.

    Example::

        storage = KeyValueStorage("dark_background", "/tmp/prefs")
        await storage.write("true")
        await storage.read()   # -> "true"
    """

    def __init__(self, key: str, store: Union[diskcache.Cache, str, Path]) -> None:
        self._key = key
        if isinstance(store, diskcache.Cache):
            self._cache = store
            self._owns_cache = False
        else:
            self._cache = diskcache.Cache(str(store))
            self._owns_cache = True

    @property
    def location(self) -> str:
        return self._key

    @property
    def directory(self) -> str:
        return self._cache.directory

    async def exists(self) -> bool:
        return await asyncio.to_thread(self._contains)

    async def last_modified(self) -> Optional[datetime]:
        entry = await asyncio.to_thread(self._entry)
        if entry is None:
            return None
        return datetime.fromtimestamp(entry["modified"], tz=timezone.utc)

    async def read(self) -> Optional[Content]:
        entry = await asyncio.to_thread(self._entry)
        if entry is None:
            return None
        return entry["content"]

    async def write(self, content: Content) -> None:
        await asyncio.to_thread(self._set, content)

    async def delete(self) -> None:
        await asyncio.to_thread(self._delete)

    def close(self) -> None:
        """Close the underlying cache if this storage opened it."""
        if self._owns_cache:
            self._cache.close()

    # ------------------------------------------------------------------ #
    # Blocking helpers
    # ------------------------------------------------------------------ #

    def _contains(self) -> bool:
        try:
            return self._key in self._cache
        except diskcache.Timeout as exc:
            raise StorageError(f"Timed out reading '{self._key}': {exc}") from exc

    def _entry(self) -> Optional[dict]:
        try:
            return self._cache.get(self._key)
        except diskcache.Timeout as exc:
            raise StorageError(f"Timed out reading '{self._key}': {exc}") from exc

    def _set(self, content: Content) -> None:
        entry = {"content": content, "modified": time.time()}
        try:
            self._cache.set(self._key, entry)
        except diskcache.Timeout as exc:
            raise StorageError(f"Timed out writing '{self._key}': {exc}") from exc

    def _delete(self) -> None:
        try:
            self._cache.delete(self._key)
        except diskcache.Timeout as exc:
            raise StorageError(f"Timed out deleting '{self._key}': {exc}") from exc
