"""In-memory storage and fetch fakes for resource tests.

The fakes record every call so tests can assert which collaborators a
``get`` touched (memory hits must touch none).
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Optional

import pytest

from asyncresource.exceptions import StorageError
from asyncresource.expiration import utcnow


class FakeStorage:
    """Storage adapter holding a single value in memory."""

    def __init__(
        self,
        content: Any = None,
        modified: Optional[datetime] = None,
        location: str = "cache/posts.json",
    ) -> None:
        self.location = location
        self.content = content
        self.modified = modified
        if content is not None and modified is None:
            self.modified = utcnow()
        self.calls: list[str] = []
        self.fail_write = False
        self.fail_delete = False

    async def exists(self) -> bool:
        self.calls.append("exists")
        return self.content is not None

    async def last_modified(self) -> Optional[datetime]:
        self.calls.append("last_modified")
        return self.modified if self.content is not None else None

    async def read(self) -> Any:
        self.calls.append("read")
        return self.content

    async def write(self, content: Any) -> None:
        self.calls.append("write")
        if self.fail_write:
            raise StorageError("disk full")
        self.content = content
        self.modified = utcnow()

    async def delete(self) -> None:
        self.calls.append("delete")
        if self.fail_delete:
            raise StorageError("permission denied")
        self.content = None
        self.modified = None


class FakeFetcher:
    """Fetcher returning a scripted sequence of results (``None`` = failure)."""

    def __init__(self, *results: Any) -> None:
        self._results = list(results)
        self.urls: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.urls)

    async def fetch(self, url: str) -> Any:
        self.urls.append(url)
        if not self._results:
            return None
        result = self._results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def make_storage():
    """Factory: ``make_storage(content, age=timedelta(...))``."""

    def _make(content: Any = None, age: Optional[timedelta] = None) -> FakeStorage:
        modified = utcnow() - age if age is not None else None
        return FakeStorage(content=content, modified=modified)

    return _make


@pytest.fixture
def make_fetcher():
    """Factory: ``make_fetcher(result, ...)``."""

    def _make(*results: Any) -> FakeFetcher:
        return FakeFetcher(*results)

    return _make


@pytest.fixture
def events():
    """List collecting every ResourceEvent emitted by an observer."""
    return []
