"""The storage adapter contract used by :class:`~asyncresource.resource.LocalResource`."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Union, runtime_checkable

Content = Union[str, bytes]


@runtime_checkable
class Storage(Protocol):
    """A single persisted value on some medium (file, key/value store, ...).

    Every method is a coroutine. Implementations should raise
    :class:`~asyncresource.exceptions.StorageError` for medium failures;
    the resource layer never retries or swallows them.

    Attributes:
        location: Identity of the persisted value (a path or key).
    """

    location: str

    async def exists(self) -> bool:
        """Whether the persisted value exists."""
        ...

    async def last_modified(self) -> Optional[datetime]:
        """Aware UTC modification time, or ``None`` exactly when :meth:`exists` is ``False``."""
        ...

    async def read(self) -> Optional[Content]:
        """Return the raw persisted content, or ``None`` if nothing is stored."""
        ...

    async def write(self, content: Content) -> None:
        """Persist *content*. Must be complete when the coroutine returns."""
        ...

    async def delete(self) -> None:
        """Remove the persisted value. Deleting a missing value is not an error."""
        ...
