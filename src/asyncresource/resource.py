"""Local and network-backed resources behind one async ``get`` contract.

This module holds the caching and freshness policy of the package:

* :class:`AsyncResource` -- the shared interface. A resource has an
  immutable ``location`` and an async :meth:`~AsyncResource.get` that
  returns its most readily available value.
* :class:`LocalResource` -- a value persisted through a
  :class:`~asyncresource.storage.Storage` adapter (a file, a key/value
  entry) and held in memory once loaded.
* :class:`NetworkResource` -- a value fetched through a :class:`Fetcher`
  and mirrored into an owned :class:`LocalResource` acting as its cache.
  Its :meth:`~NetworkResource.get` decides between memory, cache, and
  network according to a :class:`~asyncresource.models.CacheStrategy` and
  an optional maximum age.

Raw content is ``str`` or ``bytes`` depending on whether the underlying
medium is text or binary. Parsing is two-staged: a ``pre_parser`` (for
example decoding a container format) followed by a ``parser`` producing the
typed value. Either may be omitted, in which case content passes through.

No locking is performed. Overlapping calls on the same instance may each
hit storage or the network, and the last one to finish wins.
"""

from __future__ import annotations

import abc
from datetime import datetime, timedelta
from pathlib import PurePath
from typing import Any, Callable, Generic, Optional, Protocol, TypeVar

from asyncresource.events import Observer, ResourceEvent, ResourceEventKind, log_event
from asyncresource.expiration import has_expired
from asyncresource.models import CacheStrategy
from asyncresource.storage.base import Content, Storage

T = TypeVar("T")

Parser = Callable[[Any], T]
"""Synchronous, pure conversion from (pre-parsed) content to a typed value."""


class Fetcher(Protocol):
    """Fetch primitive used by :class:`NetworkResource`.

    Implementations return ``None`` when nothing could be fetched. Whether
    transport faults are also mapped to ``None`` or raised is the
    implementation's policy; see :class:`~asyncresource.client.HttpFetcher`.
    """

    async def fetch(self, url: str) -> Optional[Content]:
        ...


def _identity(contents: Any) -> Any:
    return contents


class AsyncResource(abc.ABC, Generic[T]):
    """Data from the network or from local storage.

    Args:
        location: A path, key, or url identifying the resource.
    """

    def __init__(self, location: str) -> None:
        self._location = location

    @property
    def location(self) -> str:
        """The location (a path, key, or url) of the resource."""
        return self._location

    @abc.abstractmethod
    async def get(self, force_reload: bool = False) -> Optional[T]:
        """Return the most readily available value, refreshing it if *force_reload*."""

    @abc.abstractmethod
    async def fetch_contents(self) -> Optional[Content]:
        """Fetch raw contents from the underlying medium, or ``None`` if there are none."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._location!r})"


class LocalResource(AsyncResource[T]):
    """A resource persisted locally, such as a native file or key/value entry.

    The in-memory value starts absent. It is set by :meth:`get`,
    :meth:`write`, and :meth:`update`, and cleared by :meth:`delete`.
    Persistence always happens before the in-memory value changes, so a
    failed write or delete leaves the previous value in place.

    Args:
        storage: Adapter performing the actual reads and writes.
        parser: Converts pre-parsed content into ``T``. When ``None`` the
            pre-parsed content is returned unchanged.
        pre_parser: Runs before *parser*, e.g. to decode a container format.
        location: Identity of the resource. Defaults to
            ``storage.location``.

    Example::

        posts = LocalResource(FileStorage("posts.json"), parser=json_parser)
        data = await posts.get()
    """

    def __init__(
        self,
        storage: Storage,
        parser: Optional[Parser[T]] = None,
        pre_parser: Optional[Callable[[Any], Any]] = None,
        location: Optional[str] = None,
    ) -> None:
        super().__init__(location if location is not None else storage.location)
        self._storage = storage
        self._parser = parser
        self._pre_parser = pre_parser or _identity
        self._value: Optional[T] = None

    @property
    def data(self) -> Optional[T]:
        """The most recently loaded value, without any I/O."""
        return self._value

    @property
    def storage(self) -> Storage:
        return self._storage

    @property
    def path(self) -> str:
        """This resource's path on the system (alias of :attr:`location`)."""
        return self.location

    @property
    def basename(self) -> str:
        """The final component of :attr:`path`."""
        return PurePath(self.path).name

    async def get(self, force_reload: bool = False) -> Optional[T]:
        """Return the in-memory value, loading it from storage when absent.

        Storage is only read when nothing is held in memory or *force_reload*
        is ``True``. If storage holds nothing, ``None`` is returned and the
        next call tries again.
        """
        if self._value is None or force_reload:
            contents = await self.fetch_contents()
            if contents is None:
                self._value = None
            else:
                self.update(contents)
        return self._value

    async def fetch_contents(self) -> Optional[Content]:
        return await self._storage.read()

    async def exists(self) -> bool:
        return await self._storage.exists()

    async def last_modified(self) -> Optional[datetime]:
        """Last modification time of the persisted copy, ``None`` if it does not exist."""
        return await self._storage.last_modified()

    async def write(self, contents: Content) -> T:
        """Persist *contents*, then parse them and hold the result in memory.

        Args:
            contents: Raw text or bytes to store.

        Returns:
            The parsed value.

        Raises:
            StorageError: If the adapter fails to persist. The in-memory
                value is left untouched.
        """
        await self._storage.write(contents)
        return self.update(contents)

    async def delete(self) -> None:
        """Remove the persisted copy, then clear the in-memory value."""
        await self._storage.delete()
        self._value = None

    def update(self, contents: Content) -> T:
        """Parse *contents* and hold the result in memory without persisting it.

        Parsing completes before the in-memory value is replaced, so a
        parser error leaves the previous value in place.
        """
        value = self.parse_contents(self._pre_parser(contents))
        self._value = value
        return value

    def parse_contents(self, contents: Any) -> T:
        if self._parser is None:
            return contents
        return self._parser(contents)


class NetworkResource(AsyncResource[T]):
    """A resource fetched from the network and cached in a local copy.

    The network resource owns *cache*; it must not be shared with another
    network resource. The default *strategy* is
    :attr:`~asyncresource.models.CacheStrategy.NETWORK_FIRST`, falling
    back on the cache when the network yields nothing.

    Args:
        url: The location to fetch.
        cache: Local copy of the data fetched from *url*.
        fetcher: Fetch primitive used to retrieve *url*.
        max_age: How old the cached copy may get before it is refetched.
            ``None`` means it never expires.
        strategy: Whether to prefer the network or the cache.
        observer: Callable receiving a :class:`ResourceEvent` for every
            decision taken. Defaults to :func:`~asyncresource.events.log_event`.
    """

    def __init__(
        self,
        url: str,
        cache: LocalResource[T],
        fetcher: Fetcher,
        max_age: Optional[timedelta] = None,
        strategy: Optional[CacheStrategy] = None,
        observer: Optional[Observer] = None,
    ) -> None:
        super().__init__(url)
        self._cache = cache
        self._fetcher = fetcher
        self._max_age = max_age
        self._strategy = strategy or CacheStrategy.NETWORK_FIRST
        self._observer = observer or log_event

    @property
    def url(self) -> str:
        """The location of the data to fetch and cache."""
        return self.location

    @property
    def cache(self) -> LocalResource[T]:
        return self._cache

    @property
    def max_age(self) -> Optional[timedelta]:
        return self._max_age

    @property
    def strategy(self) -> CacheStrategy:
        return self._strategy

    async def is_expired(self) -> bool:
        """``True`` if the cache does not exist, ``False`` if it exists and
        :attr:`max_age` is ``None``; otherwise compares the cache's age to
        :attr:`max_age`."""
        return has_expired(await self._cache.last_modified(), self._max_age)

    async def fetch_contents(self) -> Optional[Content]:
        return await self._fetcher.fetch(self.url)

    async def get(
        self,
        force_reload: bool = False,
        allow_cache_fallback: bool = True,
        skip_cache_write: bool = False,
    ) -> Optional[T]:
        """Return the value from memory if possible, otherwise from cache or network.

        The decision is taken in this order:

        1. A value already held in memory is returned with no I/O unless
           *force_reload* is set.
        2. The network is tried when *force_reload* is set, the strategy is
           network-first, or the cached copy has expired. Fetched content
           is written to the cache (or only held in memory when
           *skip_cache_write* is set). When the fetch yields nothing the
           cache is consulted, unless *allow_cache_fallback* is ``False``
           in which case ``None`` is returned.
        3. Otherwise the cached copy is loaded.

        Args:
            force_reload: Skip memory and fetch from the network.
            allow_cache_fallback: Only affects network attempts. The cache
                is still used on the cache path when it has not expired.
            skip_cache_write: Keep fetched content in memory only.

        Returns:
            The parsed value, or ``None`` when no source had one.
        """
        cached = self._cache.data
        if cached is not None and not force_reload:
            self._emit(
                ResourceEventKind.MEMORY_HIT,
                f"{self._cache.basename}: Using previously loaded value.",
            )
            return cached

        if (
            force_reload
            or self._strategy is CacheStrategy.NETWORK_FIRST
            or await self.is_expired()
        ):
            self._emit(
                ResourceEventKind.FETCH_STARTED,
                f"{self._cache.basename}: Fetching from {self.url}",
            )
            contents = await self.fetch_contents()
            if contents is not None:
                self._emit(ResourceEventKind.FETCH_SUCCEEDED, f"{self.url} Fetched.")
                if skip_cache_write:
                    return self._cache.update(contents)
                self._emit(ResourceEventKind.CACHE_WRITE, "Updating cache...")
                return await self._cache.write(contents)

            self._emit(ResourceEventKind.FETCH_FAILED, f"{self.url} returned no content.")
            if allow_cache_fallback:
                self._emit(
                    ResourceEventKind.CACHE_FALLBACK,
                    f"{self.url} Using a cached copy if available.",
                )
                return await self._cache.get()
            self._emit(ResourceEventKind.FALLBACK_SKIPPED, "Not attempting to find in cache.")
            return None

        self._emit(
            ResourceEventKind.CACHE_LOAD,
            f"Loading cached copy of {self._cache.basename}",
        )
        return await self._cache.get()

    def _emit(self, kind: ResourceEventKind, message: str) -> None:
        self._observer(ResourceEvent(kind=kind, location=self.url, message=message))
