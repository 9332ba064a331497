"""Convenience constructors wiring storage and fetch adapters into resources.

Example::

    from datetime import timedelta

    from asyncresource import CacheStrategy
    from asyncresource.resources import file_resource, http_network_resource, json_parser

    posts = http_network_resource(
        "https://example.com/posts.json",
        cache=file_resource("cache/posts.json", parser=json_parser),
        max_age=timedelta(days=30),
        strategy=CacheStrategy.CACHE_FIRST,
    )
    data = await posts.get()
"""

from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path
from typing import Any, Callable, Optional, Union

import diskcache

from asyncresource.client import HttpFetcher
from asyncresource.events import Observer
from asyncresource.exceptions import ParseError
from asyncresource.models import CacheStrategy, RequestConfig
from asyncresource.resource import LocalResource, NetworkResource, Parser, T
from asyncresource.storage import FileStorage, KeyValueStorage


def json_parser(contents: Union[str, bytes]) -> Any:
    """Decode JSON text or bytes.

    Raises:
        ParseError: If *contents* is not valid JSON.
    """
    try:
        return json.loads(contents)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ParseError(f"Invalid JSON content: {exc}") from exc


def file_resource(
    path: Union[str, Path],
    parser: Optional[Parser[T]] = None,
    pre_parser: Optional[Callable[[Any], Any]] = None,
    binary: bool = False,
    encoding: str = "utf-8",
) -> LocalResource[T]:
    """A :class:`LocalResource` persisted in the file at *path*."""
    storage = FileStorage(path, binary=binary, encoding=encoding)
    return LocalResource(storage, parser=parser, pre_parser=pre_parser)


def keyvalue_resource(
    key: str,
    store: Union[diskcache.Cache, str, Path],
    parser: Optional[Parser[T]] = None,
    pre_parser: Optional[Callable[[Any], Any]] = None,
) -> LocalResource[T]:
    """A :class:`LocalResource` persisted as entry *key* of a diskcache store."""
    storage = KeyValueStorage(key, store)
    return LocalResource(storage, parser=parser, pre_parser=pre_parser)


def http_network_resource(
    url: str,
    cache: LocalResource[T],
    max_age: Optional[timedelta] = None,
    strategy: Optional[CacheStrategy] = None,
    request: Optional[RequestConfig] = None,
    binary: bool = False,
    observer: Optional[Observer] = None,
    fetcher: Optional[HttpFetcher] = None,
) -> NetworkResource[T]:
    """A :class:`NetworkResource` fetching *url* over HTTP into *cache*.

    Parsing is done by *cache*, so give it the parser for the fetched
    content. *binary* selects whether the body is passed on as bytes and
    should match the cache's storage. Pass *fetcher* to share an already
    opened :class:`HttpFetcher`; otherwise one is built from *request*.
    """
    if fetcher is None:
        fetcher = HttpFetcher(request, binary=binary)
    return NetworkResource(
        url,
        cache=cache,
        fetcher=fetcher,
        max_age=max_age,
        strategy=strategy,
        observer=observer,
    )
