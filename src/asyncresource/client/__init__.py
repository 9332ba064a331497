"""HTTP fetch primitives for asyncresource.

Provides :class:`HttpFetcher`, which wraps :mod:`httpx` with retry,
exponential backoff, and a configurable fault policy (map failures to
"no content" or raise typed errors).
"""

from asyncresource.client.http_fetcher import HttpFetcher

__all__ = ["HttpFetcher"]
