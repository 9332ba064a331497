"""Asynchronous HTTP fetch primitive for network resources.

This module provides :class:`HttpFetcher`, the
:class:`~asyncresource.resource.Fetcher` used by
:func:`~asyncresource.resources.http_network_resource`. It wraps
:class:`httpx.AsyncClient` with retry and exponential backoff, and decides
at the boundary what a failed request means for the resource layer:

* ``catch_errors=True`` (the default) -- any non-2xx status or network
  failure is logged and reported as ``None``, so the resource falls back
  on its cache.
* ``catch_errors=False`` -- failures raise :class:`AuthError`,
  :class:`NotFoundError`, :class:`ServerError`, or
  :class:`ConnectionError_` and abort the ``get`` call.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Union

import httpx

from asyncresource.exceptions import (
    AsyncResourceError,
    AuthError,
    ConnectionError_,
    NotFoundError,
    ServerError,
)
from asyncresource.models import RequestConfig

logger = logging.getLogger(__name__)


class HttpFetcher:
    """Fetch the body of a url with ``GET``.

    Can be used as an async context manager, in which case one
    :class:`httpx.AsyncClient` is shared across fetches. Outside a context
    a client is opened and closed around each fetch.

    Args:
        request: Timeout, SSL, retry, and fault-policy settings.
        binary: Return ``response.content`` (bytes) instead of
            ``response.text``.
        headers: Extra headers sent with every request.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`.

    Example::

        async with HttpFetcher(RequestConfig(max_retries=1)) as fetcher:
            body = await fetcher.fetch("https://example.com/posts.json")
    """

    def __init__(
        self,
        request: Optional[RequestConfig] = None,
        binary: bool = False,
        headers: Optional[dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = request or RequestConfig()
        self._binary = binary
        self._headers = dict(headers or {})
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def config(self) -> RequestConfig:
        return self._config

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> HttpFetcher:
        self._client = self._build_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Fetch
    # ------------------------------------------------------------------ #

    async def fetch(self, url: str) -> Optional[Union[str, bytes]]:
        """Fetch *url* and return its body.

        Args:
            url: Absolute url to ``GET``.

        Returns:
            The body as text or bytes, or ``None`` when the request failed
            and ``catch_errors`` is enabled.

        Raises:
            AuthError: On 401 / 403 when ``catch_errors`` is disabled.
            NotFoundError: On 404 when ``catch_errors`` is disabled.
            ServerError: On other non-2xx statuses when ``catch_errors`` is
                disabled.
            ConnectionError_: When the request itself fails (timeouts, refused
                connections, redirect loops) and ``catch_errors`` is disabled.
        """
        try:
            if self._client is not None:
                response = await self._execute_with_retry(self._client, url)
            else:
                async with self._build_client() as client:
                    response = await self._execute_with_retry(client, url)
            self._map_response_error(response)
        except AsyncResourceError as exc:
            if not self._config.catch_errors:
                raise
            logger.warning("Fetching %s failed: %s", url, exc)
            return None

        return response.content if self._binary else response.text

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _build_client(self) -> httpx.AsyncClient:
        kwargs: dict[str, Any] = {
            "timeout": self._config.timeout,
            "verify": self._config.verify_ssl,
            "follow_redirects": True,
            "headers": self._headers,
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return httpx.AsyncClient(**kwargs)

    async def _execute_with_retry(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        """Execute the GET with exponential-backoff retry.

        Transport errors and 5xx statuses are retried up to ``max_retries``
        times, sleeping 1 s, 2 s, 4 s, ... between attempts. Any other
        request error (a redirect loop, an invalid url) fails at once. Every
        request error surfaces as :class:`ConnectionError_`.
        """
        max_retries = self._config.max_retries

        for attempt in range(max_retries + 1):
            try:
                response = await client.get(url)
            except (httpx.RequestError, httpx.InvalidURL) as exc:
                if isinstance(exc, httpx.TransportError) and attempt < max_retries:
                    delay = 2 ** attempt
                    logger.debug(
                        "Connection error: %s, retrying in %ss (attempt %d/%d)",
                        exc, delay, attempt + 1, max_retries,
                    )
                    await asyncio.sleep(delay)
                    continue
                raise ConnectionError_(
                    f"Connection to {url} failed after {attempt + 1} attempts: {exc}"
                ) from exc

            if response.status_code >= 500 and attempt < max_retries:
                delay = 2 ** attempt
                logger.debug(
                    "Server error %d, retrying in %ss (attempt %d/%d)",
                    response.status_code, delay, attempt + 1, max_retries,
                )
                await asyncio.sleep(delay)
                continue

            return response

        raise ServerError(f"Request to {url} failed after all retries")  # pragma: no cover

    def _map_response_error(self, response: httpx.Response) -> None:
        """Raise a typed exception for non-2xx HTTP status codes."""
        status = response.status_code
        if 200 <= status < 300:
            return

        msg = response.text[:200] if response.text else ""
        prefix = f"HTTP {status}"
        full_msg = f"{prefix}: {msg}" if msg else prefix

        if status in (401, 403):
            raise AuthError(full_msg)
        if status == 404:
            raise NotFoundError(full_msg)
        raise ServerError(full_msg)
