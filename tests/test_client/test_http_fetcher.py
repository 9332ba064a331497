"""Tests for the httpx-based fetch primitive."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from asyncresource.client import HttpFetcher
from asyncresource.exceptions import AuthError, ConnectionError_, NotFoundError, ServerError
from asyncresource.models import RequestConfig

URL = "https://api.example.com/posts.json"


def _fetcher(handler, catch_errors: bool = True, max_retries: int = 0, binary: bool = False) -> HttpFetcher:
    return HttpFetcher(
        RequestConfig(max_retries=max_retries, catch_errors=catch_errors),
        binary=binary,
        transport=httpx.MockTransport(handler),
    )


def _counting(responses):
    """Handler returning *responses* in order and recording requests."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        item = responses[min(len(seen) - 1, len(responses) - 1)]
        if isinstance(item, Exception):
            raise item
        return item

    return handler, seen


def _redirect_loop(request: httpx.Request) -> httpx.Response:
    return httpx.Response(302, headers={"Location": str(request.url)})


# ---------------------------------------------------------------------------
# Success
# ---------------------------------------------------------------------------


class TestFetchSuccess:
    @pytest.mark.asyncio
    async def test_returns_text_body(self) -> None:
        handler, seen = _counting([httpx.Response(200, text='[{"id": 1}]')])
        body = await _fetcher(handler).fetch(URL)

        assert body == '[{"id": 1}]'
        assert seen[0].method == "GET"
        assert str(seen[0].url) == URL

    @pytest.mark.asyncio
    async def test_returns_bytes_when_binary(self) -> None:
        handler, _ = _counting([httpx.Response(200, content=b"\x89PNG")])
        assert await _fetcher(handler, binary=True).fetch(URL) == b"\x89PNG"

    @pytest.mark.asyncio
    async def test_empty_body_is_content(self) -> None:
        handler, _ = _counting([httpx.Response(200, text="")])
        assert await _fetcher(handler).fetch(URL) == ""

    @pytest.mark.asyncio
    async def test_shared_client_inside_context(self) -> None:
        handler, seen = _counting([httpx.Response(200, text="ok")])
        fetcher = _fetcher(handler)

        async with fetcher:
            assert fetcher._client is not None
            assert await fetcher.fetch(URL) == "ok"
            assert await fetcher.fetch(URL) == "ok"
        assert fetcher._client is None
        assert len(seen) == 2

    @pytest.mark.asyncio
    async def test_sends_extra_headers(self) -> None:
        handler, seen = _counting([httpx.Response(200, text="ok")])
        fetcher = HttpFetcher(
            RequestConfig(max_retries=0),
            headers={"Accept": "application/json"},
            transport=httpx.MockTransport(handler),
        )
        await fetcher.fetch(URL)
        assert seen[0].headers["Accept"] == "application/json"


# ---------------------------------------------------------------------------
# Failure policy
# ---------------------------------------------------------------------------


class TestCaughtFailures:
    @pytest.mark.parametrize("status", [401, 403, 404, 410, 500, 503])
    @pytest.mark.asyncio
    async def test_error_status_maps_to_none(self, status: int) -> None:
        handler, _ = _counting([httpx.Response(status, text="nope")])
        assert await _fetcher(handler).fetch(URL) is None

    @pytest.mark.asyncio
    async def test_connection_error_maps_to_none(self) -> None:
        handler, _ = _counting([httpx.ConnectError("refused")])
        assert await _fetcher(handler).fetch(URL) is None

    @pytest.mark.asyncio
    async def test_timeout_maps_to_none(self) -> None:
        handler, _ = _counting([httpx.ReadTimeout("slow")])
        assert await _fetcher(handler).fetch(URL) is None

    @pytest.mark.asyncio
    async def test_redirect_loop_maps_to_none(self) -> None:
        assert await _fetcher(_redirect_loop).fetch(URL) is None

    @pytest.mark.asyncio
    async def test_invalid_url_maps_to_none(self) -> None:
        handler, seen = _counting([httpx.Response(200, text="ok")])
        assert await _fetcher(handler).fetch("https://example.com:notaport/") is None
        assert seen == []


class TestRaisedFailures:
    @pytest.mark.parametrize(
        "status, exc_type",
        [
            (401, AuthError),
            (403, AuthError),
            (404, NotFoundError),
            (418, ServerError),
            (500, ServerError),
        ],
    )
    @pytest.mark.asyncio
    async def test_error_status_raises_typed_error(self, status: int, exc_type) -> None:
        handler, _ = _counting([httpx.Response(status, text="detail")])
        with pytest.raises(exc_type, match=f"HTTP {status}: detail"):
            await _fetcher(handler, catch_errors=False).fetch(URL)

    @pytest.mark.asyncio
    async def test_connection_error_raises(self) -> None:
        handler, _ = _counting([httpx.ConnectError("refused")])
        with pytest.raises(ConnectionError_, match="after 1 attempts"):
            await _fetcher(handler, catch_errors=False).fetch(URL)


# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------


class TestRetry:
    @pytest.mark.asyncio
    async def test_retries_server_errors_then_succeeds(self) -> None:
        handler, seen = _counting([
            httpx.Response(503),
            httpx.Response(502),
            httpx.Response(200, text="ok"),
        ])
        with patch("asyncresource.client.http_fetcher.asyncio.sleep", new_callable=AsyncMock) as sleep:
            assert await _fetcher(handler, max_retries=3).fetch(URL) == "ok"

        assert len(seen) == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1, 2]

    @pytest.mark.asyncio
    async def test_retries_connection_errors(self) -> None:
        handler, seen = _counting([httpx.ConnectError("refused"), httpx.Response(200, text="ok")])
        with patch("asyncresource.client.http_fetcher.asyncio.sleep", new_callable=AsyncMock):
            assert await _fetcher(handler, max_retries=2).fetch(URL) == "ok"
        assert len(seen) == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self) -> None:
        handler, seen = _counting([httpx.Response(500)])
        with patch("asyncresource.client.http_fetcher.asyncio.sleep", new_callable=AsyncMock):
            assert await _fetcher(handler, max_retries=2).fetch(URL) is None
        assert len(seen) == 3

    @pytest.mark.asyncio
    async def test_redirect_loop_is_not_retried(self) -> None:
        with patch("asyncresource.client.http_fetcher.asyncio.sleep", new_callable=AsyncMock) as sleep:
            with pytest.raises(ConnectionError_, match="after 1 attempts"):
                await _fetcher(_redirect_loop, catch_errors=False, max_retries=3).fetch(URL)

        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_client_errors_are_not_retried(self) -> None:
        handler, seen = _counting([httpx.Response(404)])
        assert await _fetcher(handler, max_retries=3).fetch(URL) is None
        assert len(seen) == 1
