"""End-to-end tests wiring real storage and HTTP adapters into resources."""

from __future__ import annotations

import os
import time
from datetime import timedelta
from pathlib import Path

import httpx
import pytest

from asyncresource.client import HttpFetcher
from asyncresource.exceptions import ParseError
from asyncresource.models import CacheStrategy, RequestConfig
from asyncresource.resources import (
    file_resource,
    http_network_resource,
    json_parser,
    keyvalue_resource,
)
from asyncresource.storage import FileStorage, KeyValueStorage

URL = "https://example.com/posts.json"


def _mock_fetcher(body: str | None, seen: list, binary: bool = False) -> HttpFetcher:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if body is None:
            return httpx.Response(503)
        return httpx.Response(200, text=body)

    return HttpFetcher(RequestConfig(max_retries=0), binary=binary, transport=httpx.MockTransport(handler))


class TestJsonParser:
    def test_parses_text_and_bytes(self) -> None:
        assert json_parser('{"a": 1}') == {"a": 1}
        assert json_parser(b'[1, 2]') == [1, 2]

    def test_invalid_json_raises_parse_error(self) -> None:
        with pytest.raises(ParseError, match="Invalid JSON"):
            json_parser("{nope")


class TestConstructors:
    def test_file_resource(self, tmp_path: Path) -> None:
        resource = file_resource(tmp_path / "posts.json", binary=True)
        assert isinstance(resource.storage, FileStorage)
        assert resource.storage.binary is True
        assert resource.basename == "posts.json"

    def test_keyvalue_resource(self, tmp_path: Path) -> None:
        resource = keyvalue_resource("darkBackground", tmp_path / "prefs")
        try:
            assert isinstance(resource.storage, KeyValueStorage)
            assert resource.location == "darkBackground"
        finally:
            resource.storage.close()

    def test_http_network_resource_defaults(self, tmp_path: Path) -> None:
        resource = http_network_resource(URL, cache=file_resource(tmp_path / "posts.json"))
        assert resource.strategy is CacheStrategy.NETWORK_FIRST
        assert resource.url == URL


class TestFileBackedNetworkResource:
    @pytest.mark.asyncio
    async def test_fetch_populates_cache_file(self, tmp_path: Path) -> None:
        path = tmp_path / "posts.json"
        seen: list = []
        resource = http_network_resource(
            URL,
            cache=file_resource(path, parser=json_parser),
            fetcher=_mock_fetcher('[{"id": 1}]', seen),
        )

        assert await resource.get() == [{"id": 1}]
        assert path.read_text() == '[{"id": 1}]'
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_cache_first_reads_fresh_file_without_network(self, tmp_path: Path) -> None:
        path = tmp_path / "posts.json"
        path.write_text('[{"id": "cached"}]')
        seen: list = []
        resource = http_network_resource(
            URL,
            cache=file_resource(path, parser=json_parser),
            max_age=timedelta(days=30),
            strategy=CacheStrategy.CACHE_FIRST,
            fetcher=_mock_fetcher('[{"id": "fresh"}]', seen),
        )

        assert await resource.get() == [{"id": "cached"}]
        assert seen == []

    @pytest.mark.asyncio
    async def test_cache_first_refetches_expired_file(self, tmp_path: Path) -> None:
        path = tmp_path / "posts.json"
        path.write_text('[{"id": "cached"}]')
        forty_days_ago = time.time() - 40 * 86400
        os.utime(path, (forty_days_ago, forty_days_ago))
        seen: list = []
        resource = http_network_resource(
            URL,
            cache=file_resource(path, parser=json_parser),
            max_age=timedelta(days=30),
            strategy=CacheStrategy.CACHE_FIRST,
            fetcher=_mock_fetcher('[{"id": "fresh"}]', seen),
        )

        assert await resource.get() == [{"id": "fresh"}]
        assert len(seen) == 1
        assert path.read_text() == '[{"id": "fresh"}]'

    @pytest.mark.asyncio
    async def test_server_error_falls_back_to_file(self, tmp_path: Path) -> None:
        path = tmp_path / "posts.json"
        path.write_text('[{"id": "cached"}]')
        resource = http_network_resource(
            URL,
            cache=file_resource(path, parser=json_parser),
            fetcher=_mock_fetcher(None, []),
        )

        assert await resource.get() == [{"id": "cached"}]
        assert path.read_text() == '[{"id": "cached"}]'

    @pytest.mark.asyncio
    async def test_redirect_loop_falls_back_to_file(self, tmp_path: Path) -> None:
        path = tmp_path / "posts.json"
        path.write_text("cached")

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(302, headers={"Location": URL})

        fetcher = HttpFetcher(RequestConfig(max_retries=0), transport=httpx.MockTransport(handler))
        resource = http_network_resource(URL, cache=file_resource(path), fetcher=fetcher)

        assert await resource.get() == "cached"

    @pytest.mark.asyncio
    async def test_binary_resource(self, tmp_path: Path) -> None:
        path = tmp_path / "logo.bin"

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"\x00\x01\x02")

        fetcher = HttpFetcher(RequestConfig(max_retries=0), binary=True, transport=httpx.MockTransport(handler))
        resource = http_network_resource(URL, cache=file_resource(path, binary=True), fetcher=fetcher)

        assert await resource.get() == b"\x00\x01\x02"
        assert path.read_bytes() == b"\x00\x01\x02"


class TestKeyValueBackedNetworkResource:
    @pytest.mark.asyncio
    async def test_round_trip_through_store(self, tmp_path: Path) -> None:
        cache = keyvalue_resource("posts", tmp_path / "store", parser=json_parser)
        try:
            resource = http_network_resource(
                URL,
                cache=cache,
                strategy=CacheStrategy.CACHE_FIRST,
                fetcher=_mock_fetcher('{"n": 1}', []),
            )
            assert await resource.get() == {"n": 1}
            assert await cache.storage.read() == '{"n": 1}'
        finally:
            cache.storage.close()
