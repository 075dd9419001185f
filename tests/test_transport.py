"""Tests for HttpxTransport against a mocked httpx layer."""

from __future__ import annotations

import json

import httpx
import pytest
from pytest_httpx import HTTPXMock

from mochimo_construction.client import ConstructionClient
from mochimo_construction.errors import RosettaApiError
from mochimo_construction.transport import HttpxTransport, JsonTransport

URL = "http://node.test:8080/network/status"


class TestHttpxTransport:
    def test_implements_protocol(self) -> None:
        assert isinstance(HttpxTransport(), JsonTransport)

    @pytest.mark.asyncio
    async def test_posts_json_body(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=URL, method="POST", json={"ok": True})

        result = await HttpxTransport(headers={"X-Api-Key": "k"}).post_json(URL, {"a": 1})

        assert result == {"ok": True}
        request = httpx_mock.get_requests()[0]
        assert json.loads(request.content) == {"a": 1}
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["X-Api-Key"] == "k"

    @pytest.mark.asyncio
    async def test_error_envelope_with_500_is_returned(self, httpx_mock: HTTPXMock) -> None:
        envelope = {"code": 1, "message": "bad request", "retriable": False}
        httpx_mock.add_response(url=URL, method="POST", status_code=500, json=envelope)

        result = await HttpxTransport().post_json(URL, {})

        assert result == envelope

    @pytest.mark.asyncio
    async def test_non_json_error_raises_http_status(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=URL, method="POST", status_code=502, text="Bad Gateway")

        with pytest.raises(httpx.HTTPStatusError):
            await HttpxTransport().post_json(URL, {})

    @pytest.mark.asyncio
    async def test_json_error_without_envelope_raises_http_status(
        self, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(
            url=URL, method="POST", status_code=502, json={"error": "bad gateway"}
        )

        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await HttpxTransport().post_json(URL, {})
        assert exc_info.value.response.status_code == 502

    @pytest.mark.asyncio
    async def test_non_object_json_rejected(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=URL, method="POST", json=[1, 2, 3])

        with pytest.raises(ValueError, match="not an object"):
            await HttpxTransport().post_json(URL, {})

    @pytest.mark.asyncio
    async def test_connect_error_propagates(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_exception(httpx.ConnectError("connection refused"))

        with pytest.raises(httpx.ConnectError):
            await HttpxTransport().post_json(URL, {})


class TestClientOverHttpx:
    @pytest.mark.asyncio
    async def test_envelope_surfaces_as_rosetta_error(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(
            url=URL,
            method="POST",
            status_code=500,
            json={"code": 12, "message": "Network not supported", "retriable": False},
        )
        client = ConstructionClient("http://node.test:8080")

        with pytest.raises(RosettaApiError, match="Network not supported"):
            await client.get_network_status()

    @pytest.mark.asyncio
    async def test_submit_gateway_error_propagates(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(
            url="http://node.test:8080/construction/submit",
            method="POST",
            status_code=502,
            json={"error": "bad gateway"},
        )
        client = ConstructionClient("http://node.test:8080")

        with pytest.raises(httpx.HTTPStatusError):
            await client.submit("ab")
