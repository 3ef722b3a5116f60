"""Unit tests for the shared async HTTP client wrapper."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from packages.regbot_shared.http import AsyncHttpClient, HttpRequestError


def _client(handler) -> AsyncHttpClient:
    return AsyncHttpClient(
        base_url="https://example.test",
        transport=httpx.MockTransport(handler),
    )


def _post(client: AsyncHttpClient, url: str, **kwargs) -> httpx.Response:
    async def _run() -> httpx.Response:
        try:
            return await client.post(url, **kwargs)
        finally:
            await client.aclose()

    return asyncio.run(_run())


def test_async_http_client_post_sends_json_body() -> None:
    """AsyncHttpClient.post should forward the JSON body and return the response."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"created": True}, request=request)

    response = _post(_client(handler), "/items", json={"name": "demo"})

    assert response.json() == {"created": True}
    assert seen[0].method == "POST"
    assert str(seen[0].url) == "https://example.test/items"
    assert json.loads(seen[0].content) == {"name": "demo"}


@pytest.mark.parametrize("status_code", [404, 429, 500, 503])
def test_async_http_client_returns_error_statuses(status_code: int) -> None:
    """Error statuses are handed back to the caller instead of raised."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json={"error": "boom"}, request=request)

    response = _post(_client(handler), "/generate-code")

    assert response.status_code == status_code
    assert response.json() == {"error": "boom"}


def test_async_http_client_maps_transport_failure_to_typed_error() -> None:
    """Transport failures should raise HttpRequestError."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection failed", request=request)

    with pytest.raises(HttpRequestError) as exc_info:
        _post(_client(handler), "/generate-code")

    error = exc_info.value
    assert error.method == "POST"
    assert error.url == "https://example.test/generate-code"
    assert error.retryable is True
    assert isinstance(error.cause, httpx.ConnectError)
    assert str(error) == "HTTP request failed for POST https://example.test/generate-code"


def test_async_http_client_maps_timeouts_to_typed_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    with pytest.raises(HttpRequestError) as exc_info:
        _post(_client(handler), "/generate-code")

    assert isinstance(exc_info.value.cause, httpx.ReadTimeout)


def test_async_http_client_leaves_injected_client_open() -> None:
    """Only clients created by the wrapper are closed by ``aclose``."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(204, request=request)

    inner = httpx.AsyncClient(
        base_url="https://example.test", transport=httpx.MockTransport(handler)
    )

    async def _run() -> bool:
        wrapper = AsyncHttpClient(client=inner)
        await wrapper.aclose()
        closed = inner.is_closed
        await inner.aclose()
        return closed

    assert asyncio.run(_run()) is False
