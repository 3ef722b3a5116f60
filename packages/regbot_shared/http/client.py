"""Minimal shared asynchronous HTTP client wrapper over httpx."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from .errors import HttpRequestError


class AsyncHttpClient:
    """Thin asynchronous wrapper over ``httpx.AsyncClient``.

    Every response is returned as-is whatever its status; only transport
    failures are raised, as ``HttpRequestError``.
    """

    def __init__(
        self,
        *,
        base_url: str = "",
        timeout_seconds: float = 10.0,
        headers: Mapping[str, str] | None = None,
        follow_redirects: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Create a new shared asynchronous HTTP client wrapper."""
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            headers=dict(headers or {}),
            follow_redirects=follow_redirects,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close underlying transport resources when owned."""
        if self._owns_client:
            await self._client.aclose()

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Issue one request and map transport failures to a typed error."""
        try:
            return await self._client.request(method=method, url=url, **kwargs)
        except httpx.RequestError as exc:
            request = _request_of(exc)
            request_url = str(request.url) if request is not None else url
            request_method = request.method if request is not None else method.upper()
            raise HttpRequestError(
                message=f"HTTP request failed for {request_method} {request_url}",
                method=request_method,
                url=request_url,
                retryable=True,
                cause=exc,
            ) from exc

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        """Issue one POST request."""
        return await self.request("POST", url, **kwargs)


def _request_of(exc: httpx.RequestError) -> httpx.Request | None:
    """Return the request attached to a transport error, if any."""
    try:
        return exc.request
    except RuntimeError:
        # httpx raises when the error was built without a request.
        return None
