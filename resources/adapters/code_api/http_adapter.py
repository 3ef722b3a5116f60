"""Code API adapter implementation over HTTP."""

from __future__ import annotations

import asyncio
from time import monotonic
from typing import Awaitable, Callable

import httpx

from packages.regbot_shared.http import AsyncHttpClient, HttpRequestError
from packages.regbot_shared.logging import get_logger
from resources.adapters.code_api.adapter import (
    CodeApiAdapter,
    CodeApiDependencyError,
    CodeApiResponse,
)
from resources.adapters.code_api.config import CodeApiAdapterSettings

_LOGGER = get_logger(__name__)


class HttpCodeApiAdapter(CodeApiAdapter):
    """Generate-code client that absorbs transient transport failures."""

    def __init__(
        self,
        *,
        settings: CodeApiAdapterSettings,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._client = AsyncHttpClient(
            base_url=settings.base_url,
            timeout_seconds=settings.timeout_seconds,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )
        self._sleep = sleep

    async def aclose(self) -> None:
        """Release pooled connections."""
        await self._client.aclose()

    async def generate_code(
        self,
        *,
        discord_id: str,
        username: str,
        request_id: str,
    ) -> CodeApiResponse:
        """POST one generate-code request; non-2xx statuses are returned, not raised."""
        payload = {
            "discordId": discord_id,
            "username": username,
            "requestId": request_id,
        }
        started = monotonic()
        response = await self._post_with_transport_retry(payload)
        latency_ms = int((monotonic() - started) * 1000)

        try:
            body = response.json()
        except ValueError:
            body = None

        return CodeApiResponse(
            status_code=response.status_code,
            body=body,
            latency_ms=latency_ms,
        )

    async def _post_with_transport_retry(
        self, payload: dict[str, str]
    ) -> httpx.Response:
        """Issue the POST, retrying connection-level failures with doubling delay."""
        delay = self._settings.transport_backoff_initial_seconds
        attempts = self._settings.transport_attempts
        for attempt in range(1, attempts + 1):
            try:
                return await self._client.post(
                    self._settings.generate_path,
                    json=payload,
                )
            except HttpRequestError as exc:
                if attempt >= attempts:
                    raise CodeApiDependencyError(
                        str(exc) or "code api unavailable"
                    ) from exc
                _LOGGER.debug(
                    "code api transport failure on try %s/%s: %s",
                    attempt,
                    attempts,
                    exc,
                )
                await self._sleep(delay)
                delay *= self._settings.transport_backoff_multiplier

        raise CodeApiDependencyError("code api unavailable")
