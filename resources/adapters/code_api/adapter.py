"""Remote code-generation API protocol and DTOs."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict


class CodeApiError(Exception):
    """Base exception for code API adapter failures."""


class CodeApiDependencyError(CodeApiError):
    """The API could not be reached even after the transport retry."""


class CodeApiResponse(BaseModel):
    """One HTTP exchange with the generate-code endpoint, any status."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    status_code: int
    body: Any = None
    latency_ms: int

    @property
    def ok(self) -> bool:
        """Return true for 2xx statuses."""
        return 200 <= self.status_code < 300


@runtime_checkable
class CodeApiAdapter(Protocol):
    """Protocol for issuing one generate-code call."""

    async def generate_code(
        self,
        *,
        discord_id: str,
        username: str,
        request_id: str,
    ) -> CodeApiResponse:
        """POST one generate-code request and return the raw exchange."""

    async def aclose(self) -> None:
        """Release transport resources held by the adapter."""
