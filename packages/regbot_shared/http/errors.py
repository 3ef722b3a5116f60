"""Typed errors for the shared HTTP client helpers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class HttpError(Exception):
    """Base error type for shared HTTP helper failures."""

    message: str

    def __str__(self) -> str:
        """Return the human-readable error message."""
        return self.message


@dataclass(frozen=True)
class HttpClientError(HttpError):
    """Base error for outbound HTTP client call failures."""

    method: str
    url: str
    retryable: bool = False


@dataclass(frozen=True)
class HttpRequestError(HttpClientError):
    """Transport-level failure (connect, DNS, timeout)."""

    cause: Exception | None = None
