"""Public shared HTTP API for internal registration bot packages."""

from .client import AsyncHttpClient
from .errors import HttpClientError, HttpError, HttpRequestError

__all__ = [
    "AsyncHttpClient",
    "HttpClientError",
    "HttpError",
    "HttpRequestError",
]
