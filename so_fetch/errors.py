"""Exceptions raised by so-fetch.

Transport failures (httpx.TransportError and friends) and exceptions raised
inside interceptors are never wrapped; they reach the caller as-is.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import httpx

    from so_fetch.models import FetchResponse, RequestConfig


class SoFetchError(Exception):
    """Base class for so-fetch errors."""


class ResponseError(SoFetchError):
    """Raised when the final response envelope is flagged as an error.

    The envelope is available as ``response``; the common fields are exposed
    directly so failure handlers can branch on status without unwrapping.
    """

    def __init__(self, response: FetchResponse) -> None:
        self.response = response
        method = response.config.method if response.config is not None else "?"
        url = response.config.url if response.config is not None else "?"
        super().__init__(f"{method} {url} failed with status {response.status}")

    @property
    def status(self) -> int:
        return self.response.status

    @property
    def headers(self) -> httpx.Headers:
        return self.response.headers

    @property
    def body(self) -> Any:
        return self.response.body

    @property
    def is_error(self) -> bool:
        return self.response.is_error

    @property
    def config(self) -> RequestConfig | None:
        return self.response.config


class InterceptorError(SoFetchError):
    """Raised when an interceptor returns something other than the expected model."""
