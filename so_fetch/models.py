"""Data models for so-fetch.

All models use Pydantic v2. Headers are carried as httpx.Headers so lookups
are case-insensitive everywhere a request or response is inspected.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from so_fetch.errors import SoFetchError


def _coerce_headers(value: Any) -> httpx.Headers:
    if value is None:
        return httpx.Headers()
    if isinstance(value, httpx.Headers):
        return value
    return httpx.Headers(value)


# =============================================================================
# Request / Response Models
# =============================================================================


class RequestConfig(BaseModel):
    """Options describing one outgoing request.

    Built fresh for every call and handed to each request interceptor in turn.
    Interceptors may mutate it in place or return a new instance. Extra keys
    are kept on the model (visible to interceptors) but only the declared
    transport flags are forwarded to httpx.
    """

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    method: str = Field(default="GET", description="HTTP method (GET, POST, etc.)")
    url: str = Field(default="", description="Full URL: root URL + caller path")
    headers: httpx.Headers = Field(
        default_factory=httpx.Headers, description="Request headers (case-insensitive)"
    )
    body: str | bytes | None = Field(default=None, description="Raw request body")
    params: dict[str, Any] | None = Field(default=None, description="Query parameters")
    cookies: dict[str, str] | None = Field(default=None, description="Cookies to send")
    follow_redirects: bool | None = Field(
        default=None, description="Override the client's redirect policy"
    )
    extensions: dict[str, Any] | None = Field(
        default=None, description="httpx request extensions"
    )

    @field_validator("headers", mode="before")
    @classmethod
    def normalize_headers(cls, v: Any) -> httpx.Headers:
        return _coerce_headers(v)

    def transport_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for httpx.AsyncClient.request (flags left unset are omitted)."""
        kwargs: dict[str, Any] = {"headers": self.headers, "content": self.body}
        for name in ("params", "cookies", "follow_redirects", "extensions"):
            value = getattr(self, name)
            if value is not None:
                kwargs[name] = value
        return kwargs


class FetchResponse(BaseModel):
    """Normalized response envelope.

    is_error is derived once from the status code when the response is parsed
    and is never recomputed; response interceptors may flip it. config stays
    None until the response chain starts (see attach_config).
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    status: int = Field(description="HTTP status code")
    headers: httpx.Headers = Field(
        default_factory=httpx.Headers, description="Response headers (case-insensitive)"
    )
    body: Any = Field(default=None, description="Parsed JSON value, or raw text")
    is_error: bool = Field(description="True unless the status was 2xx")
    config: RequestConfig | None = Field(
        default=None, description="The finalized request that produced this response"
    )

    @field_validator("headers", mode="before")
    @classmethod
    def normalize_headers(cls, v: Any) -> httpx.Headers:
        return _coerce_headers(v)

    def attach_config(self, config: RequestConfig) -> None:
        """Record the request that produced this response. Allowed once."""
        if self.config is not None:
            raise SoFetchError("config is already attached to this response")
        self.config = config


RequestInterceptor = Callable[
    [RequestConfig], Union[RequestConfig, Awaitable[RequestConfig]]
]
ResponseInterceptor = Callable[
    [FetchResponse], Union[FetchResponse, Awaitable[FetchResponse]]
]


# =============================================================================
# Settings Models
# =============================================================================


class ClientSettings(BaseModel):
    """Settings file structure used to assemble a client and its interceptors."""

    model_config = ConfigDict(extra="forbid")

    root_url: str = Field(default="", description="Base URL prefixed to every path")
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Headers added to requests that don't set them (supports ${NAME} and ${NAME:-fallback})",
    )
    bearer_token: str | None = Field(
        default=None, description="Token sent as 'Authorization: Bearer ...'"
    )
    unwrap_key: str | None = Field(
        default=None, description="Replace JSON object bodies with body[unwrap_key]"
    )
    error_key: str | None = Field(
        default=None, description="Flag responses whose JSON body has this key as errors"
    )
    log_traffic: bool = Field(default=False, description="Log requests and responses")
