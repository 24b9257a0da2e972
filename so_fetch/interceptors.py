"""Stock interceptors for common cross-cutting behaviour.

Each function here is a factory: it takes configuration and returns an
interceptor suitable for SoFetch(request_interceptors=...) or
SoFetch(response_interceptors=...). Interceptors mutate the object they are
given and return it.
"""

from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Mapping, Union

from so_fetch.models import FetchResponse, RequestConfig

logger = logging.getLogger(__name__)

TokenProvider = Union[str, Callable[[], Union[str, Awaitable[str]]]]


# =============================================================================
# Request interceptors
# =============================================================================


def bearer_token(
    provider: TokenProvider,
) -> Callable[[RequestConfig], Awaitable[RequestConfig]]:
    """Set 'Authorization: Bearer <token>' on every request.

    provider is either a fixed token or a callable (sync or async) consulted
    per request, so a refreshed token is picked up without rebuilding the client.
    """

    async def add_bearer_token(config: RequestConfig) -> RequestConfig:
        token = provider() if callable(provider) else provider
        if inspect.isawaitable(token):
            token = await token
        config.headers["Authorization"] = f"Bearer {token}"
        return config

    return add_bearer_token


def default_headers(headers: Mapping[str, str]) -> Callable[[RequestConfig], RequestConfig]:
    """Add headers the caller did not set. Caller-supplied values win."""
    defaults = dict(headers)

    def add_default_headers(config: RequestConfig) -> RequestConfig:
        for name, value in defaults.items():
            config.headers.setdefault(name, value)
        return config

    return add_default_headers


def rewrite_url(rewrite: Callable[[str], str]) -> Callable[[RequestConfig], RequestConfig]:
    """Replace the request URL with rewrite(url)."""

    def apply_url_rewrite(config: RequestConfig) -> RequestConfig:
        config.url = rewrite(config.url)
        return config

    return apply_url_rewrite


def log_request(
    log: logging.Logger | None = None,
    level: int = logging.DEBUG,
) -> Callable[[RequestConfig], RequestConfig]:
    """Log "-> METHOD URL" for each request and pass it on unchanged."""
    target = log or logger

    def log_outgoing_request(config: RequestConfig) -> RequestConfig:
        target.log(level, "-> %s %s", config.method, config.url)
        return config

    return log_outgoing_request


# =============================================================================
# Response interceptors
# =============================================================================


def unwrap_body(key: str = "data") -> Callable[[FetchResponse], FetchResponse]:
    """Replace a JSON object body with body[key] when the key is present.

    Bodies that are not objects, or lack the key, pass through untouched.
    """

    def unwrap_response_body(response: FetchResponse) -> FetchResponse:
        if isinstance(response.body, dict) and key in response.body:
            response.body = response.body[key]
        return response

    return unwrap_response_body


def flag_error_body(key: str = "error") -> Callable[[FetchResponse], FetchResponse]:
    """Mark a response as an error when its JSON object body has a truthy key.

    For APIs that answer 200 with an error payload. Never clears is_error.
    """

    def flag_error_response(response: FetchResponse) -> FetchResponse:
        if isinstance(response.body, dict) and response.body.get(key):
            response.is_error = True
        return response

    return flag_error_response


def log_response(
    log: logging.Logger | None = None,
    level: int = logging.DEBUG,
) -> Callable[[FetchResponse], FetchResponse]:
    """Log "<- METHOD URL STATUS" for each response and pass it on unchanged."""
    target = log or logger

    def log_incoming_response(response: FetchResponse) -> FetchResponse:
        method = response.config.method if response.config is not None else "?"
        url = response.config.url if response.config is not None else "?"
        target.log(
            level,
            "<- %s %s %d%s",
            method,
            url,
            response.status,
            " (error)" if response.is_error else "",
        )
        return response

    return log_incoming_response
