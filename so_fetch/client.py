"""Client - Runs requests through interceptor chains and an httpx transport.

Every call goes through SoFetch.fetch:

    build RequestConfig -> request interceptors -> transport -> parse
        -> attach config -> response interceptors -> return or raise

The verb helpers (get/post/put/patch/delete) only shape arguments for fetch.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping, Sequence

import httpx

from so_fetch.config_loader import build_interceptors
from so_fetch.errors import ResponseError
from so_fetch.models import (
    ClientSettings,
    FetchResponse,
    RequestConfig,
    RequestInterceptor,
    ResponseInterceptor,
)
from so_fetch.pipeline import run_interceptors
from so_fetch.response_parser import JSON_MEDIA_TYPE, parse_response


def _empty_root_url() -> str:
    return ""


class SoFetch:
    """HTTP client with request and response interceptor chains.

    Usage:
        client = SoFetch(
            request_interceptors=[bearer_token(get_token)],
            response_interceptors=[unwrap_body("data")],
            root_url=lambda: settings.api_url,
        )
        try:
            response = await client.get("/widgets")
        finally:
            await client.aclose()

    Or with an async context manager:
        async with SoFetch(root_url=lambda: "https://api.example.com") as client:
            response = await client.post("/widgets", {"name": "w"})

    A failed response (is_error still set after the response chain) raises
    ResponseError carrying the envelope. The client keeps no per-call state,
    so concurrent calls on one instance are independent.
    """

    def __init__(
        self,
        request_interceptors: Sequence[RequestInterceptor] = (),
        response_interceptors: Sequence[ResponseInterceptor] = (),
        root_url: Callable[[], str] = _empty_root_url,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            request_interceptors: Applied to every outgoing RequestConfig, in order.
            response_interceptors: Applied to every FetchResponse, in order.
            root_url: Zero-argument callable returning the base URL. Called on
                      every request so the base URL can change at runtime.
            http_client: Transport to use. If None, an httpx.AsyncClient is
                         created and closed by aclose(); an injected client is
                         left for its owner to close.
        """
        self.request_interceptors = list(request_interceptors)
        self.response_interceptors = list(response_interceptors)
        self.root_url = root_url
        self._owns_http_client = http_client is None
        self._http_client = http_client if http_client is not None else httpx.AsyncClient()

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings,
        http_client: httpx.AsyncClient | None = None,
    ) -> "SoFetch":
        """Build a client with the stock interceptors described by settings.

        The root URL is read from settings on every call, so assigning
        settings.root_url later redirects subsequent requests.
        """
        request_chain, response_chain = build_interceptors(settings)
        return cls(
            request_interceptors=request_chain,
            response_interceptors=response_chain,
            root_url=lambda: settings.root_url,
            http_client=http_client,
        )

    async def __aenter__(self) -> "SoFetch":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying httpx client if this instance created it."""
        if self._owns_http_client:
            await self._http_client.aclose()

    # -------------------------------------------------------------------------
    # Pipeline stages
    # -------------------------------------------------------------------------

    async def apply_request_interceptors(self, config: RequestConfig) -> RequestConfig:
        """Run the request chain over a shallow copy of config."""
        return await run_interceptors(
            config.model_copy(), self.request_interceptors, RequestConfig
        )

    async def apply_response_interceptors(
        self,
        response: FetchResponse,
        config: RequestConfig,
    ) -> FetchResponse:
        """Attach config to response, then run the response chain."""
        response.attach_config(config)
        return await run_interceptors(response, self.response_interceptors, FetchResponse)

    # -------------------------------------------------------------------------
    # Core operation
    # -------------------------------------------------------------------------

    def _build_config(
        self,
        url: str | Mapping[str, Any],
        options: Mapping[str, Any] | None,
    ) -> RequestConfig:
        """Normalize both call shapes into the initial RequestConfig."""
        if isinstance(url, Mapping):
            merged = dict(url)
            if options:
                merged.update(options)
            if "url" not in merged:
                raise TypeError("fetch() options must include 'url' when no path is given")
            path = merged.pop("url")
        else:
            merged = dict(options or {})
            # A path argument always wins over an options url
            merged.pop("url", None)
            path = url

        return RequestConfig.model_validate({
            "method": "GET",
            **merged,
            "headers": httpx.Headers(merged.get("headers") or {}),
            "url": self.root_url() + path,
        })

    async def fetch(
        self,
        url: str | Mapping[str, Any],
        options: Mapping[str, Any] | None = None,
    ) -> FetchResponse:
        """Send a request through both interceptor chains.

        Args:
            url: Path appended to the root URL, or a mapping of options that
                 carries its own 'url' key.
            options: RequestConfig fields (method, headers, body, params, ...).

        Returns:
            The final FetchResponse when it is not flagged as an error.

        Raises:
            ResponseError: If the final envelope has is_error set.
            httpx.HTTPError: If the transport fails (not wrapped, not retried).
            Exception: Anything an interceptor raises.
        """
        config = await self.apply_request_interceptors(self._build_config(url, options))

        http_response = await self._http_client.request(
            config.method, config.url, **config.transport_kwargs()
        )

        response = parse_response(http_response)
        response = await self.apply_response_interceptors(response, config)

        if response.is_error:
            raise ResponseError(response)
        return response

    # -------------------------------------------------------------------------
    # Verb helpers
    # -------------------------------------------------------------------------

    def _body_options(
        self,
        method: str,
        body: Any,
        options: Mapping[str, Any] | None,
    ) -> dict[str, Any]:
        """Options for a verb with an optional JSON body.

        Content-Type is only set when a body is supplied.
        """
        merged = dict(options or {})
        headers = httpx.Headers(merged.get("headers") or {})
        merged["method"] = method
        if body is not None:
            headers["Content-Type"] = JSON_MEDIA_TYPE
            merged["body"] = json.dumps(body)
        merged["headers"] = headers
        return merged

    async def get(self, url: str, options: Mapping[str, Any] | None = None) -> FetchResponse:
        merged = dict(options or {})
        merged["method"] = "GET"
        return await self.fetch(url, merged)

    async def post(
        self, url: str, body: Any = None, options: Mapping[str, Any] | None = None
    ) -> FetchResponse:
        return await self.fetch(url, self._body_options("POST", body, options))

    async def put(
        self, url: str, body: Any = None, options: Mapping[str, Any] | None = None
    ) -> FetchResponse:
        return await self.fetch(url, self._body_options("PUT", body, options))

    async def patch(
        self, url: str, body: Any = None, options: Mapping[str, Any] | None = None
    ) -> FetchResponse:
        return await self.fetch(url, self._body_options("PATCH", body, options))

    async def delete(
        self, url: str, body: Any = None, options: Mapping[str, Any] | None = None
    ) -> FetchResponse:
        return await self.fetch(url, self._body_options("DELETE", body, options))
