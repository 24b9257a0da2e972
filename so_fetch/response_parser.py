"""Response Parser - Converts httpx responses into FetchResponse envelopes.

Body decoding is chosen from the Content-Type header:
  application/json -> parsed JSON value
  anything else    -> raw text (possibly empty)
A JSON body that fails to decode falls back to raw text; decode errors never
leave this module.
"""

from __future__ import annotations

import json

import httpx

from so_fetch.models import FetchResponse

JSON_MEDIA_TYPE = "application/json"


def is_success_status(status: int) -> bool:
    return 200 <= status < 300


def parse_response(response: httpx.Response) -> FetchResponse:
    """Build a FetchResponse from a (fully read) httpx response.

    Args:
        response: Response returned by the transport. Not modified.

    Returns:
        FetchResponse with is_error set from the status code band.
    """
    text = response.text
    body: object = text

    content_type = response.headers.get("content-type", "")
    if JSON_MEDIA_TYPE in content_type.lower():
        try:
            body = json.loads(text)
        except (ValueError, RecursionError):
            # Malformed, empty or too deeply nested JSON - keep the text
            body = text

    return FetchResponse(
        status=response.status_code,
        headers=httpx.Headers(response.headers),
        body=body,
        is_error=not is_success_status(response.status_code),
    )
