"""Tests for the SoFetch verb helpers (get/post/put/patch/delete)."""

import asyncio
import json

import pytest

BODY_VERBS = ["post", "put", "patch", "delete"]


class TestGet:
    def test_get_sends_get(self, client, handler):
        asyncio.run(client.get("/w"))
        assert handler.last.method == "GET"
        assert handler.last.content == b""

    def test_get_forces_method(self, client, handler):
        asyncio.run(client.get("/w", {"method": "POST"}))
        assert handler.last.method == "GET"

    def test_get_passes_headers(self, client, handler):
        asyncio.run(client.get("/w", {"headers": {"Accept": "text/csv"}}))
        assert handler.last.headers["accept"] == "text/csv"


class TestBodyVerbs:
    @pytest.mark.parametrize("verb", BODY_VERBS)
    def test_method_set(self, client, handler, verb):
        asyncio.run(getattr(client, verb)("/w"))
        assert handler.last.method == verb.upper()

    @pytest.mark.parametrize("verb", BODY_VERBS)
    def test_without_body_no_content_type(self, client, handler, verb):
        response = asyncio.run(getattr(client, verb)("/w"))
        assert "content-type" not in handler.last.headers
        assert "content-type" not in response.config.headers
        assert handler.last.content == b""

    @pytest.mark.parametrize("verb", BODY_VERBS)
    def test_with_body_serialized_as_json(self, client, handler, verb):
        response = asyncio.run(getattr(client, verb)("/w", {"name": "widget", "size": 3}))
        assert handler.last.headers["content-type"] == "application/json"
        assert json.loads(handler.last.content) == {"name": "widget", "size": 3}
        assert response.config.body == json.dumps({"name": "widget", "size": 3})

    def test_falsy_body_still_sent(self, client, handler):
        """An empty dict or list is a body; only None means no body."""
        asyncio.run(client.post("/w", []))
        assert handler.last.headers["content-type"] == "application/json"
        assert handler.last.content == b"[]"

    def test_caller_headers_merged(self, client, handler):
        asyncio.run(client.put("/w", {"a": 1}, {"headers": {"If-Match": "etag-1"}}))
        assert handler.last.headers["if-match"] == "etag-1"
        assert handler.last.headers["content-type"] == "application/json"

    def test_body_overrides_caller_content_type(self, client, handler):
        asyncio.run(client.patch("/w", {"a": 1}, {"headers": {"content-type": "text/plain"}}))
        assert handler.last.headers.get_list("content-type") == ["application/json"]

    def test_caller_content_type_kept_without_body(self, client, handler):
        asyncio.run(client.delete("/w", None, {"headers": {"Content-Type": "text/plain"}}))
        assert handler.last.headers["content-type"] == "text/plain"

    def test_caller_options_not_mutated(self, client):
        options = {"headers": {"X-A": "1"}}
        asyncio.run(client.post("/w", {"a": 1}, options))
        assert options == {"headers": {"X-A": "1"}}

    def test_method_forced_over_options(self, client, handler):
        asyncio.run(client.put("/w", None, {"method": "GET"}))
        assert handler.last.method == "PUT"
