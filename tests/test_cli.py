"""Tests for so_fetch.cli.

Tests cover:
- Argument parsing (method normalization, headers, JSON data)
- Error cases (unknown method, malformed header, invalid JSON)
- run_fetch output and exit codes against a mock transport
"""

import asyncio
import json
from pathlib import Path

import httpx
import pytest

from so_fetch.cli import (
    EXIT_OK,
    EXIT_RESPONSE_ERROR,
    EXIT_TRANSPORT_ERROR,
    EXIT_USAGE_ERROR,
    FetchArgs,
    header_pair,
    load_cli_settings,
    parse_args,
    run_fetch,
)
from tests.http_fixtures import RecordingHandler, json_response, make_http_client, text_response


# =============================================================================
# Argument Parsing Tests
# =============================================================================


class TestParseArgs:
    def test_minimal(self):
        args = parse_args(["get", "/widgets"])
        assert args == FetchArgs(method="GET", path="/widgets")

    def test_all_options(self):
        args = parse_args([
            "POST", "/widgets",
            "--config", "so-fetch.yaml",
            "--root-url", "http://api.test",
            "-H", "X-A: 1",
            "--header", "X-B:2",
            "--data", '{"name": "w"}',
            "--verbose",
        ])
        assert args.method == "POST"
        assert args.config == Path("so-fetch.yaml")
        assert args.root_url == "http://api.test"
        assert args.headers == [("X-A", "1"), ("X-B", "2")]
        assert args.data == {"name": "w"}
        assert args.verbose is True

    def test_unknown_method(self):
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["TRACE", "/"])
        assert exc_info.value.code == 2

    def test_invalid_json_data(self):
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["POST", "/", "--data", "{oops"])
        assert exc_info.value.code == 2

    def test_data_rejected_for_get(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["GET", "/widgets", "--data", "{\"a\": 1}"])
        assert exc_info.value.code == 2
        assert "--data cannot be used with GET" in capsys.readouterr().err

    def test_header_pair_keeps_colons_in_value(self):
        assert header_pair("Referer: http://x.test/a") == ("Referer", "http://x.test/a")

    def test_header_pair_requires_colon(self):
        import argparse
        with pytest.raises(argparse.ArgumentTypeError, match="Expected 'Name: value'"):
            header_pair("no-colon")


class TestLoadCliSettings:
    def test_root_url_override(self, tmp_path):
        config = tmp_path / "c.yaml"
        config.write_text("root_url: http://from-file.test\n", encoding="utf-8")
        args = FetchArgs(method="GET", path="/", config=config, root_url="http://cli.test")
        assert load_cli_settings(args).root_url == "http://cli.test"

    def test_verbose_enables_traffic_logging(self):
        args = FetchArgs(method="GET", path="/", verbose=True)
        assert load_cli_settings(args).log_traffic is True


# =============================================================================
# run_fetch Tests
# =============================================================================


class TestRunFetch:
    def test_success_prints_json(self, capsys):
        handler = RecordingHandler(json_response(200, {"id": 1}))
        args = FetchArgs(method="GET", path="/items/1", root_url="http://api.test")

        code = asyncio.run(run_fetch(args, http_client=make_http_client(handler)))

        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert out.startswith("HTTP 200\n")
        assert json.loads(out.split("\n", 1)[1]) == {"id": 1}
        assert str(handler.last.url) == "http://api.test/items/1"

    def test_body_and_headers_sent(self):
        handler = RecordingHandler()
        args = FetchArgs(
            method="PUT",
            path="/items/1",
            root_url="http://api.test",
            headers=[("If-Match", "e1")],
            data={"name": "w"},
        )
        asyncio.run(run_fetch(args, http_client=make_http_client(handler)))

        assert handler.last.method == "PUT"
        assert handler.last.headers["if-match"] == "e1"
        assert json.loads(handler.last.content) == {"name": "w"}

    def test_error_status_exit_code(self, capsys):
        handler = RecordingHandler(text_response(404, "not here"))
        args = FetchArgs(method="GET", path="/nope", root_url="http://api.test")

        code = asyncio.run(run_fetch(args, http_client=make_http_client(handler)))

        assert code == EXIT_RESPONSE_ERROR
        assert capsys.readouterr().out == "HTTP 404 (error)\nnot here\n"

    def test_transport_error_exit_code(self, capsys):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        args = FetchArgs(method="GET", path="/", root_url="http://api.test")
        code = asyncio.run(run_fetch(args, http_client=make_http_client(refuse)))

        assert code == EXIT_TRANSPORT_ERROR
        assert "Request failed: refused" in capsys.readouterr().err

    def test_config_error_exit_code(self, tmp_path, capsys):
        args = FetchArgs(method="GET", path="/", config=tmp_path / "missing.yaml")
        code = asyncio.run(run_fetch(args, http_client=make_http_client(RecordingHandler())))

        assert code == EXIT_USAGE_ERROR
        assert "Error loading config" in capsys.readouterr().err
