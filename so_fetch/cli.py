"""CLI entry point for so-fetch.

Sends one request through a client assembled from a settings file and prints
the resulting envelope.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx

from so_fetch.client import SoFetch
from so_fetch.config_loader import ConfigError, load_settings
from so_fetch.errors import ResponseError
from so_fetch.models import ClientSettings, FetchResponse

EXIT_OK = 0
EXIT_RESPONSE_ERROR = 1
EXIT_USAGE_ERROR = 2
EXIT_TRANSPORT_ERROR = 3

METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")


def header_pair(value: str) -> tuple[str, str]:
    """Parse a 'Name: value' header argument."""
    name, sep, header_value = value.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(
            f"Invalid header format: '{value}'. Expected 'Name: value'"
        )
    return name.strip(), header_value.strip()


def json_value(value: str) -> Any:
    """Parse a --data argument as JSON."""
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"--data must be valid JSON: {e}") from e


@dataclass
class FetchArgs:
    """Parsed arguments for a single request."""

    method: str
    path: str
    config: Path | None = None
    root_url: str | None = None
    headers: list[tuple[str, str]] = field(default_factory=list)
    data: Any = None
    verbose: bool = False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="so-fetch",
        description="Send an HTTP request through a configured interceptor pipeline.",
    )
    parser.add_argument(
        "method",
        type=str.upper,
        choices=METHODS,
        help="HTTP method",
    )
    parser.add_argument("path", help="Request path, appended to the root URL")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML settings file (root_url, headers, bearer_token, ...)",
    )
    parser.add_argument(
        "--root-url",
        default=None,
        help="Base URL; overrides root_url from --config",
    )
    parser.add_argument(
        "-H",
        "--header",
        dest="headers",
        type=header_pair,
        action="append",
        default=[],
        metavar="'NAME: VALUE'",
        help="Extra request header (repeatable)",
    )
    parser.add_argument(
        "--data",
        type=json_value,
        default=None,
        help="JSON request body (POST/PUT/PATCH/DELETE; rejected for GET)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log requests and responses to stderr",
    )
    return parser


def parse_args(args: list[str] | None = None) -> FetchArgs:
    parser = build_parser()
    namespace = parser.parse_args(args)
    if namespace.method == "GET" and namespace.data is not None:
        parser.error("--data cannot be used with GET")
    return FetchArgs(
        method=namespace.method,
        path=namespace.path,
        config=namespace.config,
        root_url=namespace.root_url,
        headers=namespace.headers,
        data=namespace.data,
        verbose=namespace.verbose,
    )


def main() -> int:
    args = parse_args()
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)
    try:
        return asyncio.run(run_fetch(args))
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


def load_cli_settings(args: FetchArgs) -> ClientSettings:
    """Settings from --config (or defaults) with command-line overrides applied."""
    settings = load_settings(args.config) if args.config is not None else ClientSettings()
    if args.root_url is not None:
        settings.root_url = args.root_url
    if args.verbose:
        settings.log_traffic = True
    return settings


async def run_fetch(args: FetchArgs, http_client: httpx.AsyncClient | None = None) -> int:
    """Send the request described by args and print the outcome.

    Args:
        args: Parsed command-line arguments.
        http_client: Transport override (used by tests).

    Returns:
        Process exit code.
    """
    try:
        settings = load_cli_settings(args)
    except ConfigError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return EXIT_USAGE_ERROR

    options: dict[str, Any] = {"headers": dict(args.headers)} if args.headers else {}

    async with SoFetch.from_settings(settings, http_client=http_client) as client:
        try:
            if args.method == "GET":
                response = await client.get(args.path, options)
            else:
                send = getattr(client, args.method.lower())
                response = await send(args.path, args.data, options)
        except ResponseError as e:
            print_response(e.response)
            return EXIT_RESPONSE_ERROR
        except httpx.TransportError as e:
            print(f"Request failed: {e}", file=sys.stderr)
            return EXIT_TRANSPORT_ERROR

    print_response(response)
    return EXIT_OK


def print_response(response: FetchResponse) -> None:
    print(f"HTTP {response.status}{' (error)' if response.is_error else ''}")
    if isinstance(response.body, str):
        if response.body:
            print(response.body)
    else:
        print(json.dumps(response.body, indent=2, sort_keys=True))


if __name__ == "__main__":
    sys.exit(main())
