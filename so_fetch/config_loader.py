"""Config Loader - Loads client settings and assembles interceptor chains.

Settings are YAML. Every string value may reference the environment as
${NAME} (must be set) or ${NAME:-fallback}, so tokens and
environment-specific URLs can stay out of the file.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from so_fetch.errors import SoFetchError
from so_fetch.interceptors import (
    bearer_token,
    default_headers,
    flag_error_body,
    log_request,
    log_response,
    unwrap_body,
)
from so_fetch.models import ClientSettings, RequestInterceptor, ResponseInterceptor


class ConfigError(SoFetchError):
    """Raised when configuration loading fails."""


_ENV_VAR_PATTERN = re.compile(
    r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)"
    r"(?::-(?P<fallback>[^}]*))?\}"
)


def load_settings(config_path: Path) -> ClientSettings:
    """Load client settings from YAML, expanding environment references."""
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}") from e

    # An empty file means "all defaults"
    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ConfigError("Config file must be a YAML mapping")

    raw_config = _expand_env(raw_config)

    try:
        return ClientSettings.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid config structure: {e}") from e


def build_interceptors(
    settings: ClientSettings,
) -> tuple[list[RequestInterceptor], list[ResponseInterceptor]]:
    """Build (request_chain, response_chain) from settings.

    Order: default headers, bearer token, request log; then response log,
    error flagging, unwrapping. Errors are flagged before unwrapping so the
    error key is checked on the full payload.
    """
    request_chain: list[RequestInterceptor] = []
    response_chain: list[ResponseInterceptor] = []

    if settings.headers:
        request_chain.append(default_headers(settings.headers))
    if settings.bearer_token:
        request_chain.append(bearer_token(settings.bearer_token))
    if settings.log_traffic:
        request_chain.append(log_request())
        response_chain.append(log_response())
    if settings.error_key:
        response_chain.append(flag_error_body(settings.error_key))
    if settings.unwrap_key:
        response_chain.append(unwrap_body(settings.unwrap_key))

    return request_chain, response_chain


def _expand_env(value: Any) -> Any:
    """Expand environment references in every string nested in value."""
    if isinstance(value, dict):
        return {key: _expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand_env(item) for item in value]
    if not isinstance(value, str):
        return value
    return _ENV_VAR_PATTERN.sub(_env_replacement, value)


def _env_replacement(match: re.Match) -> str:
    """Value for one ${NAME} or ${NAME:-fallback} reference."""
    name, fallback = match.group("name"), match.group("fallback")
    resolved = os.environ.get(name, fallback)
    if resolved is None:
        raise ConfigError(
            f"Environment variable '{name}' is not set "
            f"(use ${{{name}:-value}} to give a fallback)"
        )
    return resolved
