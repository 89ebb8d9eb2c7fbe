"""Config Loader - Loads a RequestService configuration from YAML.

Handles loading YAML config files with environment variable substitution and
building a ready-to-use service from the result.

Example config:

    endpoint: https://api.example.com/v1
    headers:
      Authorization: Bearer ${API_TOKEN}
    timeout: ${API_TIMEOUT:-10}
    aliases:
      get_item: GET /items/:id
      create_item: POST /items
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from request_service.models import ServiceConfig
from request_service.service import RequestHandler, RequestService
from request_service.transport import HTTPXTransport


class ConfigError(Exception):
    """Raised when configuration loading fails."""


# ${NAME} or ${NAME:-fallback}
_ENV_REFERENCE = re.compile(r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<fallback>[^}]*))?\}")


def load_service_config(config_path: str | Path) -> ServiceConfig:
    """Read a YAML service config, expand environment references, and validate it."""
    config_path = Path(config_path)
    if not config_path.is_file():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigError("Config file must be a YAML mapping")

    raw_config = _expand_env(raw_config)

    try:
        return ServiceConfig.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid config structure: {e}") from e


def build_service(config: ServiceConfig, handler: RequestHandler | None = None) -> RequestService:
    """Create a RequestService from config.

    Uses an HTTPXTransport built from the same config unless a handler is
    given. Invalid alias names surface as ConfigError.
    """
    try:
        service = RequestService(config.endpoint, handler, config.aliases)
    except ValueError as e:
        raise ConfigError(f"Invalid alias in config: {e}") from e

    if handler is None:
        service.use(HTTPXTransport.from_config(config))
    return service


def _expand_env(node: Any, where: str = "") -> Any:
    """Expand ${NAME} references in every string value of a parsed YAML tree.

    Mapping keys are left alone. An unset variable without a fallback raises
    ConfigError naming the config location that referenced it.
    """
    if isinstance(node, dict):
        return {key: _expand_env(value, f"{where}.{key}" if where else str(key)) for key, value in node.items()}
    if isinstance(node, list):
        return [_expand_env(item, f"{where}[{index}]") for index, item in enumerate(node)]
    if not isinstance(node, str):
        return node

    def lookup(match: re.Match) -> str:
        value = os.environ.get(match["name"], match["fallback"])
        if value is None:
            raise ConfigError(f"{where or 'config'}: environment variable '{match['name']}' is not set")
        return value

    return _ENV_REFERENCE.sub(lookup, node)
