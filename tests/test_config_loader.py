"""Tests for request_service.config_loader.

Tests cover:
- YAML loading and structure validation
- ${ENV_VAR} substitution (nested, fallbacks, missing variables)
- Building a RequestService from config
"""

import asyncio
from pathlib import Path

import pytest

from request_service.config_loader import ConfigError, build_service, load_service_config
from request_service.models import ServiceConfig
from request_service.transport import HTTPXTransport
from tests.conftest import WIKTIONARY, RecordingHandler


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "service.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestLoadServiceConfig:
    def test_minimal(self, tmp_path: Path):
        config = load_service_config(_write(tmp_path, f"endpoint: {WIKTIONARY}\n"))

        assert config.endpoint == WIKTIONARY
        assert config.aliases == {}
        assert config.timeout == 30.0
        assert config.verify_ssl is True

    def test_full(self, tmp_path: Path):
        content = """
endpoint: https://api.example.com/v1
timeout: 5
verify_ssl: false
headers:
  X-Client: tests
aliases:
  get_item: GET /items/:id
  create_item: POST /items
"""
        config = load_service_config(_write(tmp_path, content))

        assert config.timeout == 5.0
        assert config.verify_ssl is False
        assert config.headers == {"X-Client": "tests"}
        assert config.aliases == {"get_item": "GET /items/:id", "create_item": "POST /items"}

    def test_env_var_substitution(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("API_TOKEN", "secret")
        monkeypatch.setenv("API_HOST", "api.example.com")
        content = """
endpoint: https://${API_HOST}/v1
headers:
  Authorization: Bearer ${API_TOKEN}
"""
        config = load_service_config(_write(tmp_path, content))

        assert config.endpoint == "https://api.example.com/v1"
        assert config.headers == {"Authorization": "Bearer secret"}

    def test_missing_env_var(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("MISSING_TOKEN", raising=False)
        path = _write(tmp_path, "endpoint: https://a.com\nheaders:\n  X-Key: ${MISSING_TOKEN}\n")

        with pytest.raises(ConfigError, match="MISSING_TOKEN"):
            load_service_config(path)

    def test_env_var_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("API_TIMEOUT", raising=False)
        monkeypatch.setenv("API_HOST", "api.example.com")
        content = "endpoint: https://${API_HOST:-localhost}/v1\ntimeout: ${API_TIMEOUT:-7.5}\n"
        config = load_service_config(_write(tmp_path, content))

        assert config.endpoint == "https://api.example.com/v1"
        assert config.timeout == 7.5

    def test_missing_env_var_names_location(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("MISSING_TOKEN", raising=False)
        content = "endpoint: https://a.com\naliases:\n  search: GET /${MISSING_TOKEN}\n"

        with pytest.raises(ConfigError, match="aliases.search"):
            load_service_config(_write(tmp_path, content))

    def test_accepts_str_path(self, tmp_path: Path):
        config = load_service_config(str(_write(tmp_path, f"endpoint: {WIKTIONARY}\n")))
        assert config.endpoint == WIKTIONARY

    def test_file_not_found(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_service_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_service_config(_write(tmp_path, "endpoint: [unclosed\n"))

    def test_not_a_mapping(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="mapping"):
            load_service_config(_write(tmp_path, "- a\n- b\n"))

    def test_missing_endpoint(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Invalid config structure"):
            load_service_config(_write(tmp_path, "timeout: 5\n"))

    def test_unknown_key(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Invalid config structure"):
            load_service_config(_write(tmp_path, f"endpoint: {WIKTIONARY}\nretries: 3\n"))


class TestBuildService:
    def test_with_handler(self):
        handler = RecordingHandler()
        config = ServiceConfig(endpoint=WIKTIONARY, aliases={"search": "GET /w"})
        service = build_service(config, handler)

        asyncio.run(service.api.search({"query": {"search": "example"}}))
        assert handler.last.url == "https://en.wiktionary.org/w?search=example"

    def test_default_handler_is_httpx_transport(self):
        service = build_service(ServiceConfig(endpoint=WIKTIONARY))
        try:
            assert isinstance(service.handler, HTTPXTransport)
        finally:
            asyncio.run(service.handler.aclose())

    def test_invalid_alias_name(self):
        config = ServiceConfig(endpoint=WIKTIONARY, aliases={"class": "GET /w"})
        with pytest.raises(ConfigError, match="Invalid alias"):
            build_service(config, RecordingHandler())
