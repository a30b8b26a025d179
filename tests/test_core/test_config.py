"""Tests for core/config.py."""

from __future__ import annotations

import json

import pytest

from splitbill.core.config import (
    CONFIG_ENV,
    URL_ENV,
    default_config,
    find_config_path,
    load_config,
    merge_config,
    serialize_config,
    server_url,
    validate_config,
)


class TestDefaults:
    def test_default_config_is_valid(self):
        assert validate_config(default_config()) == []

    def test_serialize_is_canonical(self):
        text = serialize_config(default_config())
        assert text.endswith("\n")
        assert json.loads(text) == default_config()
        assert text == json.dumps(default_config(), sort_keys=True, indent=2) + "\n"

    def test_default_values(self):
        config = default_config()
        assert config["debounce_ms"] == 500
        assert config["server"] == {"host": "127.0.0.1", "port": 9810}


class TestValidation:
    def test_merge_overlays_nested_server(self):
        config = merge_config({"server": {"port": 1234}, "debounce_ms": 100})
        assert config["server"] == {"host": "127.0.0.1", "port": 1234}
        assert config["debounce_ms"] == 100
        assert config["request_timeout"] == 10.0

    @pytest.mark.parametrize(
        "raw, fragment",
        [
            ({"server": {"port": 70000}}, "server.port"),
            ({"server": {"port": True}}, "server.port"),
            ({"server": {"host": ""}}, "server.host"),
            ({"debounce_ms": -1}, "debounce_ms"),
            ({"debounce_ms": 1.5}, "debounce_ms"),
            ({"request_timeout": 0}, "request_timeout"),
        ],
    )
    def test_invalid_values(self, raw, fragment):
        errors = validate_config(merge_config(raw))
        assert any(fragment in e for e in errors)

    def test_server_must_be_object(self):
        assert validate_config({"server": "nope"}) == ["server must be an object"]


class TestLoading:
    def test_none_gives_defaults(self):
        assert load_config(None) == default_config()

    def test_load_partial_file(self, tmp_path):
        path = tmp_path / "splitbill.json"
        path.write_text(json.dumps({"debounce_ms": 250}))
        assert load_config(path)["debounce_ms"] == 250

    def test_load_invalid_json(self, tmp_path):
        path = tmp_path / "splitbill.json"
        path.write_text("{nope")
        with pytest.raises(ValueError, match="Invalid JSON"):
            load_config(path)

    def test_load_non_object(self, tmp_path):
        path = tmp_path / "splitbill.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError, match="JSON object"):
            load_config(path)

    def test_load_invalid_values(self, tmp_path):
        path = tmp_path / "splitbill.json"
        path.write_text(json.dumps({"server": {"port": -5}}))
        with pytest.raises(ValueError, match="server.port"):
            load_config(path)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.json")


class TestDiscovery:
    def test_explicit_path_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV, str(tmp_path / "env.json"))
        assert find_config_path(tmp_path / "explicit.json") == tmp_path / "explicit.json"

    def test_env_path(self, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV, str(tmp_path / "env.json"))
        assert find_config_path() == tmp_path / "env.json"

    def test_cwd_file(self, isolated_cwd):
        (isolated_cwd / "splitbill.json").write_text("{}")
        assert find_config_path() == isolated_cwd / "splitbill.json"

    def test_nothing_configured(self, isolated_cwd):
        assert find_config_path() is None


class TestServerUrl:
    def test_built_from_config(self, monkeypatch):
        monkeypatch.delenv(URL_ENV, raising=False)
        config = merge_config({"server": {"host": "0.0.0.0", "port": 9999}})
        assert server_url(config) == "ws://0.0.0.0:9999"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv(URL_ENV, "ws://example:1")
        assert server_url(default_config()) == "ws://example:1"
