"""Tests for `splitbill config` and top-level options."""

from __future__ import annotations

import json

from splitbill.cli.main import cli


def test_init_writes_defaults(cli_runner, isolated_cwd):
    result = cli_runner.invoke(cli, ["config", "init"])
    assert result.exit_code == 0, result.output
    written = json.loads((isolated_cwd / "splitbill.json").read_text())
    assert written == {
        "debounce_ms": 500,
        "request_timeout": 10.0,
        "server": {"host": "127.0.0.1", "port": 9810},
    }


def test_init_refuses_overwrite(cli_runner, isolated_cwd):
    (isolated_cwd / "splitbill.json").write_text("{}")
    result = cli_runner.invoke(cli, ["config", "init"])
    assert result.exit_code == 1
    assert "already exists" in result.output
    assert (isolated_cwd / "splitbill.json").read_text() == "{}"


def test_init_force(cli_runner, isolated_cwd):
    (isolated_cwd / "splitbill.json").write_text("{}")
    result = cli_runner.invoke(cli, ["config", "init", "--force"])
    assert result.exit_code == 0
    assert json.loads((isolated_cwd / "splitbill.json").read_text())["debounce_ms"] == 500


def test_init_custom_path(cli_runner, isolated_cwd):
    target = isolated_cwd / "conf" / "bill.json"
    target.parent.mkdir()
    result = cli_runner.invoke(cli, ["config", "init", "--path", str(target)])
    assert result.exit_code == 0
    assert target.is_file()


def test_show_defaults(cli_runner, isolated_cwd):
    result = cli_runner.invoke(cli, ["config", "show"])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["server"]["port"] == 9810


def test_show_merges_file(cli_runner, isolated_cwd):
    path = isolated_cwd / "custom.json"
    path.write_text(json.dumps({"debounce_ms": 250, "server": {"port": 9999}}))
    result = cli_runner.invoke(cli, ["--config", str(path), "config", "show"])
    assert result.exit_code == 0, result.output
    shown = json.loads(result.stdout)
    assert shown["debounce_ms"] == 250
    assert shown["server"] == {"host": "127.0.0.1", "port": 9999}


def test_show_from_env(cli_runner, isolated_cwd, monkeypatch):
    path = isolated_cwd / "env.json"
    path.write_text(json.dumps({"request_timeout": 2.5}))
    monkeypatch.setenv("SPLITBILL_CONFIG", str(path))
    result = cli_runner.invoke(cli, ["config", "show"])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["request_timeout"] == 2.5


def test_show_invalid_config(cli_runner, isolated_cwd):
    (isolated_cwd / "splitbill.json").write_text(json.dumps({"debounce_ms": -1}))
    result = cli_runner.invoke(cli, ["config", "show"])
    assert result.exit_code == 1
    assert "debounce_ms" in result.output


def test_version(cli_runner):
    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "splitbill" in result.output


def test_serve_rejects_bad_port(cli_runner, isolated_cwd):
    (isolated_cwd / "splitbill.json").write_text(json.dumps({"server": {"port": 70000}}))
    result = cli_runner.invoke(cli, ["serve"])
    assert result.exit_code == 1
    assert "port" in result.output
