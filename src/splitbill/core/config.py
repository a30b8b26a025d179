"""Default config generation, validation, and discovery.

The config file is optional.  When present it is plain JSON with the same
shape as :func:`default_config`; missing keys fall back to the defaults.
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import TypedDict

CONFIG_FILENAME = "splitbill.json"
CONFIG_ENV = "SPLITBILL_CONFIG"
URL_ENV = "SPLITBILL_URL"


class ServerConfig(TypedDict, total=False):
    host: str
    port: int


class SplitbillConfig(TypedDict, total=False):
    schema_version: int
    server: ServerConfig
    debounce_ms: int
    request_timeout: float


def default_config() -> SplitbillConfig:
    """Return the default configuration.

    The returned dict, when serialized with :func:`serialize_config`,
    produces the canonical default ``splitbill.json``.
    """
    return {
        "schema_version": 1,
        "server": {
            "host": "127.0.0.1",
            "port": 9810,
        },
        "debounce_ms": 500,
        "request_timeout": 10.0,
    }


def serialize_config(config: SplitbillConfig | dict[str, object]) -> str:
    """Serialize a config dict to the canonical JSON format."""
    return json.dumps(config, sort_keys=True, indent=2) + "\n"


def merge_config(raw: dict) -> SplitbillConfig:
    """Overlay *raw* on the defaults.  Nested ``server`` keys merge individually."""
    config = copy.deepcopy(default_config())
    for key, value in raw.items():
        if key == "server" and isinstance(value, dict):
            config["server"].update(value)
        else:
            config[key] = value  # type: ignore[literal-required]
    return config


def validate_config(config: dict) -> list[str]:
    """Return a list of human-readable problems.  Empty means valid."""
    errors: list[str] = []

    server = config.get("server", {})
    if not isinstance(server, dict):
        return ["server must be an object"]

    host = server.get("host")
    if not isinstance(host, str) or not host:
        errors.append("server.host must be a non-empty string")

    port = server.get("port")
    if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= 65535:
        errors.append("server.port must be an integer between 0 and 65535")

    debounce = config.get("debounce_ms")
    if isinstance(debounce, bool) or not isinstance(debounce, int) or debounce < 0:
        errors.append("debounce_ms must be a non-negative integer")

    timeout = config.get("request_timeout")
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        errors.append("request_timeout must be a positive number")

    return errors


def find_config_path(explicit: str | Path | None = None) -> Path | None:
    """Locate the config file.

    Order: *explicit* path, then ``$SPLITBILL_CONFIG``, then
    ``./splitbill.json`` if it exists.  Returns ``None`` when nothing is
    configured.
    """
    if explicit:
        return Path(explicit)
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return Path(env_path)
    local = Path.cwd() / CONFIG_FILENAME
    if local.is_file():
        return local
    return None


def load_config(path: Path | None) -> SplitbillConfig:
    """Load and validate the config at *path*, or the defaults if ``None``.

    Raises:
        ValueError: If the file is not valid JSON or fails validation.
        FileNotFoundError: If *path* does not exist.
    """
    if path is None:
        return default_config()

    try:
        raw = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from None
    if not isinstance(raw, dict):
        raise ValueError(f"Config in {path} must be a JSON object")

    config = merge_config(raw)
    errors = validate_config(config)
    if errors:
        raise ValueError(f"Invalid config {path}: " + "; ".join(errors))
    return config


def server_url(config: SplitbillConfig) -> str:
    """Return the client URL: ``$SPLITBILL_URL`` or one built from ``server``."""
    env_url = os.environ.get(URL_ENV)
    if env_url:
        return env_url
    server = config.get("server", {})
    return f"ws://{server.get('host', '127.0.0.1')}:{server.get('port', 9810)}"
