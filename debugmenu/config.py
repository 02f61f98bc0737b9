from __future__ import annotations

import logging
import os
from typing import Any, Dict
from urllib.parse import urlparse

from dotenv import load_dotenv

from debugmenu.protocol.constants import DEFAULT_RECEIVE_BUFFER_SIZE, DEFAULT_RECONNECT_DELAY, INSTANCE_PATH

DEFAULT_CONFIG: Dict[str, Any] = {
    "server_url": "http://localhost:5000",
    "token": "",
    "instance_path": INSTANCE_PATH,
    "reconnect_delay": DEFAULT_RECONNECT_DELAY,
    "receive_buffer_size": DEFAULT_RECEIVE_BUFFER_SIZE,
    "request_timeout": 10.0,
    "log_channel": "log",
    "log_level": "INFO",
}

CLIENT_CONFIG: Dict[str, Any] = DEFAULT_CONFIG.copy()


class ConfigError(Exception):
    """Raised when configuration values are invalid."""

    pass


def load_config(env_path: str = ".env") -> Dict[str, Any]:
    """Load client configuration from env file/environment variables."""
    if os.path.exists(env_path):
        load_dotenv(env_path)

    for key, default_value in DEFAULT_CONFIG.items():
        env_key = f"DEBUGMENU_{key.upper()}"
        value = os.getenv(env_key, default_value)
        CLIENT_CONFIG[key] = _coerce_type(value, type(default_value))

    _validate_config()
    logging.getLogger().setLevel(CLIENT_CONFIG["log_level"])
    return CLIENT_CONFIG


def _coerce_type(value: Any, target_type: type) -> Any:
    if isinstance(value, target_type):
        return value
    try:
        return target_type(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Cannot convert {value} to {target_type}") from exc


def _validate_config() -> None:
    if urlparse(CLIENT_CONFIG["server_url"]).scheme not in ("http", "https"):
        raise ConfigError("server_url must be an http(s) URL")
    if CLIENT_CONFIG["reconnect_delay"] < 0:
        raise ConfigError("reconnect_delay must not be negative")
    if CLIENT_CONFIG["receive_buffer_size"] <= 0:
        raise ConfigError("receive_buffer_size must be positive")
    if CLIENT_CONFIG["request_timeout"] <= 0:
        raise ConfigError("request_timeout must be positive")
    CLIENT_CONFIG["log_level"] = str(CLIENT_CONFIG["log_level"]).upper()
    if CLIENT_CONFIG["log_level"] not in logging.getLevelNamesMapping():
        raise ConfigError(f"Unknown log_level {CLIENT_CONFIG['log_level']}")


def get(key: str, default: Any = None) -> Any:
    return CLIENT_CONFIG.get(key, default)


__all__ = ["CLIENT_CONFIG", "DEFAULT_CONFIG", "ConfigError", "get", "load_config"]
