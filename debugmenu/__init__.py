"""
Auto-reconnecting debug-menu client: channel framing over one WebSocket,
handshake and reconnect handling, and explicit registration of menu controls.
"""

from .client import DebugMenuClient
from .config import CLIENT_CONFIG, ConfigError, load_config
from .core import ConnectionStatus, NetworkClient
from .features import Button, Controller, DebugMenuLogHandler, TextField, Toggle

__version__ = "0.1.0"

__all__ = [
    "CLIENT_CONFIG",
    "Button",
    "ConfigError",
    "ConnectionStatus",
    "Controller",
    "DebugMenuClient",
    "DebugMenuLogHandler",
    "NetworkClient",
    "TextField",
    "Toggle",
    "load_config",
]
