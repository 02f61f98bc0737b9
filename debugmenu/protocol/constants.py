"""Protocol-wide constants for the debug-menu wire format."""

ENCODING = "utf-8"
API_VERSION = "1.0.0"
INTERNAL_API_CHANNEL = "__internal/api"
MAX_CHANNEL_BYTES = 255  # channel length travels in a single byte
DEFAULT_RECEIVE_BUFFER_SIZE = 4096 * 20
DEFAULT_RECONNECT_DELAY = 2.0  # seconds
INSTANCES_PATH = "/api/instances"
INSTANCE_PATH = "/instance"

__all__ = [
    "ENCODING",
    "API_VERSION",
    "INTERNAL_API_CHANNEL",
    "MAX_CHANNEL_BYTES",
    "DEFAULT_RECEIVE_BUFFER_SIZE",
    "DEFAULT_RECONNECT_DELAY",
    "INSTANCES_PATH",
    "INSTANCE_PATH",
]
