from __future__ import annotations

from enum import IntEnum


class ErrorCode(IntEnum):
    """Error codes carried by protocol exceptions."""

    CHANNEL_TOO_LONG = 1001
    ENCODE_FAILED = 1002
    INVALID_METADATA = 1003
    MALFORMED_JSON = 2001
    INVALID_ENVELOPE = 2002
    TRUNCATED_FRAME = 2003
    INVALID_CHANNEL = 2004
    TRANSPORT_FAILED = 3001
    BOOTSTRAP_FAILED = 3002


class ProtocolError(Exception):
    """Structured protocol exception carrying an error code + message."""

    def __init__(self, code: ErrorCode, message: str = "") -> None:
        self.code = code
        self.message = message
        super().__init__(f"{code.name} ({int(code)}): {message}")


class EncodeError(ProtocolError):
    """Outbound message could not be turned into a frame (caller error)."""


class DecodeError(ProtocolError):
    """Inbound frame could not be decoded; the frame is dropped."""


__all__ = ["ErrorCode", "ProtocolError", "EncodeError", "DecodeError"]
