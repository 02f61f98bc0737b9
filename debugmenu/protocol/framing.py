"""Encoding and decoding of channel frames.

Two frame kinds travel on the connection:

* text frames carry ``{"channel": <str>, "payload": <any>}`` as UTF-8 JSON;
* binary frames carry ``[1-byte channel length][channel utf-8][payload]``.

Encoders raise :class:`EncodeError` for caller mistakes, decoders raise
:class:`DecodeError` for frames that must be dropped.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Tuple, Union

from .constants import ENCODING, MAX_CHANNEL_BYTES
from .errors import DecodeError, EncodeError, ErrorCode
from .messages import BinaryMessage, JsonMessage
from .validator import validate_envelope, validate_metadata

Buffer = Union[bytes, bytearray, memoryview]


def _dumps(document: Any) -> bytes:
    try:
        json_str = json.dumps(document, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise EncodeError(ErrorCode.ENCODE_FAILED, f"Encode failed: {exc}") from exc
    return json_str.encode(ENCODING)


def encode_json(channel: str, payload: Any) -> bytes:
    """Encode a structured message into text frame bytes."""
    return _dumps({"channel": channel, "payload": payload})


def decode_json(frame: Buffer) -> JsonMessage:
    """Decode a text frame into a :class:`JsonMessage`."""
    try:
        document = json.loads(str(frame, ENCODING))
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
        raise DecodeError(ErrorCode.MALFORMED_JSON, f"Decode failed: {exc}") from exc
    validate_envelope(document)
    return JsonMessage(channel=document["channel"], payload=document.get("payload"))


def encode_channel(channel: str) -> bytes:
    channel_bytes = channel.encode(ENCODING)
    if len(channel_bytes) > MAX_CHANNEL_BYTES:
        raise EncodeError(
            ErrorCode.CHANNEL_TOO_LONG,
            f"Channel name too long. Length is {len(channel_bytes)}, max is {MAX_CHANNEL_BYTES}.",
        )
    return channel_bytes


def encode_binary(channel: str, payload: Buffer, offset: int = 0, length: Optional[int] = None) -> bytes:
    """Encode ``payload[offset:offset + length]`` into binary frame bytes."""
    channel_bytes = encode_channel(channel)
    view = memoryview(payload).cast("B")
    if length is None:
        length = len(view) - offset
    if offset < 0 or length < 0 or offset + length > len(view):
        raise EncodeError(
            ErrorCode.ENCODE_FAILED,
            f"Payload slice [{offset}:{offset + length}] out of range for {len(view)} bytes",
        )
    return b"".join((bytes((len(channel_bytes),)), channel_bytes, view[offset : offset + length]))


def decode_binary(frame: Buffer) -> BinaryMessage:
    """Decode a binary frame; the payload is a view into ``frame``, not a copy."""
    if not isinstance(frame, memoryview):
        frame = memoryview(frame)
    if len(frame) < 1:
        raise DecodeError(ErrorCode.TRUNCATED_FRAME, "Empty binary frame")
    channel_length = frame[0]
    if len(frame) < 1 + channel_length:
        raise DecodeError(
            ErrorCode.TRUNCATED_FRAME,
            f"Binary frame truncated: channel needs {channel_length} bytes, got {len(frame) - 1}",
        )
    try:
        channel = str(frame[1 : 1 + channel_length], ENCODING)
    except UnicodeDecodeError as exc:
        raise DecodeError(ErrorCode.INVALID_CHANNEL, f"Channel is not valid UTF-8: {exc}") from exc
    return BinaryMessage(channel=channel, payload=frame[1 + channel_length :])


def encode_handshake(token: str, metadata: Dict[str, str]) -> Tuple[bytes, bytes]:
    """Return the token frame and the metadata frame, in sending order."""
    validate_metadata(metadata)
    return token.encode(ENCODING), _dumps(metadata)


__all__ = [
    "encode_json",
    "decode_json",
    "encode_channel",
    "encode_binary",
    "decode_binary",
    "encode_handshake",
]
