"""
Protocol package that centralizes constants, frame codecs, wire models and
validation helpers for the debug-menu client.
"""

from .channels import ChannelType, join_channel, normalize_channel
from .constants import API_VERSION, ENCODING, INTERNAL_API_CHANNEL, MAX_CHANNEL_BYTES
from .errors import DecodeError, EncodeError, ErrorCode, ProtocolError
from .framing import decode_binary, decode_json, encode_binary, encode_channel, encode_handshake, encode_json
from .messages import (
    ApiSchema,
    BinaryMessage,
    ChannelSchema,
    CreateInstanceRequest,
    JsonMessage,
    PayloadSchema,
    PropertySchema,
    RunningInstance,
)
from .validator import load_schema, validate_envelope, validate_metadata

__all__ = [
    "ChannelType",
    "join_channel",
    "normalize_channel",
    "API_VERSION",
    "ENCODING",
    "INTERNAL_API_CHANNEL",
    "MAX_CHANNEL_BYTES",
    "DecodeError",
    "EncodeError",
    "ErrorCode",
    "ProtocolError",
    "encode_json",
    "decode_json",
    "encode_channel",
    "encode_binary",
    "decode_binary",
    "encode_handshake",
    "ApiSchema",
    "BinaryMessage",
    "ChannelSchema",
    "CreateInstanceRequest",
    "JsonMessage",
    "PayloadSchema",
    "PropertySchema",
    "RunningInstance",
    "load_schema",
    "validate_envelope",
    "validate_metadata",
]
