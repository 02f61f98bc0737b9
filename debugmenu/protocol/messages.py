from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .constants import API_VERSION
from .errors import ErrorCode, ProtocolError


@dataclass(frozen=True)
class JsonMessage:
    """Structured message received on a channel."""

    channel: str
    payload: Any


@dataclass(frozen=True)
class BinaryMessage:
    """Raw message received on a channel.

    ``payload`` is a view into the receive buffer and is only valid while the
    receive callback runs. Copy it with ``bytes(message.payload)`` to keep it.
    """

    channel: str
    payload: memoryview


class WireModel(BaseModel):
    """Base for documents exchanged with the debug-menu service (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ProtocolError(ErrorCode.BOOTSTRAP_FAILED, f"{cls.__name__} validation failed: {exc}") from exc


class PropertySchema(WireModel):
    type: Optional[str] = None
    format: Optional[str] = None
    description: Optional[str] = None
    max_length: Optional[int] = None


class PayloadSchema(WireModel):
    type: Optional[str] = None
    properties: Optional[Dict[str, PropertySchema]] = None


class ChannelSchema(WireModel):
    name: Optional[str] = None
    category: Optional[str] = None
    type: Optional[str] = None
    subscribe: Optional[PayloadSchema] = None
    publish: Optional[PayloadSchema] = None


class ApiSchema(WireModel):
    """Schema document announced on the internal API channel."""

    debug_menu_api: Optional[str] = API_VERSION
    channels: Dict[str, ChannelSchema] = Field(default_factory=dict)


class CreateInstanceRequest(WireModel):
    token: str = ""
    metadata: Dict[str, str] = Field(default_factory=dict)


class RunningInstance(WireModel):
    """Instance record handed out by the service's HTTP API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str = ""
    device_id: Optional[str] = None
    websocket_url: Optional[str] = None
    connected_viewers: int = 0
    has_connected_instance: bool = False
    application_id: int = 0
