"""Debug-menu controls and the controllers that group them.

Handlers are registered explicitly: build a :class:`Controller` with the
controls it exposes and hand it to ``DebugMenuClient.register_controller``.
The channel of each control is ``"<controller path>/<control path>"``.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, ClassVar, Iterable, List, Optional

from debugmenu.protocol.channels import ChannelType, join_channel
from debugmenu.protocol.messages import ChannelSchema, PayloadSchema, PropertySchema


class ChannelHandler(ABC):
    channel_type: ClassVar[ChannelType]

    def __init__(self, path: str, callback: Callable[..., Any], *, name: Optional[str] = None) -> None:
        self.path = path.strip("/")
        self.callback = callback
        self.name = name or self.path

    def schema(self, category: Optional[str] = None) -> ChannelSchema:
        return ChannelSchema(
            name=self.name,
            category=category,
            type=self.channel_type.value,
            subscribe=self.subscribe_schema(),
            publish=self.publish_schema(),
        )

    def subscribe_schema(self) -> Optional[PayloadSchema]:
        """Shape of the state this control reports back, if any."""
        return None

    @abstractmethod
    def publish_schema(self) -> PayloadSchema:
        """Shape of the payload the menu sends when the control is used."""

    @abstractmethod
    async def handle_message(self, payload: Any) -> Any:
        """Run the callback; a non-``None`` result is sent back on the channel."""

    async def _invoke(self, *args: Any) -> Any:
        result = self.callback(*args)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _value(self, payload: Any, expected: type) -> Any:
        if not isinstance(payload, dict) or "value" not in payload:
            raise ValueError(f"{self.name}: payload must be an object with a 'value' field")
        value = payload["value"]
        if not isinstance(value, expected):
            raise ValueError(f"{self.name}: 'value' must be {expected.__name__}, got {type(value).__name__}")
        return value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path!r})"


def _value_payload(value_type: str, max_length: Optional[int] = None) -> PayloadSchema:
    return PayloadSchema(
        type="object",
        properties={"value": PropertySchema(type=value_type, max_length=max_length)},
    )


class Button(ChannelHandler):
    channel_type = ChannelType.BUTTON

    def publish_schema(self) -> PayloadSchema:
        return PayloadSchema(type="object", properties={})

    async def handle_message(self, payload: Any) -> Any:
        await self._invoke()
        return None


class Toggle(ChannelHandler):
    channel_type = ChannelType.TOGGLE

    def subscribe_schema(self) -> PayloadSchema:
        return _value_payload("boolean")

    def publish_schema(self) -> PayloadSchema:
        return _value_payload("boolean")

    async def handle_message(self, payload: Any) -> Any:
        result = await self._invoke(self._value(payload, bool))
        return None if result is None else {"value": bool(result)}


class TextField(ChannelHandler):
    channel_type = ChannelType.TEXT_FIELD

    def __init__(
        self, path: str, callback: Callable[..., Any], *, name: Optional[str] = None, max_length: int = 0
    ) -> None:
        super().__init__(path, callback, name=name)
        self.max_length = max_length

    def subscribe_schema(self) -> PayloadSchema:
        return _value_payload("string", self.max_length or None)

    def publish_schema(self) -> PayloadSchema:
        return _value_payload("string", self.max_length or None)

    async def handle_message(self, payload: Any) -> Any:
        value = self._value(payload, str)
        if self.max_length and len(value) > self.max_length:
            value = value[: self.max_length]
        result = await self._invoke(value)
        return None if result is None else {"value": str(result)}


@dataclass(frozen=True)
class Binding:
    """A handler bound to its full channel name."""

    channel: str
    category: str
    handler: ChannelHandler

    def schema(self) -> ChannelSchema:
        return self.handler.schema(self.category)


class Controller:
    """Groups controls under a common channel prefix."""

    def __init__(self, path: str, handlers: Iterable[ChannelHandler] = ()) -> None:
        self.path = path.strip("/")
        self.handlers: List[ChannelHandler] = list(handlers)

    def add(self, handler: ChannelHandler) -> "Controller":
        self.handlers.append(handler)
        return self

    def bindings(self) -> List[Binding]:
        return [Binding(join_channel(self.path, handler.path), self.path, handler) for handler in self.handlers]


__all__ = ["Binding", "Button", "ChannelHandler", "Controller", "TextField", "Toggle"]
