from __future__ import annotations

import logging
from contextlib import suppress
from dataclasses import dataclass
from enum import StrEnum
from typing import AsyncGenerator, Callable, Optional, Protocol, Union

from websockets.asyncio.client import ClientConnection, connect
from websockets.protocol import State

from debugmenu.protocol.constants import ENCODING

logger = logging.getLogger(__name__)


class MessageType(StrEnum):
    TEXT = "text"
    BINARY = "binary"


@dataclass(frozen=True)
class ReceiveResult:
    """Outcome of one physical read into the caller's buffer."""

    message_type: MessageType
    count: int
    end_of_message: bool


class Transport(Protocol):
    """Duplex message connection; one read and one write may run concurrently."""

    @property
    def is_open(self) -> bool: ...

    async def connect(self, url: str) -> None: ...

    async def send(self, data: bytes, message_type: MessageType) -> None: ...

    async def receive(self, buffer: memoryview) -> ReceiveResult: ...

    async def close(self) -> None: ...


TransportFactory = Callable[[], Transport]


class WebSocketTransport:
    """WebSocket connection that reads messages fragment by fragment into a fixed buffer."""

    def __init__(self, open_timeout: Optional[float] = 10.0) -> None:
        self.open_timeout = open_timeout
        self._connection: Optional[ClientConnection] = None
        self._fragments: Optional[AsyncGenerator[Union[str, bytes], None]] = None
        self._fragment: memoryview = memoryview(b"")
        self._message_type = MessageType.BINARY

    @property
    def is_open(self) -> bool:
        return self._connection is not None and self._connection.state is State.OPEN

    async def connect(self, url: str) -> None:
        self._connection = await connect(url, open_timeout=self.open_timeout, max_size=None)
        logger.debug("WebSocket opened to %s", url)

    async def send(self, data: bytes, message_type: MessageType) -> None:
        if self._connection is None:
            raise ConnectionError("WebSocket is not connected")
        await self._connection.send(data, text=message_type is MessageType.TEXT)

    async def receive(self, buffer: memoryview) -> ReceiveResult:
        if self._connection is None:
            raise ConnectionError("WebSocket is not connected")
        if self._fragments is None:
            self._fragments = self._connection.recv_streaming()
            first = await anext(self._fragments)
            self._message_type = MessageType.TEXT if isinstance(first, str) else MessageType.BINARY
            self._fragment = self._as_view(first)

        count = min(len(buffer), len(self._fragment))
        buffer[:count] = self._fragment[:count]
        self._fragment = self._fragment[count:]

        end_of_message = False
        if not self._fragment:
            # End of message is only known once the fragment iterator is exhausted.
            try:
                self._fragment = self._as_view(await anext(self._fragments))
            except StopAsyncIteration:
                self._fragments = None
                end_of_message = True
        return ReceiveResult(self._message_type, count, end_of_message)

    async def close(self) -> None:
        connection, self._connection = self._connection, None
        fragments, self._fragments = self._fragments, None
        if connection is not None:
            await connection.close()
            logger.debug("WebSocket closed")
        if fragments is not None:
            # a concurrent receive may still be suspended inside the generator
            with suppress(RuntimeError):
                await fragments.aclose()

    @staticmethod
    def _as_view(fragment: Union[str, bytes]) -> memoryview:
        if isinstance(fragment, str):
            fragment = fragment.encode(ENCODING)
        return memoryview(fragment)


__all__ = ["MessageType", "ReceiveResult", "Transport", "TransportFactory", "WebSocketTransport"]
