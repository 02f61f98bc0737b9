from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any, Dict, Optional, Union

from debugmenu.config import CLIENT_CONFIG
from debugmenu.core.assembler import ReceiveAssembler
from debugmenu.core.events import EventHook
from debugmenu.core.transport import MessageType, Transport, TransportFactory, WebSocketTransport
from debugmenu.protocol import framing
from debugmenu.protocol.constants import ENCODING, INTERNAL_API_CHANNEL
from debugmenu.protocol.errors import ErrorCode, ProtocolError
from debugmenu.protocol.framing import Buffer
from debugmenu.protocol.messages import ApiSchema, BinaryMessage, JsonMessage

logger = logging.getLogger(__name__)

ConnectedCallback = Callable[[], Union[None, Awaitable[None]]]


class ConnectionStatus(StrEnum):
    WAITING = "waiting"
    CONNECTING = "connecting"
    PERFORMING_HANDSHAKE = "performing_handshake"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class NetworkError(ProtocolError):
    """Transport level error surfaced to higher layers."""

    pass


def _network_error(exc: Exception) -> ProtocolError:
    if isinstance(exc, ProtocolError):
        return exc
    error = NetworkError(ErrorCode.TRANSPORT_FAILED, f"{type(exc).__name__}: {exc}")
    error.__cause__ = exc
    return error


class NetworkClient:
    """WebSocket client that handles reconnect, handshake, and channel framing.

    A single run loop (:meth:`run`, or :meth:`start` to spawn it as a task)
    owns the transport and the connection status. Sends may come from any
    task; they are serialised with a lock and silently dropped while the
    connection is down.
    """

    def __init__(
        self,
        url: str,
        token: str,
        metadata: Optional[Dict[str, str]] = None,
        connected_callback: Optional[ConnectedCallback] = None,
        *,
        config: Optional[Dict[str, Any]] = None,
        transport_factory: Optional[TransportFactory] = None,
    ) -> None:
        self.config = {**CLIENT_CONFIG, **(config or {})}
        self.url = url
        self.token = token
        self.metadata: Dict[str, str] = dict(metadata or {})
        self.reconnect_delay: float = float(self.config["reconnect_delay"])
        self._handshake_frames = framing.encode_handshake(token, self.metadata)
        self._connected_callback = connected_callback
        self._transport_factory: TransportFactory = transport_factory or WebSocketTransport
        self._assembler = ReceiveAssembler(int(self.config["receive_buffer_size"]))

        self._status = ConnectionStatus.WAITING
        self._transport: Optional[Transport] = None
        self._accepting: bool = False
        self._disposed: bool = False
        self._send_lock = asyncio.Lock()
        self._run_task: Optional[asyncio.Task] = None

        self.json_received: EventHook[JsonMessage] = EventHook("json_received")
        self.bytes_received: EventHook[BinaryMessage] = EventHook("bytes_received")
        self.error_occurred: EventHook[Exception] = EventHook("error_occurred")

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def closed(self) -> bool:
        return self._disposed

    async def __aenter__(self) -> "NetworkClient":
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def start(self) -> asyncio.Task:
        if self._run_task is None or self._run_task.done():
            self._run_task = asyncio.create_task(self.run(), name="debugmenu-run-loop")
        return self._run_task

    async def run(self) -> None:
        """Keep the connection up and dispatch received frames until closed or cancelled."""
        if self._run_task is None:
            self._run_task = asyncio.current_task()
        try:
            while not self._disposed:
                await self._iterate()
        except asyncio.CancelledError:
            logger.debug("Run loop for %s cancelled", self.url)
            raise

    async def close(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._accepting = False
        task, self._run_task = self._run_task, None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        await self._discard_transport()
        self._status = ConnectionStatus.DISCONNECTED
        logger.info("Network client closed")

    async def send_json(self, channel: str, payload: Any) -> None:
        if self._disposed:
            return
        data = framing.encode_json(channel, payload)
        await self._send(channel, data, MessageType.TEXT)

    async def send_binary(
        self, channel: str, payload: Buffer, offset: int = 0, length: Optional[int] = None
    ) -> None:
        if self._disposed:
            return
        data = framing.encode_binary(channel, payload, offset, length)
        await self._send(channel, data, MessageType.BINARY)

    async def update_schema(self, schema: ApiSchema) -> None:
        """Announce the channel schema; failures go to :attr:`error_occurred`."""
        try:
            await self.send_binary(INTERNAL_API_CHANNEL, schema.to_json().encode(ENCODING))
        except ProtocolError as exc:
            logger.warning("Schema update failed: %s", exc)
            await self.error_occurred.emit(exc)

    async def _iterate(self) -> None:
        try:
            await self._ensure_connected()
            await self._receive_once()
        except ProtocolError as exc:
            logger.warning("Protocol error: %s", exc)
            await self.error_occurred.emit(exc)
        except Exception as exc:
            logger.warning("Connection error on %s: %s", self.url, exc)
            await self.error_occurred.emit(_network_error(exc))

        if not self._disposed and not self._is_alive():
            self._status = ConnectionStatus.DISCONNECTED
            logger.info("Disconnected from %s; retrying in %.1fs", self.url, self.reconnect_delay)
            await asyncio.sleep(self.reconnect_delay)

    async def _ensure_connected(self) -> None:
        if self._is_alive():
            return

        self._status = ConnectionStatus.CONNECTING
        self._accepting = False
        await self._discard_transport()
        self._assembler.reset()
        transport = self._transport_factory()
        self._transport = transport
        try:
            await transport.connect(self.url)

            self._status = ConnectionStatus.PERFORMING_HANDSHAKE
            token_frame, metadata_frame = self._handshake_frames
            await self._write(transport, token_frame, MessageType.TEXT)
            await self._write(transport, metadata_frame, MessageType.TEXT)
            # the connected callback may already push messages (e.g. the schema)
            self._accepting = True

            if self._connected_callback is not None:
                result = self._connected_callback()
                if inspect.isawaitable(result):
                    await result
        except Exception:
            self._accepting = False
            await self._discard_transport()
            raise

        if self._disposed:
            # closed from inside the connected callback
            return
        self._status = ConnectionStatus.CONNECTED
        logger.info("Connected to %s", self.url)

    async def _receive_once(self) -> None:
        transport = self._transport
        if transport is None:
            return
        result = await transport.receive(self._assembler.buffer)
        with self._assembler.feed(result.count, result.end_of_message) as frame:
            if frame is not None:
                await self._dispatch(result.message_type, frame)

    async def _dispatch(self, message_type: MessageType, frame: memoryview) -> None:
        if message_type is MessageType.TEXT:
            message = framing.decode_json(frame)
            logger.debug("Received json on %s", message.channel)
            await self.json_received.emit(message)
            return

        binary = framing.decode_binary(frame)
        logger.debug("Received %d bytes on %s", len(binary.payload), binary.channel)
        try:
            await self.bytes_received.emit(binary)
        finally:
            binary.payload.release()

    async def _send(self, channel: str, data: bytes, message_type: MessageType) -> None:
        transport = self._transport
        if transport is None or not self._accepting or not transport.is_open:
            logger.debug("Dropping %s frame for %s while %s", message_type, channel, self._status)
            return
        try:
            await self._write(transport, data, message_type)
        except Exception as exc:
            if self._disposed:
                logger.debug("Send on %s interrupted by close: %s", channel, exc)
                return
            logger.warning("Send on %s failed: %s", channel, exc)
            await self.error_occurred.emit(_network_error(exc))

    async def _write(self, transport: Transport, data: bytes, message_type: MessageType) -> None:
        async with self._send_lock:
            await transport.send(data, message_type)

    async def _discard_transport(self) -> None:
        transport, self._transport = self._transport, None
        if transport is None:
            return
        try:
            await transport.close()
        except Exception as exc:
            logger.debug("Closing transport failed: %s", exc)

    def _is_alive(self) -> bool:
        return self._transport is not None and self._transport.is_open


__all__ = ["ConnectedCallback", "ConnectionStatus", "NetworkClient", "NetworkError"]
