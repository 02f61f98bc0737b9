from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Optional, Set

import httpx

from debugmenu.config import CLIENT_CONFIG
from debugmenu.core.network import ConnectionStatus, NetworkClient
from debugmenu.core.session import ClientSession
from debugmenu.core.transport import TransportFactory
from debugmenu.features.controls import Binding, Controller
from debugmenu.protocol.channels import normalize_channel
from debugmenu.protocol.framing import Buffer
from debugmenu.protocol.messages import ApiSchema, ChannelSchema, JsonMessage, RunningInstance

logger = logging.getLogger(__name__)


class DebugMenuClient:
    """Connects an application to the debug menu and routes channels to its controls."""

    def __init__(
        self,
        server_url: Optional[str] = None,
        token: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
        *,
        config: Optional[Dict[str, Any]] = None,
        transport_factory: Optional[TransportFactory] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = {**CLIENT_CONFIG, **(config or {})}
        self.token: str = token if token is not None else self.config["token"]
        self.metadata: Dict[str, str] = dict(metadata or {})
        self.session = ClientSession(
            server_url or self.config["server_url"],
            self.token,
            self.metadata,
            config=self.config,
            http_client=http_client,
        )
        self._transport_factory = transport_factory
        self._network: Optional[NetworkClient] = None
        self._bindings: Dict[str, Binding] = {}
        self._explicit_schemas: Dict[str, ChannelSchema] = {}
        self._background_tasks: Set[asyncio.Task] = set()

    @property
    def network(self) -> Optional[NetworkClient]:
        return self._network

    @property
    def status(self) -> ConnectionStatus:
        return self._network.status if self._network else ConnectionStatus.WAITING

    async def __aenter__(self) -> "DebugMenuClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def run(self, running_instance: Optional[RunningInstance] = None) -> RunningInstance:
        """Attach to a running instance (requesting one if needed) and start the run loop."""
        if self._network is not None:
            raise RuntimeError(f"{type(self).__name__} is already running.")

        if running_instance is None:
            running_instance = await self.session.request_instance()
        url = self.session.websocket_url(running_instance)

        network = NetworkClient(
            url,
            self.token,
            self.metadata,
            self._on_connected,
            config=self.config,
            transport_factory=self._transport_factory,
        )
        network.json_received.subscribe(self._on_json_received)
        self._network = network
        network.start()
        return running_instance

    async def close(self) -> None:
        network, self._network = self._network, None
        for task in list(self._background_tasks):
            task.cancel()
        if network is not None:
            await network.close()

    def register_controller(self, controller: Controller) -> None:
        bindings = controller.bindings()
        keys = [normalize_channel(binding.channel) for binding in bindings]
        taken = set(self._bindings) | {normalize_channel(channel) for channel in self._explicit_schemas}
        for binding, key in zip(bindings, keys):
            if key in taken:
                raise ValueError(f"Channel {binding.channel} is already registered")
            taken.add(key)
        for binding, key in zip(bindings, keys):
            self._bindings[key] = binding
        logger.debug("Registered controller %s with %d channels", controller.path, len(bindings))
        self._schedule_schema_update()

    def add_explicit_schema(self, channel: str, schema: ChannelSchema) -> None:
        """Announce a channel that the application drives itself (e.g. a log stream)."""
        key = normalize_channel(channel)
        if key in self._bindings or key in {normalize_channel(name) for name in self._explicit_schemas}:
            raise ValueError(f"Channel {channel} is already registered")
        self._explicit_schemas[channel] = schema
        self._schedule_schema_update()

    def build_schema(self) -> ApiSchema:
        channels = {binding.channel: binding.schema() for binding in self._bindings.values()}
        channels.update(self._explicit_schemas)
        return ApiSchema(channels=channels)

    async def update_schema(self) -> None:
        if self._network is not None:
            await self._network.update_schema(self.build_schema())

    async def send_json(self, channel: str, payload: Any) -> None:
        if self._network is not None:
            await self._network.send_json(channel, payload)

    async def send_binary(self, channel: str, payload: Buffer, offset: int = 0, length: Optional[int] = None) -> None:
        if self._network is not None:
            await self._network.send_binary(channel, payload, offset, length)

    async def send_log(
        self,
        channel: str,
        message: str,
        type: str = "info",
        details: str = "",
        timestamp: Optional[int] = None,
    ) -> None:
        payload = {
            "message": message,
            "type": type,
            "details": details,
            "timestamp": timestamp if timestamp is not None else int(time.time() * 1000),
        }
        await self.send_json(channel, payload)

    async def _on_connected(self) -> None:
        await self.update_schema()

    async def _on_json_received(self, message: JsonMessage) -> None:
        binding = self._bindings.get(normalize_channel(message.channel))
        if binding is None:
            logger.debug("No handler registered for %s", message.channel)
            return
        try:
            reply = await binding.handler.handle_message(message.payload)
        except Exception as exc:
            logger.warning("Handler for %s failed: %s", message.channel, exc)
            if self._network is not None:
                await self._network.error_occurred.emit(exc)
            return
        if reply is not None:
            await self.send_json(message.channel, reply)

    def _schedule_schema_update(self) -> None:
        if self.status is not ConnectionStatus.CONNECTED:
            return
        task = asyncio.get_running_loop().create_task(self.update_schema())
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)


__all__ = ["DebugMenuClient"]
