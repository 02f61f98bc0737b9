from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from debugmenu.config import CLIENT_CONFIG
from debugmenu.protocol.constants import INSTANCES_PATH
from debugmenu.protocol.errors import ErrorCode, ProtocolError
from debugmenu.protocol.messages import CreateInstanceRequest, RunningInstance

logger = logging.getLogger(__name__)


class SessionError(ProtocolError):
    pass


class ClientSession:
    """Asks the service's HTTP API for a running instance and remembers it."""

    def __init__(
        self,
        base_url: str,
        token: str,
        metadata: Optional[Dict[str, str]] = None,
        *,
        config: Optional[Dict[str, Any]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = {**CLIENT_CONFIG, **(config or {})}
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.metadata: Dict[str, str] = dict(metadata or {})
        self.timeout: float = float(self.config["request_timeout"])
        self.instance: Optional[RunningInstance] = None
        self._http_client = http_client

    async def request_instance(self) -> RunningInstance:
        body = CreateInstanceRequest(token=self.token, metadata=self.metadata)
        url = self.base_url + INSTANCES_PATH
        client = self._http_client or httpx.AsyncClient(timeout=self.timeout)
        try:
            response = await client.post(url, content=body.to_json(), headers={"Content-Type": "application/json"})
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise SessionError(ErrorCode.BOOTSTRAP_FAILED, f"Instance request failed: {exc}") from exc
        except ValueError as exc:
            raise SessionError(ErrorCode.BOOTSTRAP_FAILED, f"Instance response is not JSON: {exc}") from exc
        finally:
            if self._http_client is None:
                await client.aclose()

        try:
            instance = RunningInstance.from_dict(data)
        except ProtocolError as exc:
            raise SessionError(ErrorCode.BOOTSTRAP_FAILED, exc.message) from exc
        logger.info("Running instance %s assigned (%s)", instance.id, instance.websocket_url)
        self.instance = instance
        return instance

    def websocket_url(self, instance: Optional[RunningInstance] = None) -> str:
        """WebSocket endpoint of the instance the client should attach to."""
        instance = instance or self.instance
        if instance is None or not instance.websocket_url:
            raise SessionError(ErrorCode.BOOTSTRAP_FAILED, "Running instance has no websocket URL")
        return instance.websocket_url.rstrip("/") + self.config["instance_path"]


__all__ = ["ClientSession", "SessionError"]
