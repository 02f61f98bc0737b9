from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Optional, Set

if TYPE_CHECKING:
    from debugmenu.client import DebugMenuClient

# loggers that report on the sends this handler triggers
IGNORED_LOGGERS = frozenset({"debugmenu", "websockets"})


class DebugMenuLogHandler(logging.Handler):
    """Forward log records to a debug-menu log channel.

    Records emitted outside a running event loop are dropped; records emitted
    inside one are sent from a background task. Records from the client's own
    loggers and from ``websockets`` are never forwarded.
    """

    def __init__(self, client: "DebugMenuClient", channel: Optional[str] = None, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.client = client
        self.channel = channel or client.config["log_channel"]
        self._pending: Set[asyncio.Task] = set()

    def emit(self, record: logging.LogRecord) -> None:
        if record.name.split(".")[0] in IGNORED_LOGGERS:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        try:
            formatter = self.formatter or logging.Formatter()
            details = formatter.formatException(record.exc_info) if record.exc_info else ""
            task = loop.create_task(
                self.client.send_log(
                    self.channel,
                    record.getMessage(),
                    record.levelname.lower(),
                    details,
                    int(record.created * 1000),
                )
            )
        except Exception:
            self.handleError(record)
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait until every forwarded record has been handed to the client."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


__all__ = ["DebugMenuLogHandler"]
