import json
import logging

import pytest

from debugmenu import ConnectionStatus, DebugMenuClient, DebugMenuLogHandler
from debugmenu.core.transport import MessageType
from debugmenu.protocol import RunningInstance
from fakes import wait_until


@pytest.fixture
def app_logger():
    logger = logging.getLogger("game.world")
    logger.propagate = False
    logger.setLevel(logging.DEBUG)
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True


def forwarded(transport):
    return [json.loads(data) for data in transport.frames(MessageType.TEXT)[2:]]


@pytest.mark.asyncio
async def test_records_are_forwarded(factory, app_logger):
    async with DebugMenuClient("http://svc", "tok", transport_factory=factory) as menu:
        await menu.run(RunningInstance(id="1", websocket_url="ws://svc"))
        await wait_until(lambda: menu.status is ConnectionStatus.CONNECTED)
        handler = DebugMenuLogHandler(menu, level=logging.INFO)
        app_logger.addHandler(handler)

        app_logger.debug("too quiet")
        app_logger.warning("low health: %d", 5)
        try:
            raise KeyError("boss")
        except KeyError:
            app_logger.exception("spawn failed")
        await handler.drain()

        frames = forwarded(factory.current)
        assert [frame["channel"] for frame in frames] == ["log", "log"]
        warning, error = (frame["payload"] for frame in frames)
        assert warning["message"] == "low health: 5"
        assert warning["type"] == "warning"
        assert warning["details"] == ""
        assert isinstance(warning["timestamp"], int)
        assert error["type"] == "error"
        assert "KeyError: 'boss'" in error["details"]


def test_records_outside_event_loop_are_dropped(factory, app_logger):
    menu = DebugMenuClient("http://svc", "tok", transport_factory=factory)
    handler = DebugMenuLogHandler(menu, channel="console")
    app_logger.addHandler(handler)

    app_logger.error("nobody listening")

    assert handler.channel == "console"
    assert not handler._pending


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["debugmenu.core.network", "websockets.client", "websockets"])
async def test_transport_loggers_are_not_forwarded(factory, name):
    menu = DebugMenuClient("http://svc", "tok", transport_factory=factory)
    handler = DebugMenuLogHandler(menu)
    handler.handle(logging.makeLogRecord({"name": name, "msg": "sent", "levelno": logging.DEBUG}))
    assert not handler._pending
    handler.handle(logging.makeLogRecord({"name": "game", "msg": "hello", "levelname": "INFO"}))
    assert len(handler._pending) == 1
    await handler.drain()
