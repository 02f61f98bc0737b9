import json

import httpx
import pytest

from debugmenu import Button, ConnectionStatus, Controller, DebugMenuClient, TextField, Toggle
from debugmenu.core.transport import MessageType
from debugmenu.protocol import INTERNAL_API_CHANNEL, ChannelSchema, PayloadSchema, RunningInstance, decode_binary
from fakes import wait_until

INSTANCE = RunningInstance(id="inst-1", websocket_url="ws://debugmenu.test/ws/inst-1")


def make_menu(factory, **kwargs):
    return DebugMenuClient(
        "http://debugmenu.test",
        token="secret-token",
        metadata={"device": "test"},
        config={"reconnect_delay": 0.05},
        transport_factory=factory,
        **kwargs,
    )


def schema_frames(transport):
    documents = []
    for data in transport.frames(MessageType.BINARY):
        message = decode_binary(data)
        if message.channel == INTERNAL_API_CHANNEL:
            documents.append(json.loads(bytes(message.payload)))
    return documents


def json_frames(transport):
    return [json.loads(data) for data in transport.frames(MessageType.TEXT)[2:]]


async def run_connected(menu, factory):
    await menu.run(INSTANCE)
    await wait_until(lambda: menu.status is ConnectionStatus.CONNECTED)
    return factory.current


@pytest.mark.asyncio
async def test_run_pushes_schema_after_handshake(factory):
    menu = make_menu(factory)
    menu.register_controller(
        Controller("player", [Button("respawn", lambda: None), Toggle("god-mode", lambda on: on, name="God mode")])
    )
    async with menu:
        assert menu.status is ConnectionStatus.WAITING
        transport = await run_connected(menu, factory)

        assert transport.url == "ws://debugmenu.test/ws/inst-1/instance"
        assert transport.sent[0] == (MessageType.TEXT, b"secret-token")
        value_payload = {"type": "object", "properties": {"value": {"type": "boolean"}}}
        assert schema_frames(transport) == [
            {
                "debugMenuApi": "1.0.0",
                "channels": {
                    "player/respawn": {
                        "name": "respawn",
                        "category": "player",
                        "type": "button",
                        "publish": {"type": "object", "properties": {}},
                    },
                    "player/god-mode": {
                        "name": "God mode",
                        "category": "player",
                        "type": "toggle",
                        "subscribe": value_payload,
                        "publish": value_payload,
                    },
                },
            }
        ]


@pytest.mark.asyncio
async def test_run_twice_is_rejected(factory):
    async with make_menu(factory) as menu:
        await menu.run(INSTANCE)
        with pytest.raises(RuntimeError):
            await menu.run(INSTANCE)


@pytest.mark.asyncio
async def test_run_requests_an_instance_when_none_given(factory):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"id": "abc", "websocketUrl": "ws://svc/ws/abc"})

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    async with make_menu(factory, http_client=http_client) as menu:
        instance = await menu.run()
        await wait_until(lambda: menu.status is ConnectionStatus.CONNECTED)

    assert instance.id == "abc"
    assert str(requests[0].url) == "http://debugmenu.test/api/instances"
    assert json.loads(requests[0].content) == {"token": "secret-token", "metadata": {"device": "test"}}
    assert factory.current.url == "ws://svc/ws/abc/instance"
    await http_client.aclose()


@pytest.mark.asyncio
async def test_incoming_json_routed_case_insensitively_with_reply(factory):
    toggled = []

    def set_god_mode(enabled):
        toggled.append(enabled)
        return enabled

    menu = make_menu(factory)
    menu.register_controller(Controller("Player", [Toggle("God-Mode", set_god_mode)]))
    async with menu:
        transport = await run_connected(menu, factory)
        transport.push_json("player/god-mode", {"value": True})

        await wait_until(lambda: json_frames(transport))
        assert toggled == [True]
        assert json_frames(transport) == [{"channel": "player/god-mode", "payload": {"value": True}}]


@pytest.mark.asyncio
async def test_button_press_sends_no_reply(factory):
    pressed = []
    menu = make_menu(factory)
    menu.register_controller(Controller("game", [Button("pause", lambda: pressed.append(True))]))
    async with menu:
        transport = await run_connected(menu, factory)
        transport.push_json("game/pause", {})
        transport.push_json("game/unknown", {"value": 1})
        transport.push_json("game/pause", None)

        await wait_until(lambda: len(pressed) == 2)
        assert json_frames(transport) == []


@pytest.mark.asyncio
async def test_handler_failure_is_reported(factory):
    menu = make_menu(factory)
    menu.register_controller(Controller("player", [Toggle("god-mode", lambda on: on)]))
    async with menu:
        transport = await run_connected(menu, factory)
        errors = []
        menu.network.error_occurred.subscribe(errors.append)
        transport.push_json("player/god-mode", {"value": "yes"})

        await wait_until(lambda: errors)
        assert isinstance(errors[0], ValueError)
        assert json_frames(transport) == []
        assert menu.status is ConnectionStatus.CONNECTED


def test_duplicate_channels_are_rejected(factory):
    menu = make_menu(factory)
    menu.register_controller(Controller("player", [Button("respawn", lambda: None)]))
    with pytest.raises(ValueError):
        menu.register_controller(Controller("Player", [Button("Respawn", lambda: None)]))
    with pytest.raises(ValueError):
        menu.register_controller(Controller("enemy", [Button("spawn", lambda: None), Button("SPAWN", lambda: None)]))
    with pytest.raises(ValueError):
        menu.add_explicit_schema("player/respawn", ChannelSchema(type="log"))
    assert list(menu.build_schema().channels) == ["player/respawn"]


def test_build_schema_includes_explicit_channels(factory):
    menu = make_menu(factory)
    menu.register_controller(Controller("ui", [TextField("title", lambda text: None, max_length=12)]))
    menu.add_explicit_schema("log", ChannelSchema(name="Log", type="log", subscribe=PayloadSchema(type="object")))

    document = json.loads(menu.build_schema().to_json())
    assert document["channels"]["log"] == {"name": "Log", "type": "log", "subscribe": {"type": "object"}}
    assert document["channels"]["ui/title"]["publish"]["properties"]["value"] == {"type": "string", "maxLength": 12}


@pytest.mark.asyncio
async def test_registering_while_connected_pushes_schema(factory):
    menu = make_menu(factory)
    async with menu:
        transport = await run_connected(menu, factory)
        assert schema_frames(transport) == [{"debugMenuApi": "1.0.0", "channels": {}}]

        menu.register_controller(Controller("late", [Button("go", lambda: None)]))
        await wait_until(lambda: len(schema_frames(transport)) == 2)
        assert list(schema_frames(transport)[-1]["channels"]) == ["late/go"]


@pytest.mark.asyncio
async def test_send_log(factory):
    async with make_menu(factory) as menu:
        transport = await run_connected(menu, factory)
        await menu.send_log("log", "player died", "warning", "fell off map", 1234)
        assert json_frames(transport) == [
            {
                "channel": "log",
                "payload": {"message": "player died", "type": "warning", "details": "fell off map", "timestamp": 1234},
            }
        ]


@pytest.mark.asyncio
async def test_sends_before_run_are_noops(factory):
    menu = make_menu(factory)
    await menu.send_json("a", 1)
    await menu.send_binary("a", b"1")
    await menu.update_schema()
    assert factory.created == []


@pytest.mark.asyncio
async def test_close_allows_running_again(factory):
    menu = make_menu(factory)
    first = await run_connected(menu, factory)
    await menu.close()
    assert first.closed
    assert menu.network is None

    second = await run_connected(menu, factory)
    assert second is not first
    await menu.close()
