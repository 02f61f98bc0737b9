from __future__ import annotations

import asyncio
import logging
import platform

from debugmenu.client import DebugMenuClient
from debugmenu.config import CLIENT_CONFIG, load_config
from debugmenu.features import Button, Controller, DebugMenuLogHandler, TextField, Toggle

logger = logging.getLogger("demo")


def build_demo_controller() -> Controller:
    state = {"god_mode": False, "greeting": "hello"}

    def toggle_god_mode(enabled: bool) -> bool:
        state["god_mode"] = enabled
        logger.info("God mode %s", "on" if enabled else "off")
        return enabled

    def set_greeting(text: str) -> str:
        state["greeting"] = text
        logger.info("Greeting set to %r", text)
        return text

    return Controller(
        "demo",
        [
            Button("ping", lambda: logger.info("pong"), name="Ping"),
            Toggle("god-mode", toggle_god_mode, name="God mode"),
            TextField("greeting", set_greeting, name="Greeting", max_length=32),
        ],
    )


async def run_client() -> None:
    load_config()
    logging.basicConfig(level=CLIENT_CONFIG["log_level"])
    metadata = {"hostname": platform.node(), "python": platform.python_version()}

    async with DebugMenuClient(metadata=metadata) as client:
        client.register_controller(build_demo_controller())
        logging.getLogger().addHandler(DebugMenuLogHandler(client, level=logging.INFO))
        instance = await client.run()
        logger.info("Attached to instance %s", instance.id)
        await asyncio.Event().wait()


def main() -> None:
    try:
        asyncio.run(run_client())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
