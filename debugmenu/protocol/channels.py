from __future__ import annotations

from enum import StrEnum
from typing import Union


class ChannelType(StrEnum):
    """Kinds of controls a channel can expose in the debug menu."""

    BUTTON = "button"
    TOGGLE = "toggle"
    TEXT_FIELD = "textfield"


def join_channel(*parts: str) -> str:
    """Build a channel name such as ``player/reset`` from path segments."""
    return "/".join(part.strip("/") for part in parts if part)


def normalize_channel(channel: Union[str, ChannelType]) -> str:
    """Channels are matched case-insensitively."""
    return str(channel).lower()


__all__ = ["ChannelType", "join_channel", "normalize_channel"]
