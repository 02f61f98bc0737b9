from .controls import Binding, Button, ChannelHandler, Controller, TextField, Toggle
from .logs import DebugMenuLogHandler

__all__ = ["Binding", "Button", "ChannelHandler", "Controller", "DebugMenuLogHandler", "TextField", "Toggle"]
