from .assembler import ReceiveAssembler
from .events import EventHook
from .network import ConnectionStatus, NetworkClient, NetworkError
from .session import ClientSession, SessionError
from .transport import MessageType, ReceiveResult, Transport, WebSocketTransport

__all__ = [
    "ClientSession",
    "ConnectionStatus",
    "EventHook",
    "MessageType",
    "NetworkClient",
    "NetworkError",
    "ReceiveAssembler",
    "ReceiveResult",
    "SessionError",
    "Transport",
    "WebSocketTransport",
]
