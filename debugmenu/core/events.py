from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, List, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

Subscriber = Callable[[T], Union[None, Awaitable[None]]]


class EventHook(Generic[T]):
    """Ordered fan-out to any number of subscribers.

    Subscribers may be plain callables or coroutine functions; they are called
    in subscription order and a failing subscriber never keeps the others from
    being notified.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._subscribers: List[Subscriber] = []

    def subscribe(self, handler: Subscriber) -> Callable[[], None]:
        self._subscribers.append(handler)
        return lambda: self.unsubscribe(handler)

    def unsubscribe(self, handler: Subscriber) -> None:
        if handler in self._subscribers:
            self._subscribers.remove(handler)

    def __len__(self) -> int:
        return len(self._subscribers)

    async def emit(self, value: T) -> None:
        for handler in list(self._subscribers):
            try:
                result: Any = handler(value)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Subscriber %r of %s failed", handler, self.name)


__all__ = ["EventHook", "Subscriber"]
