from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from debugmenu.protocol.constants import DEFAULT_RECEIVE_BUFFER_SIZE

logger = logging.getLogger(__name__)


class ReceiveAssembler:
    """Turns a sequence of physical reads into complete frames.

    The transport reads into :attr:`buffer`. A message that completes within a
    single read is handed out straight from that scratch buffer. A message
    spanning several reads is copied read by read into an overflow buffer,
    which is handed out once the last read arrives and then drained.
    """

    def __init__(self, buffer_size: int = DEFAULT_RECEIVE_BUFFER_SIZE) -> None:
        self._scratch = bytearray(buffer_size)
        self._scratch_view = memoryview(self._scratch)
        self._overflow = bytearray()

    @property
    def buffer(self) -> memoryview:
        return self._scratch_view

    @property
    def buffer_size(self) -> int:
        return len(self._scratch)

    @property
    def pending(self) -> int:
        """Bytes of an unfinished message held in the overflow buffer."""
        return len(self._overflow)

    @contextmanager
    def feed(self, count: int, end_of_message: bool) -> Iterator[Optional[memoryview]]:
        """Account for ``count`` bytes just read into :attr:`buffer`.

        Yields the complete frame once ``end_of_message`` is set, ``None``
        otherwise. The frame view is released when the block exits.
        """
        if count < 0 or count > len(self._scratch):
            raise ValueError(f"read count {count} outside buffer of {len(self._scratch)} bytes")

        if not end_of_message:
            self._overflow += self._scratch_view[:count]
            yield None
            return

        if not self._overflow:
            frame = self._scratch_view[:count]
            try:
                yield frame
            finally:
                frame.release()
            return

        self._overflow += self._scratch_view[:count]
        frame = memoryview(self._overflow)
        try:
            yield frame
        finally:
            frame.release()
            self.reset()

    def reset(self) -> None:
        """Drop any partially assembled message."""
        try:
            self._overflow.clear()
        except BufferError:
            # a consumer still holds a view of the last frame
            logger.debug("Overflow buffer still exported; allocating a new one")
            self._overflow = bytearray()
