"""Lock-guarded handle around the single authoritative ``TextBuffer``."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

from .events import BufferEvent, Subscriber
from .text_buffer import TextBuffer


class SharedBuffer:
    """Serialises access to one ``TextBuffer`` across components.

    ``session()`` holds the lock for exactly one logical operation. Change
    events raised while the lock is held are queued and dispatched after it
    is released, so a listener that reads the buffer back does not deadlock.
    """

    def __init__(self, buffer: Optional[TextBuffer] = None) -> None:
        self._buffer = buffer if buffer is not None else TextBuffer()
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._buffer.name

    @contextmanager
    def session(self) -> Iterator[TextBuffer]:
        channel = self._buffer.events
        pending: List[BufferEvent] = []
        try:
            with self._lock:
                channel.pause()
                try:
                    yield self._buffer
                finally:
                    pending = channel.resume()
        finally:
            channel.dispatch(pending)

    def subscribe(self, listener: Subscriber) -> Callable[[], None]:
        with self._lock:
            return self._buffer.events.subscribe(listener)

    def dump_to_string(self) -> str:
        with self._lock:
            return self._buffer.dump_to_string()

    def get_data_range(self, begin: int, end: int) -> str:
        with self._lock:
            return self._buffer.get_data_range(begin, end)


__all__ = ["SharedBuffer"]
