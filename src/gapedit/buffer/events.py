"""Change notifications pushed from a buffer to its observers."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, List, Protocol, Union


class EventKind(str, Enum):
    INSERTION = "insertion"
    DELETION = "deletion"  # forward, pos..->
    REMOVAL = "removal"  # backward, <-..pos


@dataclass(frozen=True, slots=True)
class BufferEvent:
    """One edit, anchored at the offset where the change begins."""

    kind: EventKind
    offset: int
    data: str

    @property
    def is_char(self) -> bool:
        return len(self.data) == 1


class BufferListener(Protocol):
    def on_event(self, event: BufferEvent) -> None:
        ...


Subscriber = Union[BufferListener, Callable[[BufferEvent], None]]


class EventChannel:
    """Fan-out of buffer events to zero or more listeners.

    The channel can be paused while a caller holds the buffer lock; events
    raised in the meantime are queued and handed back by ``resume`` so they
    can be dispatched once the lock is released.
    """

    def __init__(self) -> None:
        self._listeners: List[Callable[[BufferEvent], None]] = []
        self._paused = 0
        self._pending: List[BufferEvent] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Subscriber) -> Callable[[], None]:
        """Register ``listener``; the returned callable unsubscribes it."""

        callback = getattr(listener, "on_event", listener)
        if not callable(callback):
            raise TypeError("listener must be callable or define on_event()")
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def emit(self, event: BufferEvent) -> None:
        if self._paused:
            self._pending.append(event)
            return
        self.dispatch([event])

    def dispatch(self, events: List[BufferEvent]) -> None:
        for event in events:
            for callback in list(self._listeners):
                callback(event)

    def pause(self) -> None:
        self._paused += 1

    def resume(self) -> List[BufferEvent]:
        if not self._paused:
            raise RuntimeError("EventChannel.resume() without matching pause()")
        self._paused -= 1
        if self._paused:
            return []
        pending, self._pending = self._pending, []
        return pending

    @contextmanager
    def held(self) -> Iterator[None]:
        """Queue events for the duration of the block, then dispatch them."""

        self.pause()
        try:
            yield
        finally:
            self.dispatch(self.resume())


__all__ = [
    "EventKind",
    "BufferEvent",
    "BufferListener",
    "EventChannel",
    "Subscriber",
]
