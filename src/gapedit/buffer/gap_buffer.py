"""Growable storage with a single relocatable gap at the edit point."""

from __future__ import annotations

from typing import Callable, Generic, Iterable, Iterator, List, Optional, TypeVar

from .errors import BufferIndexError

T = TypeVar("T")

MIN_CAPACITY = 16


class _GapSlot:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<gap>"


# Marks storage slots inside the gap. Never handed out to callers.
_GAP = _GapSlot()


class GapBuffer(Generic[T]):
    """Sequence with amortised O(1) insert/delete at a movable gap.

    Storage is a plain list of ``capacity`` slots. The half-open range
    ``[gap_start, gap_end)`` is logically absent; logical index ``i`` lives at
    raw slot ``i`` before the gap and ``i + gap_length`` after it.
    """

    __slots__ = ("_data", "_gap_start", "_gap_end")

    def __init__(self, capacity: int = 0) -> None:
        if capacity < 0:
            raise ValueError("capacity cannot be negative")
        self._data: List[object] = [_GAP] * capacity
        self._gap_start = 0
        self._gap_end = capacity

    @classmethod
    def with_capacity(cls, capacity: int) -> "GapBuffer[T]":
        return cls(capacity)

    @classmethod
    def from_iterable(cls, items: Iterable[T]) -> "GapBuffer[T]":
        buffer: GapBuffer[T] = cls()
        buffer.map_to(items)
        return buffer

    @property
    def capacity(self) -> int:
        return len(self._data)

    @property
    def gap(self) -> range:
        return range(self._gap_start, self._gap_end)

    @property
    def position(self) -> int:
        """Logical offset of the gap, i.e. where the next insert lands."""

        return self._gap_start

    def __len__(self) -> int:
        return len(self._data) - (self._gap_end - self._gap_start)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(len={len(self)}, capacity={self.capacity}, "
            f"gap={self._gap_start}..{self._gap_end})"
        )

    def _raw_index(self, index: int) -> int:
        if index < self._gap_start:
            return index
        return index + (self._gap_end - self._gap_start)

    def get(self, index: int) -> Optional[T]:
        if index < 0 or index >= len(self):
            return None
        return self._data[self._raw_index(index)]  # type: ignore[return-value]

    def __getitem__(self, index: int) -> T:
        if index < 0 or index >= len(self):
            raise BufferIndexError("Index out of bounds", index=index, length=len(self))
        return self._data[self._raw_index(index)]  # type: ignore[return-value]

    def read(self, start: int, end: int) -> List[T]:
        """Return logical elements ``[start, end)`` as a new list."""

        length = len(self)
        if start < 0 or end > length or start > end:
            raise BufferIndexError(
                f"Range {start}..{end} out of bounds", index=end, length=length
            )
        gap_start, gap_end = self._gap_start, self._gap_end
        if end <= gap_start:
            return self._data[start:end]  # type: ignore[return-value]
        shift = gap_end - gap_start
        if start >= gap_start:
            return self._data[start + shift : end + shift]  # type: ignore[return-value]
        return self._data[start:gap_start] + self._data[gap_end : end + shift]  # type: ignore[return-value]

    def set_gap_position(self, pos: int) -> None:
        """Move the gap so that it starts at logical offset ``pos``.

        Moving forward shifts the ``pos - gap_start`` elements that follow the
        gap in front of it; moving backward shifts ``[pos, gap_start)`` behind
        it. The source and destination may overlap, so the slice is copied out
        before it is written back.
        """

        if pos < 0 or pos > len(self):
            raise BufferIndexError("Gap position out of bounds", index=pos, length=len(self))

        start, end = self._gap_start, self._gap_end
        gap_length = end - start
        if pos > start:
            distance = pos - start
            self._data[start : start + distance] = self._data[end : end + distance]
        elif pos < start:
            distance = start - pos
            self._data[end - distance : end] = self._data[pos:start]
        else:
            return

        self._gap_start = pos
        self._gap_end = pos + gap_length
        self._data[self._gap_start : self._gap_end] = [_GAP] * gap_length

    def insert(self, elem: T) -> None:
        if self._gap_start == self._gap_end:
            self._enlarge_gap()
        self._data[self._gap_start] = elem
        self._gap_start += 1

    def map_to(self, items: Iterable[T]) -> None:
        for item in items:
            self.insert(item)

    def delete(self) -> Optional[T]:
        """Delete-key semantics: drop the element right after the gap."""

        if self._gap_end == len(self._data):
            return None
        elem = self._data[self._gap_end]
        self._data[self._gap_end] = _GAP
        self._gap_end += 1
        return elem  # type: ignore[return-value]

    def remove(self) -> Optional[T]:
        """Backspace semantics: drop the element right before the gap."""

        if self._gap_start == 0:
            return None
        self._gap_start -= 1
        elem = self._data[self._gap_start]
        self._data[self._gap_start] = _GAP
        return elem  # type: ignore[return-value]

    def _enlarge_gap(self) -> None:
        old_capacity = len(self._data)
        new_capacity = max(MIN_CAPACITY, old_capacity * 2)
        after_gap = old_capacity - self._gap_end

        storage: List[object] = [_GAP] * new_capacity
        storage[: self._gap_start] = self._data[: self._gap_start]
        new_gap_end = new_capacity - after_gap
        storage[new_gap_end:] = self._data[self._gap_end :]

        self._data = storage
        self._gap_end = new_gap_end

    def __iter__(self) -> Iterator[T]:
        return iter(self.iter())

    def __reversed__(self) -> Iterator[T]:
        return reversed(self.iter())

    def iter(self) -> "GapSlice[T]":
        return GapSlice(self, 0, len(self))

    def iter_begin_to_cursor(self, cursor: Optional[int] = None) -> "GapSlice[T]":
        """Window over ``[0, cursor)``; ``None`` means the gap position."""

        return GapSlice(self, 0, self._resolve_cursor(cursor))

    def iter_cursor_to_end(self, cursor: Optional[int] = None) -> "GapSlice[T]":
        """Window over ``[cursor, len)``; ``None`` means the gap position."""

        return GapSlice(self, self._resolve_cursor(cursor), len(self))

    def _resolve_cursor(self, cursor: Optional[int]) -> int:
        if cursor is None:
            return self._gap_start
        if cursor < 0 or cursor > len(self):
            raise BufferIndexError("Cursor out of bounds", index=cursor, length=len(self))
        return cursor


class GapSlice(Generic[T]):
    """Read-only logical window ``[start, end)`` over a :class:`GapBuffer`.

    ``find``/``rfind`` return absolute buffer offsets, which is what the text
    object scanners need. The window must not outlive an edit to its buffer.
    """

    __slots__ = ("_buffer", "start", "end")

    def __init__(self, buffer: GapBuffer[T], start: int, end: int) -> None:
        self._buffer = buffer
        self.start = start
        self.end = end

    def __len__(self) -> int:
        return self.end - self.start

    def __iter__(self) -> Iterator[T]:
        buffer = self._buffer
        for index in range(self.start, self.end):
            yield buffer[index]

    def __reversed__(self) -> Iterator[T]:
        buffer = self._buffer
        for index in range(self.end - 1, self.start - 1, -1):
            yield buffer[index]

    def find(self, predicate: Callable[[T], bool]) -> Optional[int]:
        buffer = self._buffer
        for index in range(self.start, self.end):
            if predicate(buffer[index]):
                return index
        return None

    def rfind(self, predicate: Callable[[T], bool]) -> Optional[int]:
        buffer = self._buffer
        for index in range(self.end - 1, self.start - 1, -1):
            if predicate(buffer[index]):
                return index
        return None

    def count(self, predicate: Callable[[T], bool]) -> int:
        return sum(1 for item in self if predicate(item))


__all__ = ["GapBuffer", "GapSlice", "MIN_CAPACITY"]
