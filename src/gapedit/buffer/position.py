"""Cursor value types: absolute offsets paired with line coordinates."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from functools import total_ordering
from typing import Tuple

RowCol = Tuple[int, int]  # (line_number, column)


@total_ordering
@dataclass(frozen=True, slots=True, eq=False)
class TextPosition:
    """Absolute offset plus the line it falls on.

    Equality, ordering, and hashing only look at ``absolute``; the line fields
    are derived data describing the same point.
    """

    absolute: int = 0
    line_start: int = 0
    line_number: int = 0

    def __post_init__(self) -> None:
        if self.absolute < 0 or self.line_start < 0 or self.line_number < 0:
            raise ValueError("TextPosition fields cannot be negative")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TextPosition):
            return NotImplemented
        return self.absolute == other.absolute

    def __lt__(self, other: "TextPosition") -> bool:
        if not isinstance(other, TextPosition):
            return NotImplemented
        return self.absolute < other.absolute

    def __hash__(self) -> int:
        return hash(self.absolute)

    @property
    def column(self) -> int:
        return self.absolute - self.line_start

    def to_row_col(self) -> RowCol:
        return (self.line_number, self.column)

    def shifted(self, delta: int) -> "TextPosition":
        """Move within the current line without rescanning."""

        return replace(self, absolute=self.absolute + delta)

    def with_absolute(self, absolute: int) -> "TextPosition":
        return replace(self, absolute=absolute)


class ObjectKind(Enum):
    """Text objects located by ``TextBuffer.find_range_of``."""

    WORD = "word"
    LINE = "line"
    BLOCK = "block"


class MoveKind(Enum):
    CHAR = "char"
    WORD = "word"
    LINE = "line"


class MoveDir(Enum):
    PREVIOUS = "previous"
    NEXT = "next"


__all__ = ["TextPosition", "ObjectKind", "MoveKind", "MoveDir", "RowCol"]
