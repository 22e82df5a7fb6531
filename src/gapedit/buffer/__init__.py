"""Gap buffer storage, text positions, and the text buffer facade."""

from .errors import (
    BufferIndexError,
    DestinationExistsError,
    FileError,
    FileWriteError,
    LoadFileError,
)
from .events import BufferEvent, BufferListener, EventChannel, EventKind
from .fileio import FileOpt
from .gap_buffer import MIN_CAPACITY, GapBuffer, GapSlice
from .position import MoveDir, MoveKind, ObjectKind, RowCol, TextPosition
from .shared import SharedBuffer
from .text_buffer import NEWLINE, TextBuffer

__all__ = [
    "BufferEvent",
    "BufferIndexError",
    "BufferListener",
    "DestinationExistsError",
    "EventChannel",
    "EventKind",
    "FileError",
    "FileOpt",
    "FileWriteError",
    "GapBuffer",
    "GapSlice",
    "LoadFileError",
    "MIN_CAPACITY",
    "MoveDir",
    "MoveKind",
    "NEWLINE",
    "ObjectKind",
    "RowCol",
    "SharedBuffer",
    "TextBuffer",
    "TextPosition",
]
