"""Text semantics layered over a character gap buffer."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from gapedit.runtime import telemetry

from .errors import BufferIndexError, PathLike
from .events import BufferEvent, EventChannel, EventKind
from .fileio import FileOpt, read_text_file, write_text_file
from .gap_buffer import GapBuffer
from .position import MoveDir, MoveKind, ObjectKind, TextPosition

NEWLINE = "\n"

CursorLike = Union[int, TextPosition, None]
TextRange = Tuple[TextPosition, TextPosition]


def _is_newline(ch: str) -> bool:
    return ch == NEWLINE


def _is_word_break(ch: str) -> bool:
    return ch == " " or ch == NEWLINE


def _unmatched_open_brace() -> Callable[[str], bool]:
    # Fed right-to-left: every "}" seen must be cancelled by a "{" first.
    depth = 0

    def predicate(ch: str) -> bool:
        nonlocal depth
        if ch == "}":
            depth += 1
        elif ch == "{":
            if depth == 0:
                return True
            depth -= 1
        return False

    return predicate


def _matching_close_brace() -> Callable[[str], bool]:
    level = 1

    def predicate(ch: str) -> bool:
        nonlocal level
        if ch == "{":
            level += 1
        elif ch == "}":
            level -= 1
            return level == 0
        return False

    return predicate


def _require_char(ch: str) -> None:
    if not isinstance(ch, str) or len(ch) != 1:
        raise ValueError(f"expected a single character, got {ch!r}")


class TextBuffer:
    """Editable text with a cursor, a dirty flag, and change notifications.

    All edits happen at the cursor: the gap is moved there first, then the
    character is inserted or dropped. ``line_count`` is the number of newline
    characters in the buffer and is kept up to date incrementally.
    """

    def __init__(
        self,
        *,
        name: str = "default",
        data: Optional[GapBuffer[str]] = None,
    ) -> None:
        self.name = name
        self._data: GapBuffer[str] = data if data is not None else GapBuffer()
        self._cursor = TextPosition()
        self._line_count = self._data.iter().count(_is_newline)
        self.dirty = False
        self.events = EventChannel()

    @classmethod
    def from_text(cls, text: str, *, name: str = "default") -> "TextBuffer":
        data: GapBuffer[str] = GapBuffer.with_capacity(len(text))
        data.map_to(text)
        return cls(name=name, data=data)

    @classmethod
    def from_file(cls, path: PathLike, *, name: Optional[str] = None) -> "TextBuffer":
        """Load ``path`` as UTF-8, pre-sizing storage to the file's byte length."""

        with telemetry.span(
            "buffer::load", component="buffer", metadata={"file": str(path)}
        ) as handle:
            text, size = read_text_file(path)
            data: GapBuffer[str] = GapBuffer.with_capacity(size)
            data.map_to(text)
            buffer = cls(name=name or Path(path).name, data=data)
            handle.add_metadata("bytes", size)
        telemetry.record_event(
            "buffer.load",
            data={"file": str(path), "bytes": size, "lines": buffer.line_count},
        )
        return buffer

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return (
            f"TextBuffer(name={self.name!r}, len={len(self)}, "
            f"cursor={self._cursor.absolute}, dirty={self.dirty})"
        )

    @property
    def cursor(self) -> TextPosition:
        return self._cursor

    @property
    def line_count(self) -> int:
        return self._line_count

    def get_textpos(self) -> TextPosition:
        return self._cursor

    def gap_textpos(self) -> TextPosition:
        return self.position_info(self._data.position)

    def set_textpos(self, offset: int) -> bool:
        """Move the cursor to ``offset``; out-of-range offsets change nothing."""

        if offset < 0 or offset > len(self._data):
            return False
        self._cursor = self.position_info(offset)
        self._data.set_gap_position(offset)
        return True

    def mark_pristine(self) -> None:
        self.dirty = False

    def position_info(self, offset: int) -> TextPosition:
        """Full ``TextPosition`` for ``offset``, found by scanning backward."""

        prefix = self._data.iter_begin_to_cursor(offset)
        newline = prefix.rfind(_is_newline)
        if newline is None:
            return TextPosition(offset, 0, 0)
        line_number = self._data.iter_begin_to_cursor(newline).count(_is_newline) + 1
        return TextPosition(offset, newline + 1, line_number)

    def get_at(self, offset: int) -> Optional[str]:
        return self._data.get(offset)

    def get_data_range(self, begin: int, end: int) -> str:
        if end > len(self._data) or begin < 0 or begin > end:
            raise BufferIndexError(
                f"Range {begin}..{end} out of bounds", index=end, length=len(self._data)
            )
        return "".join(self._data.read(begin, end))

    def dump_to_string(self) -> str:
        return "".join(self._data.read(0, len(self._data)))

    def get_line_at_cursor(self) -> str:
        start, end = self.find_range_of(None, ObjectKind.LINE)
        return self.get_data_range(start.absolute, end.absolute)

    def insert_ch(self, ch: str) -> None:
        _require_char(ch)
        offset = self._cursor.absolute
        self._data.set_gap_position(offset)
        self._data.insert(ch)
        if ch == NEWLINE:
            self._line_count += 1
            self._cursor = self.position_info(offset + 1)
        else:
            self._cursor = self._cursor.shifted(1)
        self.dirty = True
        self._emit(EventKind.INSERTION, offset, ch)

    def insert_data(self, text: str) -> None:
        if not text:
            return
        offset = self._cursor.absolute
        self._data.set_gap_position(offset)
        self._data.map_to(text)
        newlines = text.count(NEWLINE)
        if newlines:
            self._line_count += newlines
            self._cursor = self.position_info(offset + len(text))
        else:
            self._cursor = self._cursor.shifted(len(text))
        self.dirty = True
        self._emit(EventKind.INSERTION, offset, text)

    def delete(self) -> Optional[str]:
        """Drop the character after the cursor; ``None`` at the end of the text."""

        offset = self._cursor.absolute
        self._data.set_gap_position(offset)
        ch = self._data.delete()
        if ch is None:
            return None
        if ch == NEWLINE:
            self._line_count -= 1
        self.dirty = True
        self._emit(EventKind.DELETION, offset, ch)
        return ch

    def remove(self) -> Optional[str]:
        """Drop the character before the cursor; ``None`` at offset 0."""

        offset = self._cursor.absolute
        self._data.set_gap_position(offset)
        ch = self._data.remove()
        if ch is None:
            return None
        if ch == NEWLINE:
            self._line_count -= 1
            self._cursor = self.position_info(offset - 1)
        else:
            self._cursor = self._cursor.shifted(-1)
        self.dirty = True
        self._emit(EventKind.REMOVAL, offset - 1, ch)
        return ch

    def clear_buffer_contents(self) -> None:
        previous = self.dump_to_string()
        self._data = GapBuffer()
        self._cursor = TextPosition()
        self._line_count = 0
        if previous:
            self.dirty = True
            self._emit(EventKind.DELETION, 0, previous)

    def find_range_of(self, cursor: CursorLike, kind: ObjectKind) -> TextRange:
        """Locate the word, line, or ``{}`` block around ``cursor``.

        Word ends are inclusive (``"hello world"`` at 7 gives 6..10); line and
        block ends are exclusive offsets or the closing brace itself. Inside a run
        of spaces the word range is the empty ``(offset, offset)``.
        """

        offset = self._resolve_cursor(cursor)
        before = self._data.iter_begin_to_cursor(offset)
        after = self._data.iter_cursor_to_end(offset)
        length = len(self._data)

        if kind is ObjectKind.WORD:
            hit = before.rfind(_is_word_break)
            begin = 0 if hit is None else hit + 1
            hit = after.find(_is_word_break)
            end = length - 1 if hit is None else hit - 1
            # Between two breaks there is no word; collapse to an empty range.
            end = max(end, begin)
        elif kind is ObjectKind.LINE:
            hit = before.rfind(_is_newline)
            begin = 0 if hit is None else hit + 1
            hit = after.find(_is_newline)
            end = length if hit is None else hit
        elif kind is ObjectKind.BLOCK:
            hit = before.rfind(_unmatched_open_brace())
            begin = 0 if hit is None else hit
            hit = after.find(_matching_close_brace())
            end = length if hit is None else hit
        else:  # pragma: no cover - closed enum
            raise ValueError(f"Unknown object kind {kind!r}")

        return self.position_info(begin), self.position_info(end)

    def line_start_of(self, line_number: int) -> Optional[TextPosition]:
        if line_number < 0 or line_number > self._line_count:
            return None
        start = 0
        if line_number:
            seen = 0
            for index, ch in enumerate(self._data):
                if ch == NEWLINE:
                    seen += 1
                    if seen == line_number:
                        start = index + 1
                        break
        return TextPosition(start, start, line_number)

    def line_end_of(self, line_number: int) -> Optional[TextPosition]:
        """Offset of the newline closing ``line_number`` (or the text end)."""

        start = self.line_start_of(line_number)
        if start is None:
            return None
        hit = self._data.iter_cursor_to_end(start.absolute).find(_is_newline)
        end = len(self._data) if hit is None else hit
        return TextPosition(end, start.absolute, line_number)

    def move_cursor(self, kind: MoveKind, direction: MoveDir) -> TextPosition:
        offset = self._cursor.absolute
        if kind is MoveKind.CHAR:
            step = -1 if direction is MoveDir.PREVIOUS else 1
            self.set_textpos(offset + step)
        elif kind is MoveKind.WORD:
            self.set_textpos(self._word_target(offset, direction))
        elif kind is MoveKind.LINE:
            step = -1 if direction is MoveDir.PREVIOUS else 1
            start = self.line_start_of(self._cursor.line_number + step)
            if start is not None:
                end = self.line_end_of(start.line_number)
                assert end is not None
                column = self._cursor.column
                self.set_textpos(min(start.absolute + column, end.absolute))
        return self._cursor

    def _word_target(self, offset: int, direction: MoveDir) -> int:
        data = self._data
        if direction is MoveDir.NEXT:
            tail = data.iter_cursor_to_end(offset)
            gap = tail.find(lambda ch: ch.isspace())
            if gap is None:
                return len(data)
            word = data.iter_cursor_to_end(gap).find(lambda ch: not ch.isspace())
            return len(data) if word is None else word
        head = data.iter_begin_to_cursor(offset)
        word_end = head.rfind(lambda ch: not ch.isspace())
        if word_end is None:
            return 0
        space = data.iter_begin_to_cursor(word_end).rfind(lambda ch: ch.isspace())
        return 0 if space is None else space + 1

    def save_to_file(self, path: PathLike, opt: Optional[FileOpt] = None) -> int:
        """Write the whole buffer to ``path``; returns the byte count.

        Unless ``opt`` is ``FileOpt.OVERWRITE`` an existing file is left alone
        and ``DestinationExistsError`` is raised. The dirty flag is untouched;
        callers clear it with ``mark_pristine`` once the save is reported.
        """

        with telemetry.span(
            "buffer::save",
            component="buffer",
            metadata={"file": str(path), "overwrite": opt is FileOpt.OVERWRITE},
        ) as handle:
            written = write_text_file(path, self.dump_to_string(), opt)
            handle.add_metadata("bytes", written)
        telemetry.record_event("buffer.save", data={"file": str(path), "bytes": written})
        return written

    def _resolve_cursor(self, cursor: CursorLike) -> int:
        if cursor is None:
            return self._cursor.absolute
        offset = cursor.absolute if isinstance(cursor, TextPosition) else cursor
        if offset < 0 or offset > len(self._data):
            raise BufferIndexError("Cursor out of bounds", index=offset, length=len(self._data))
        return offset

    def _emit(self, kind: EventKind, offset: int, data: str) -> None:
        self.events.emit(BufferEvent(kind=kind, offset=offset, data=data))


__all__ = ["TextBuffer", "NEWLINE", "TextRange", "CursorLike"]
