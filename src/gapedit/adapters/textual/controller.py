"""Bridges Textual key names to editor operations and UI callbacks."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from gapedit.buffer import (
    BufferEvent,
    FileError,
    FileOpt,
    MoveDir,
    MoveKind,
    ObjectKind,
    RowCol,
)
from gapedit.buffer.errors import PathLike
from gapedit.commands import (
    CommandEngine,
    CommandResult,
    Delete,
    Insert,
    Operation,
    Redo,
    Remove,
    Undo,
)


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class BufferMirror:
    """Host-friendly snapshot of the buffer for rendering."""

    text: str
    cursor: RowCol
    offset: int
    line_count: int
    dirty: bool


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_buffer: Callable[[BufferMirror], None]
    update_status: Callable[[str], None] = _noop
    handle_event: Callable[[BufferEvent], None] = _noop
    log: Callable[[str], None] = _noop


_MOVES: Dict[str, Tuple[MoveKind, MoveDir]] = {
    "left": (MoveKind.CHAR, MoveDir.PREVIOUS),
    "right": (MoveKind.CHAR, MoveDir.NEXT),
    "up": (MoveKind.LINE, MoveDir.PREVIOUS),
    "down": (MoveKind.LINE, MoveDir.NEXT),
    "ctrl+left": (MoveKind.WORD, MoveDir.PREVIOUS),
    "ctrl+right": (MoveKind.WORD, MoveDir.NEXT),
}

_TYPED_KEYS = {"enter": "\n", "tab": "\t"}


class TextualEditorAdapter:
    """Turns key presses into ``CommandEngine`` calls and refreshes the host."""

    def __init__(
        self,
        engine: CommandEngine,
        hooks: TextualUIHooks,
        *,
        path: Optional[PathLike] = None,
    ) -> None:
        self.engine = engine
        self.hooks = hooks
        self.path = Path(path) if path is not None else None
        self._unsubscribe = engine.buffer.subscribe(self._handle_event)
        self._refresh_buffer()

    def close(self) -> None:
        self._unsubscribe()

    def handle_textual_key(
        self, key: str, *, character: Optional[str] = None
    ) -> Optional[CommandResult]:
        """Dispatch one key; returns the engine result for edits, else ``None``."""

        self._log_state("key ->", key=key, character=character)
        if key in _MOVES:
            self._move(*_MOVES[key])
            return None
        if key in {"home", "end"}:
            self._jump_line_edge(key == "end")
            return None
        if key == "ctrl+s":
            self.save()
            return None

        operation = self._operation_for(key, character)
        if operation is None:
            return None
        result = self.engine.execute(operation)
        self._after_result(result)
        return result

    def save(self) -> bool:
        if self.path is None:
            self.hooks.update_status("no file name")
            return False
        opt = FileOpt.OVERWRITE if self.engine.settings.overwrite_on_save else None
        try:
            with self.engine.buffer.session() as buffer:
                written = buffer.save_to_file(self.path, opt)
                buffer.mark_pristine()
        except FileError as exc:
            self.hooks.update_status(str(exc))
            self._log_state("save !!", error=str(exc))
            return False
        self.hooks.update_status(f"wrote {written} bytes to {self.path.name}")
        self._refresh_buffer()
        return True

    def _operation_for(self, key: str, character: Optional[str]) -> Optional[Operation]:
        with self.engine.buffer.session() as buffer:
            offset = buffer.cursor.absolute
            previous = buffer.get_at(offset - 1) if offset else None
        if key == "ctrl+z":
            return Undo()
        if key == "ctrl+y":
            return Redo()
        if key == "backspace":
            return Remove(offset, previous or "")
        if key == "delete":
            return Delete(offset)
        if key in _TYPED_KEYS:
            return Insert(offset, _TYPED_KEYS[key])
        if character and len(character) == 1 and character.isprintable():
            return Insert(offset, character)
        return None

    def _move(self, kind: MoveKind, direction: MoveDir) -> None:
        with self.engine.buffer.session() as buffer:
            buffer.move_cursor(kind, direction)
        self._refresh_buffer()

    def _jump_line_edge(self, to_end: bool) -> None:
        with self.engine.buffer.session() as buffer:
            start, end = buffer.find_range_of(None, ObjectKind.LINE)
            buffer.set_textpos(end.absolute if to_end else start.absolute)
        self._refresh_buffer()

    def _after_result(self, result: CommandResult) -> None:
        if not result.ok or result.message:
            self.hooks.update_status(result.message or result.status)
        self._refresh_buffer()
        self._log_state(
            "result <-",
            ok=result.ok,
            status=result.status,
            message=result.message,
            position=result.position,
        )

    def _handle_event(self, event: BufferEvent) -> None:
        self._log_state(
            "event ->", kind=event.kind.value, offset=event.offset, data=event.data
        )
        self.hooks.handle_event(event)

    def _refresh_buffer(self) -> None:
        with self.engine.buffer.session() as buffer:
            mirror = BufferMirror(
                text=buffer.dump_to_string(),
                cursor=buffer.cursor.to_row_col(),
                offset=buffer.cursor.absolute,
                line_count=buffer.line_count,
                dirty=buffer.dirty,
            )
        self.hooks.update_buffer(mirror)

    def _log_state(self, prefix: str, **fields: object) -> None:
        parts = [prefix, f"buffer={self.engine.buffer.name!r}"]
        parts.extend(f"{key}={value!r}" for key, value in fields.items() if value is not None)
        self.hooks.log(" ".join(parts))


__all__ = ["BufferMirror", "TextualEditorAdapter", "TextualUIHooks"]
