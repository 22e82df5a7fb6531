"""Command engine: applies operations to a buffer and keeps undo/redo stacks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Type, Union

from gapedit.buffer import SharedBuffer, TextBuffer
from gapedit.runtime import EditorSettings, telemetry

from .history import CommandHistory, ForwardEntry, HistoryEntry
from .macros import MacroRecorder
from .operation import (
    Delete,
    EditOperation,
    Insert,
    InsertData,
    MacroPlay,
    MacroRecord,
    MacroStop,
    Operation,
    Redo,
    Remove,
    Undo,
)

BufferHandle = Union[SharedBuffer, TextBuffer]


@dataclass(slots=True)
class CommandResult:
    """Outcome of ``CommandEngine.execute``.

    ``status`` is ``"ok"`` on success or a failure name such as
    ``"history_empty"``; ``message`` is meant for the status line.
    """

    ok: bool
    status: str = "ok"
    message: Optional[str] = None
    position: Optional[int] = None
    operation: Optional[Operation] = None


class HistoryConsistencyError(RuntimeError):
    """Raised when a history entry no longer fits the buffer it describes.

    Only possible when the buffer was edited behind the engine's back.
    """

    def __init__(self, message: str, *, operation: Operation) -> None:
        super().__init__(message)
        self.operation = operation


def _failure(status: str, message: str, *, position: Optional[int] = None) -> CommandResult:
    return CommandResult(ok=False, status=status, message=message, position=position)


class CommandEngine:
    """Single entry point that mutates the buffer and records history."""

    def __init__(
        self,
        buffer: Optional[BufferHandle] = None,
        *,
        settings: Optional[EditorSettings] = None,
        history: Optional[CommandHistory] = None,
        macros: Optional[MacroRecorder] = None,
        logger_name: str = "gapedit.commands",
    ) -> None:
        self.settings = settings or EditorSettings.from_env()
        self._handle = _as_shared(buffer)
        self._timeline = history or CommandHistory(limit=self.settings.history_limit)
        self.macros = macros or MacroRecorder()
        self._logger_name = logger_name
        self._playing: List[str] = []
        self._handlers: Dict[Type[Operation], Callable[..., CommandResult]] = {
            Insert: self._execute_insert,
            InsertData: self._execute_insert_data,
            Delete: self._execute_delete,
            Remove: self._execute_remove,
            Undo: self._execute_undo,
            Redo: self._execute_redo,
            MacroRecord: self._execute_macro_record,
            MacroStop: self._execute_macro_stop,
            MacroPlay: self._execute_macro_play,
        }

    @property
    def buffer(self) -> SharedBuffer:
        return self._handle

    @property
    def history(self) -> Tuple[HistoryEntry, ...]:
        return self._timeline.applied

    @property
    def forward_history(self) -> Tuple[ForwardEntry, ...]:
        return self._timeline.undone

    def can_undo(self) -> bool:
        return self._timeline.can_undo()

    def can_redo(self) -> bool:
        return self._timeline.can_redo()

    def register_buffer(self, buffer: BufferHandle) -> None:
        """Point the engine at another buffer; history of the old one is dropped."""

        self._handle = _as_shared(buffer)
        self._timeline.clear()

    def execute(self, operation: Operation) -> CommandResult:
        handler = self._handlers.get(type(operation))
        if handler is None:
            raise TypeError(f"Unsupported operation {operation!r}")

        if self._playing:
            # Macro steps run inside the span of the outer macro_play.
            return handler(operation)

        with telemetry.span(
            f"commands::{operation.tag}",
            logger_name=self._logger_name,
            component="commands",
            metadata={"buffer": self._handle.name, "operation": operation.to_record()},
        ) as handle:
            result = handler(operation)
            if not result.ok:
                handle.reject(result.status)

        if result.ok and isinstance(operation, MacroPlay):
            self.macros.capture(operation)
        return result

    def _execute_insert(self, op: Insert) -> CommandResult:
        with self._handle.session() as buffer:
            before = buffer.cursor.absolute
            if not _seek(buffer, op.offset):
                return _invalid_position(op, len(buffer))
            buffer.insert_ch(op.char)
            return self._record(op, op, before, buffer.cursor.absolute)

    def _execute_insert_data(self, op: InsertData) -> CommandResult:
        with self._handle.session() as buffer:
            before = buffer.cursor.absolute
            if not _seek(buffer, op.offset):
                return _invalid_position(op, len(buffer))
            buffer.insert_data(op.text)
            return self._record(op, op, before, buffer.cursor.absolute)

    def _execute_delete(self, op: Delete) -> CommandResult:
        with self._handle.session() as buffer:
            before = buffer.cursor.absolute
            if not _seek(buffer, op.offset):
                return _invalid_position(op, len(buffer))
            removed = buffer.delete()
            if removed is None:
                return _failure(
                    "nothing_to_delete",
                    f"nothing to delete at offset {op.offset}",
                    position=buffer.cursor.absolute,
                )
            return self._record(
                op, Delete(op.offset, removed), before, buffer.cursor.absolute
            )

    def _execute_remove(self, op: Remove) -> CommandResult:
        if op.offset == 0:
            return _failure(
                "remove_at_start", "cannot remove before buffer start", position=0
            )
        with self._handle.session() as buffer:
            before = buffer.cursor.absolute
            if not _seek(buffer, op.offset):
                return _invalid_position(op, len(buffer))
            removed = buffer.remove()
            if removed is None:  # pragma: no cover - offset > 0 always has a predecessor
                return _failure("remove_at_start", "cannot remove before buffer start")
            result = self._record(
                op, Remove(op.offset - 1, removed), before, buffer.cursor.absolute
            )

        if op.char and op.char != removed:
            result.message = f"expected to remove {op.char!r}, removed {removed!r}"
            telemetry.record_event(
                "commands.remove_mismatch",
                level="warning",
                data={"offset": op.offset, "expected": op.char, "removed": removed},
                logger_name=self._logger_name,
            )
        return result

    def _record(
        self, request: EditOperation, op: EditOperation, before: int, after: int
    ) -> CommandResult:
        # Runs inside the buffer session: history must match the buffer before
        # any listener gets to see the change.
        self._timeline.push(HistoryEntry(op, cursor_before=before, cursor_after=after))
        self._capture(request)
        return CommandResult(ok=True, position=after, operation=op)

    def _capture(self, op: Operation) -> None:
        if not self._playing:
            self.macros.capture(op)

    def _execute_undo(self, op: Undo) -> CommandResult:
        entry = self._timeline.peek_undo()
        if entry is None:
            return _failure("history_empty", "nothing to undo")
        inverse = entry.operation.inverse()
        with self._handle.session() as buffer:
            _apply_all(buffer, inverse)
            buffer.set_textpos(entry.cursor_before)
            self._timeline.pop_undo()
            self._timeline.push_forward(ForwardEntry(inverse=inverse, original=entry))
            self._capture(op)
            position = buffer.cursor.absolute
        return CommandResult(ok=True, position=position, operation=entry.operation)

    def _execute_redo(self, op: Redo) -> CommandResult:
        forward = self._timeline.peek_redo()
        if forward is None:
            return _failure("forward_history_empty", "nothing to redo")
        entry = forward.original
        with self._handle.session() as buffer:
            _apply_all(buffer, (entry.operation,))
            buffer.set_textpos(entry.cursor_after)
            self._timeline.pop_redo()
            self._timeline.push_redone(entry)
            self._capture(op)
            position = buffer.cursor.absolute
        return CommandResult(ok=True, position=position, operation=entry.operation)

    def _execute_macro_record(self, op: MacroRecord) -> CommandResult:
        if not self.macros.start(op.name):
            return _failure(
                "macro_already_recording",
                f"already recording macro {self.macros.recording!r}",
            )
        return CommandResult(ok=True, message=f"recording {op.name!r}", operation=op)

    def _execute_macro_stop(self, op: MacroStop) -> CommandResult:
        name = self.macros.stop()
        if name is None:
            return _failure("macro_not_recording", "no macro is being recorded")
        return CommandResult(ok=True, message=f"recorded {name!r}", operation=op)

    def _execute_macro_play(self, op: MacroPlay) -> CommandResult:
        operations = self.macros.get(op.name)
        if operations is None:
            return _failure("macro_not_found", f"macro {op.name!r} not found")
        if op.name in self._playing:
            return _failure("macro_recursion", f"macro {op.name!r} plays itself")

        self._playing.append(op.name)
        try:
            position: Optional[int] = None
            for step, operation in enumerate(operations, start=1):
                outcome = self.execute(operation)
                if not outcome.ok:
                    return _failure(
                        outcome.status,
                        f"macro {op.name!r} stopped at step {step}: {outcome.message}",
                        position=outcome.position,
                    )
                position = outcome.position
        finally:
            self._playing.pop()
        return CommandResult(ok=True, position=position, operation=op)


def _as_shared(buffer: Optional[BufferHandle]) -> SharedBuffer:
    if isinstance(buffer, SharedBuffer):
        return buffer
    return SharedBuffer(buffer)


def _seek(buffer: TextBuffer, offset: int) -> bool:
    if buffer.cursor.absolute == offset:
        return True
    return buffer.set_textpos(offset)


def _invalid_position(op: EditOperation, length: int) -> CommandResult:
    return _failure(
        "invalid_position", f"offset {op.offset} is beyond buffer length {length}"
    )


def _place(buffer: TextBuffer, offset: int, op: EditOperation) -> None:
    if not buffer.set_textpos(offset):
        raise HistoryConsistencyError(
            f"{op!r} no longer fits a buffer of length {len(buffer)}", operation=op
        )


def _expect(buffer: TextBuffer, op: Union[Remove, Delete]) -> None:
    found = buffer.get_at(op.offset)
    if found != op.char:
        raise HistoryConsistencyError(
            f"{op!r} found {found!r} in the buffer", operation=op
        )


def _apply(buffer: TextBuffer, op: EditOperation) -> None:
    """Replay a history-form operation (offsets name the affected character).

    Every check runs before the buffer is touched, so a failing operation
    leaves the text as it was.
    """

    if isinstance(op, Insert):
        _place(buffer, op.offset, op)
        buffer.insert_ch(op.char)
    elif isinstance(op, InsertData):
        _place(buffer, op.offset, op)
        buffer.insert_data(op.text)
    elif isinstance(op, Remove):
        _place(buffer, op.offset + 1, op)
        _expect(buffer, op)
        buffer.remove()
    elif isinstance(op, Delete):
        _place(buffer, op.offset, op)
        _expect(buffer, op)
        buffer.delete()
    else:  # pragma: no cover - closed set of edit operations
        raise TypeError(f"Cannot apply {op!r}")


def _apply_all(buffer: TextBuffer, steps: Sequence[EditOperation]) -> None:
    """Apply ``steps`` in order, or none of them."""

    cursor = buffer.cursor.absolute
    done: List[EditOperation] = []
    try:
        for step in steps:
            _apply(buffer, step)
            done.append(step)
    except HistoryConsistencyError:
        for step in reversed(done):
            for undo in step.inverse():
                _apply(buffer, undo)
        buffer.set_textpos(cursor)
        raise


__all__ = ["CommandEngine", "CommandResult", "HistoryConsistencyError"]
