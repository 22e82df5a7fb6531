"""Applied and undone operation stacks backing undo/redo."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .operation import EditOperation


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    operation: EditOperation
    cursor_before: int
    cursor_after: int


@dataclass(frozen=True, slots=True)
class ForwardEntry:
    """An undone entry plus the inverse operations that were applied for it."""

    inverse: Tuple[EditOperation, ...]
    original: HistoryEntry


class CommandHistory:
    """Two linear stacks: ``history`` (applied) and ``forward_history`` (undone).

    Pushing a fresh edit drops the forward stack; ``limit`` (when set) evicts
    the oldest applied entries.
    """

    def __init__(self, *, limit: Optional[int] = None) -> None:
        if limit is not None and limit < 0:
            raise ValueError("history limit cannot be negative")
        self._applied: List[HistoryEntry] = []
        self._undone: List[ForwardEntry] = []
        self.limit = limit

    @property
    def applied(self) -> Tuple[HistoryEntry, ...]:
        return tuple(self._applied)

    @property
    def undone(self) -> Tuple[ForwardEntry, ...]:
        return tuple(self._undone)

    def push(self, entry: HistoryEntry) -> None:
        self._undone.clear()
        self._append(entry)

    def push_redone(self, entry: HistoryEntry) -> None:
        self._append(entry)

    def _append(self, entry: HistoryEntry) -> None:
        self._applied.append(entry)
        if self.limit is not None and len(self._applied) > self.limit:
            del self._applied[: len(self._applied) - self.limit]

    def can_undo(self) -> bool:
        return bool(self._applied)

    def can_redo(self) -> bool:
        return bool(self._undone)

    def peek_undo(self) -> Optional[HistoryEntry]:
        return self._applied[-1] if self._applied else None

    def peek_redo(self) -> Optional[ForwardEntry]:
        return self._undone[-1] if self._undone else None

    def pop_undo(self) -> Optional[HistoryEntry]:
        if not self._applied:
            return None
        return self._applied.pop()

    def push_forward(self, entry: ForwardEntry) -> None:
        self._undone.append(entry)

    def pop_redo(self) -> Optional[ForwardEntry]:
        if not self._undone:
            return None
        return self._undone.pop()

    def clear(self) -> None:
        self._applied.clear()
        self._undone.clear()


__all__ = ["HistoryEntry", "ForwardEntry", "CommandHistory"]
