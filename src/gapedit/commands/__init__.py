"""Operations, history stacks, and the command engine."""

from .engine import CommandEngine, CommandResult, HistoryConsistencyError
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
    dumps_log,
    loads_log,
    operation_from_record,
)

__all__ = [
    "CommandEngine",
    "CommandHistory",
    "CommandResult",
    "Delete",
    "EditOperation",
    "ForwardEntry",
    "HistoryConsistencyError",
    "HistoryEntry",
    "Insert",
    "InsertData",
    "MacroPlay",
    "MacroRecord",
    "MacroRecorder",
    "MacroStop",
    "Operation",
    "Redo",
    "Remove",
    "Undo",
    "dumps_log",
    "loads_log",
    "operation_from_record",
]
