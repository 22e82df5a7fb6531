"""Command-log entries and their serialised record form."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from typing import ClassVar, Dict, Iterable, List, Sequence, Tuple, Type


class Operation:
    """Base class of the closed set of commands understood by the engine."""

    __slots__ = ()

    tag: ClassVar[str] = ""

    def to_record(self) -> List[object]:
        """``[tag, *fields]`` in declaration order; see ``operation_from_record``."""

        return [self.tag, *(getattr(self, f.name) for f in fields(self))]  # type: ignore[arg-type]


class EditOperation(Operation):
    """Operation that mutates the buffer and lands in history.

    Offsets in history entries always name the affected character: for a
    ``Remove`` that is the character that stood before the cursor.
    """

    __slots__ = ()

    offset: int

    def inverse(self) -> Tuple["EditOperation", ...]:
        raise NotImplementedError


def _check_offset(offset: int) -> None:
    if not isinstance(offset, int) or isinstance(offset, bool) or offset < 0:
        raise ValueError(f"offset must be a non-negative integer, got {offset!r}")


def _check_char(char: str, *, optional: bool = False) -> None:
    if optional and char == "":
        return
    if not isinstance(char, str) or len(char) != 1:
        raise ValueError(f"expected a single character, got {char!r}")


def _check_name(name: str) -> None:
    if not isinstance(name, str) or not name:
        raise ValueError("macro name cannot be empty")


@dataclass(frozen=True, slots=True)
class Insert(EditOperation):
    tag: ClassVar[str] = "insert"

    offset: int
    char: str

    def __post_init__(self) -> None:
        _check_offset(self.offset)
        _check_char(self.char)

    def inverse(self) -> Tuple[EditOperation, ...]:
        return (Remove(self.offset, self.char),)


@dataclass(frozen=True, slots=True)
class InsertData(EditOperation):
    tag: ClassVar[str] = "insert_data"

    offset: int
    text: str

    def __post_init__(self) -> None:
        _check_offset(self.offset)
        if not isinstance(self.text, str) or not self.text:
            raise ValueError("InsertData requires non-empty text")

    def inverse(self) -> Tuple[EditOperation, ...]:
        # Last character first, so every offset is still valid when applied.
        return tuple(
            Remove(self.offset + index, ch)
            for index, ch in reversed(list(enumerate(self.text)))
        )


@dataclass(frozen=True, slots=True)
class Delete(EditOperation):
    """Forward deletion at ``offset``; ``char`` is filled in once applied."""

    tag: ClassVar[str] = "delete"

    offset: int
    char: str = ""

    def __post_init__(self) -> None:
        _check_offset(self.offset)
        _check_char(self.char, optional=True)

    def inverse(self) -> Tuple[EditOperation, ...]:
        if not self.char:
            raise ValueError("cannot invert a Delete that does not record its character")
        return (Insert(self.offset, self.char),)


@dataclass(frozen=True, slots=True)
class Remove(EditOperation):
    """Backward deletion.

    As a request, ``offset`` is the cursor and the character before it goes.
    As a history entry, ``offset`` is where the removed ``char`` used to be.
    """

    tag: ClassVar[str] = "remove"

    offset: int
    char: str = ""

    def __post_init__(self) -> None:
        _check_offset(self.offset)
        _check_char(self.char, optional=True)

    def inverse(self) -> Tuple[EditOperation, ...]:
        if not self.char:
            raise ValueError("cannot invert a Remove that does not record its character")
        return (Insert(self.offset, self.char),)


@dataclass(frozen=True, slots=True)
class Undo(Operation):
    tag: ClassVar[str] = "undo"


@dataclass(frozen=True, slots=True)
class Redo(Operation):
    tag: ClassVar[str] = "redo"


@dataclass(frozen=True, slots=True)
class MacroRecord(Operation):
    tag: ClassVar[str] = "macro_record"

    name: str

    def __post_init__(self) -> None:
        _check_name(self.name)


@dataclass(frozen=True, slots=True)
class MacroStop(Operation):
    tag: ClassVar[str] = "macro_stop"


@dataclass(frozen=True, slots=True)
class MacroPlay(Operation):
    tag: ClassVar[str] = "macro_play"

    name: str

    def __post_init__(self) -> None:
        _check_name(self.name)


OPERATION_TYPES: Dict[str, Type[Operation]] = {
    cls.tag: cls
    for cls in (
        Insert,
        InsertData,
        Delete,
        Remove,
        Undo,
        Redo,
        MacroRecord,
        MacroStop,
        MacroPlay,
    )
}


def operation_from_record(record: Sequence[object]) -> Operation:
    if not record or not isinstance(record[0], str):
        raise ValueError(f"Malformed operation record {record!r}")
    tag = record[0]
    op_type = OPERATION_TYPES.get(tag)
    if op_type is None:
        raise ValueError(f"Unknown operation tag '{tag}'")
    try:
        return op_type(*record[1:])  # type: ignore[call-arg]
    except TypeError as exc:
        raise ValueError(f"Malformed '{tag}' record {list(record)!r}") from exc


def dumps_log(operations: Iterable[Operation]) -> str:
    """Serialise operations as JSON lines, one record per line."""

    return "\n".join(
        json.dumps(op.to_record(), ensure_ascii=False) for op in operations
    )


def loads_log(text: str) -> List[Operation]:
    operations: List[Operation] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        record = json.loads(line)
        if not isinstance(record, list):
            raise ValueError(f"Operation record must be a list, got {record!r}")
        operations.append(operation_from_record(record))
    return operations


__all__ = [
    "Operation",
    "EditOperation",
    "Insert",
    "InsertData",
    "Delete",
    "Remove",
    "Undo",
    "Redo",
    "MacroRecord",
    "MacroStop",
    "MacroPlay",
    "OPERATION_TYPES",
    "operation_from_record",
    "dumps_log",
    "loads_log",
]
