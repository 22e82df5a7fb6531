"""Named macro storage for recorded operation sequences."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .operation import Operation, operation_from_record


class MacroRecorder:
    """Captures operations between a record and a stop command."""

    def __init__(self) -> None:
        self._macros: Dict[str, Tuple[Operation, ...]] = {}
        self._recording: Optional[str] = None
        self._captured: List[Operation] = []

    @property
    def recording(self) -> Optional[str]:
        return self._recording

    def start(self, name: str) -> bool:
        if self._recording is not None:
            return False
        self._recording = name
        self._captured = []
        return True

    def capture(self, operation: Operation) -> None:
        if self._recording is not None:
            self._captured.append(operation)

    def stop(self) -> Optional[str]:
        name = self._recording
        if name is None:
            return None
        self._macros[name] = tuple(self._captured)
        self._recording = None
        self._captured = []
        return name

    def get(self, name: str) -> Optional[Tuple[Operation, ...]]:
        return self._macros.get(name)

    def names(self) -> Tuple[str, ...]:
        return tuple(sorted(self._macros))

    def serialize(self) -> Dict[str, List[List[object]]]:
        return {
            name: [op.to_record() for op in operations]
            for name, operations in self._macros.items()
        }

    def load(self, data: Mapping[str, Sequence[Sequence[object]]]) -> None:
        self._macros.update(
            {
                name: tuple(operation_from_record(record) for record in records)
                for name, records in data.items()
            }
        )


__all__ = ["MacroRecorder"]
