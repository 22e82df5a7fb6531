"""Exceptions raised by the buffer layer."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


class BufferIndexError(IndexError):
    """Raised when an offset falls outside the logical buffer.

    This is a caller bug, not a user-facing condition: the offending call is
    aborted before any state is touched.
    """

    def __init__(self, message: str, *, index: int, length: int) -> None:
        super().__init__(f"{message} (index {index}, length {length})")
        self.index = index
        self.length = length


class FileError(RuntimeError):
    """Base class for whole-file load/save failures.

    ``str(error)`` is meant to be shown to the user as a status message.
    """

    def __init__(self, filename: PathLike, cause: Optional[str] = None) -> None:
        self.filename = str(filename)
        self.cause = cause
        super().__init__(self.describe())

    def describe(self) -> str:
        return f"{self.filename}: {self.cause}"


class LoadFileError(FileError):
    def describe(self) -> str:
        return f"Reading {self.filename} failed. Underlying cause was: {self.cause}"


class DestinationExistsError(FileError):
    """Raised when saving would replace a file without the overwrite option."""

    def describe(self) -> str:
        return f"{self.filename} exists already, writing to file denied."


class FileWriteError(FileError):
    def describe(self) -> str:
        return f"Writing to {self.filename} failed. Underlying cause was: {self.cause}"


__all__ = [
    "BufferIndexError",
    "FileError",
    "LoadFileError",
    "DestinationExistsError",
    "FileWriteError",
]
