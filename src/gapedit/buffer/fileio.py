"""Whole-file UTF-8 load/save used by ``TextBuffer``."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from .errors import DestinationExistsError, FileWriteError, LoadFileError, PathLike


class FileOpt(Enum):
    NO_OVERWRITE = "no_overwrite"
    OVERWRITE = "overwrite"


def read_text_file(path: PathLike) -> Tuple[str, int]:
    """Return ``(text, byte_length)`` for ``path``."""

    target = Path(path)
    try:
        raw = target.read_bytes()
        return raw.decode("utf-8"), len(raw)
    except (OSError, UnicodeDecodeError) as exc:
        raise LoadFileError(target, _cause(exc)) from exc


def write_text_file(path: PathLike, text: str, opt: Optional[FileOpt] = None) -> int:
    """Write ``text`` to ``path`` and return the number of bytes written.

    Without ``FileOpt.OVERWRITE`` the file is opened in exclusive-create mode,
    so an existing destination is reported instead of replaced.
    """

    target = Path(path)
    mode = "wb" if opt is FileOpt.OVERWRITE else "xb"
    payload = text.encode("utf-8")
    try:
        with target.open(mode) as handle:
            return handle.write(payload)
    except FileExistsError as exc:
        raise DestinationExistsError(target) from exc
    except OSError as exc:
        raise FileWriteError(target, _cause(exc)) from exc


def _cause(exc: BaseException) -> str:
    if isinstance(exc, OSError) and exc.strerror:
        return exc.strerror
    return str(exc)


__all__ = ["FileOpt", "read_text_file", "write_text_file"]
