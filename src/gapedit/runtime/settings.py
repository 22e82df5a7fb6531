"""Environment-driven settings for the editing core."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .telemetry import env, env_flag


def _env_int(name: str) -> Optional[int]:
    raw = env(name)
    if raw is None or not raw.strip():
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"GAPEDIT_{name} must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ValueError(f"GAPEDIT_{name} must not be negative, got {value}")
    return value


@dataclass(frozen=True, slots=True)
class EditorSettings:
    """Knobs shared by the command engine and host adapters.

    ``history_limit`` caps the undo stack (``None`` keeps every entry for the
    session). ``overwrite_on_save`` is the default used by hosts when the user
    saves back to the file that was opened.
    """

    history_limit: Optional[int] = None
    overwrite_on_save: bool = True

    @classmethod
    def from_env(cls) -> "EditorSettings":
        return cls(
            history_limit=_env_int("HISTORY_LIMIT"),
            overwrite_on_save=env_flag("OVERWRITE_ON_SAVE", True),
        )


__all__ = ["EditorSettings"]
