"""telelog wiring for the editing core.

Spans (profiled blocks, tracked under a component):

``commands::<tag>``   one per top-level ``CommandEngine.execute``; a failed
                      command logs ``span::reject`` with its status
``buffer::load``      ``TextBuffer.from_file``
``buffer::save``      ``TextBuffer.save_to_file``

Events (``event::<name>`` lines):

``buffer.load`` / ``buffer.save``   file name, byte count (and lines on load)
``commands.remove_mismatch``        warning; a backspace removed another char

Configuration comes from ``GAPEDIT_*`` variables unless a preset is chosen.
Hosts that own the terminal should use the ``quiet`` preset.
"""

from __future__ import annotations

import os
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, MutableMapping, Optional, Tuple, cast

import telelog  # type: ignore[import]

tl = cast(Any, telelog)

ENV_PREFIX = "GAPEDIT_"
DEFAULT_LOGGER_NAME = os.getenv(f"{ENV_PREFIX}LOGGER", "gapedit")

_LOGGER_CACHE: MutableMapping[str, Any] = {}
_ACTIVE_CONFIG: Optional[Any] = None


def env(name: str, default: Optional[str] = None) -> Optional[str]:
    """Read ``GAPEDIT_<name>``."""

    return os.getenv(f"{ENV_PREFIX}{name}", default)


def env_flag(name: str, default: bool) -> bool:
    raw = env(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _log_file(fallback: str = "") -> str:
    return env("LOG_FILE") or fallback


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return repr(value) if isinstance(value, (dict, list, tuple, set)) else str(value)


def _pairs(data: Dict[str, Any]) -> list[tuple[str, str]]:
    return [(str(key), _as_text(value)) for key, value in data.items()]


def _development(config: Any) -> None:
    config.with_min_level("DEBUG")
    config.with_console_output(True)
    config.with_colored_output(True)
    config.with_json_format(False)


def _production(config: Any) -> None:
    config.with_min_level("INFO")
    config.with_console_output(False)
    config.with_file_output(_log_file("gapedit.log"))
    config.with_buffering(True)


def _quiet(config: Any) -> None:
    # The TUI owns stdout; only warnings, and only to a file if one is named.
    config.with_min_level("WARNING")
    config.with_console_output(False)
    if _log_file():
        config.with_file_output(_log_file())


PRESETS: Dict[str, Callable[[Any], None]] = {
    "development": _development,
    "production": _production,
    "quiet": _quiet,
}


def _preset_config(preset: str) -> Any:
    apply = PRESETS.get(preset.lower())
    if apply is None:
        raise ValueError(f"Unknown preset '{preset}'.")
    config = tl.Config()
    apply(config)
    config.with_profiling(True)
    return config


def _env_config() -> Any:
    config = tl.Config()
    config.with_min_level((env("LOG_LEVEL") or "INFO").upper())

    console = not env_flag("DISABLE_CONSOLE", False)
    config.with_console_output(console)
    if console:
        config.with_colored_output(not env_flag("NO_COLOR", False))
    if env_flag("LOG_JSON", False):
        config.with_json_format(True)
    if _log_file():
        config.with_file_output(_log_file())
    if env_flag("LOG_BUFFERED", False):
        config.with_buffering(True)
        config.with_buffer_size(int(env("LOG_BUFFER_SIZE") or "2048"))

    config.with_profiling(True)
    return config


def configure(*, config: Optional[Any] = None, preset: Optional[str] = None) -> None:
    """Swap the active telelog configuration.

    Pass a ready ``telelog.Config`` or the name of one of ``PRESETS``; with
    neither, the configuration is rebuilt from the environment. Loggers handed
    out earlier keep their old configuration, so the cache is emptied.
    """

    global _ACTIVE_CONFIG
    if config is not None and preset:
        raise ValueError("Provide either `config` or `preset`, not both.")

    if preset:
        config = _preset_config(preset)
    elif config is None:
        config = _env_config()

    _ACTIVE_CONFIG = config
    _LOGGER_CACHE.clear()


def get_logger(name: Optional[str] = None) -> Any:
    """Cached ``telelog.Logger``; ``None`` means ``GAPEDIT_LOGGER`` or ``gapedit``."""

    global _ACTIVE_CONFIG
    logger_name = name or DEFAULT_LOGGER_NAME
    cached = _LOGGER_CACHE.get(logger_name)
    if cached is None:
        if _ACTIVE_CONFIG is None:
            _ACTIVE_CONFIG = _env_config()
        cached = _LOGGER_CACHE[logger_name] = tl.Logger.with_config(
            logger_name, _ACTIVE_CONFIG
        )
    return cached


def _level_method(logger: Any, level: str) -> Tuple[Any, bool]:
    """The ``<level>_with`` variant when telelog has one, else the plain method."""

    name = level.lower()
    method = getattr(logger, f"{name}_with", None)
    if method is not None:
        return method, True
    method = getattr(logger, name, None)
    if method is None:
        raise ValueError(f"Unsupported log level '{level}'.")
    return method, False


def _log(logger: Any, level: str, message: str, payload: Dict[str, Any]) -> None:
    method, structured = _level_method(logger, level)
    if structured:
        method(message, _pairs(payload))
    else:
        method(f"{message} {payload}")


def record_event(
    name: str,
    *,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    _log(get_logger(logger_name), level, f"event::{name}", {"event": name, **(data or {})})


@dataclass
class SpanHandle:
    logger: Any
    span_name: str
    component_name: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = _as_text(value)

    def _emit(self, level: str, message: str, **extra: Any) -> None:
        payload: Dict[str, Any] = {"span": self.span_name, **self.metadata}
        if self.component_name:
            payload["component"] = self.component_name
        payload.update({key: _as_text(value) for key, value in extra.items()})
        _log(self.logger, level, message, payload)

    def fail(self, reason: str) -> None:
        """Exception escaped the span."""

        self._emit("error", "span::fail", reason=reason)

    def reject(self, status: str) -> None:
        """The command finished but failed with ``status`` (e.g. ``history_empty``)."""

        self._emit("warning", "span::reject", status=status)


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str | bool] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Iterator[SpanHandle]:
    """Profile the block under ``name``.

    ``component=True`` tracks the block as component ``name``; a string picks
    another component id (the core uses ``"commands"`` and ``"buffer"``).
    ``metadata`` is logger context while the block runs and starts out as the
    handle's metadata. Exceptions are logged with ``span::fail`` and re-raised.
    """

    log = get_logger(logger_name)
    component_name = name if component is True else component or None

    context = {key: _as_text(value) for key, value in (metadata or {}).items()}
    for key, value in context.items():
        log.add_context(key, value)

    handle = SpanHandle(
        logger=log,
        span_name=name,
        component_name=component_name,
        metadata=dict(context),
    )
    try:
        with ExitStack() as stack:
            if handle.component_name:
                stack.enter_context(log.track_component(handle.component_name))
            stack.enter_context(log.profile(name))
            try:
                yield handle
            except Exception as exc:
                handle.fail(str(exc))
                raise
    finally:
        for key in context:
            log.remove_context(key)


configure()
logger = get_logger()

__all__ = [
    "PRESETS",
    "SpanHandle",
    "configure",
    "env",
    "env_flag",
    "get_logger",
    "logger",
    "record_event",
    "span",
]
