"""Executable Textual app that hosts the editing core."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Sequence

from textual import events
from textual.app import App, ComposeResult
from textual.containers import VerticalScroll
from textual.widgets import Footer, Header, Static

from gapedit.buffer import LoadFileError, TextBuffer
from gapedit.commands import CommandEngine
from gapedit.runtime import EditorSettings, telemetry

from .controller import BufferMirror, TextualEditorAdapter, TextualUIHooks

CURSOR_GLYPH = "█"


def render_mirror(mirror: BufferMirror) -> str:
    """Buffer text with a block glyph drawn at the cursor offset."""

    text = mirror.text
    offset = mirror.offset
    under = text[offset : offset + 1]
    if under and under != "\n":
        return text[:offset] + CURSOR_GLYPH + text[offset + 1 :]
    return text[:offset] + CURSOR_GLYPH + text[offset:]


class GapEditApp(App[None]):
    """Single-buffer editor: type to insert, ctrl+z/ctrl+y undo/redo, ctrl+s save."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#buffer-area {
		height: 1fr;
		border: round $accent;
		padding: 0 1;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}
	"""

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        buffer: TextBuffer,
        *,
        path: Optional[Path] = None,
        settings: Optional[EditorSettings] = None,
    ) -> None:
        super().__init__()
        self._buffer = buffer
        self._path = path
        self._settings = settings or EditorSettings.from_env()
        self.adapter: TextualEditorAdapter | None = None
        self._buffer_widget: Static | None = None
        self._status_widget: Static | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with VerticalScroll(id="buffer-area"):
            self._buffer_widget = Static("", id="buffer-view", markup=False)
            yield self._buffer_widget
        self._status_widget = Static("", id="status-line", markup=False)
        yield self._status_widget
        yield Footer()

    def on_mount(self) -> None:
        engine = CommandEngine(self._buffer, settings=self._settings)
        hooks = TextualUIHooks(
            update_buffer=self._update_buffer,
            update_status=self._update_status,
        )
        self.adapter = TextualEditorAdapter(engine, hooks, path=self._path)
        self.title = self._buffer.name

    def on_unmount(self) -> None:
        if self.adapter:
            self.adapter.close()

    async def on_key(self, event: events.Key) -> None:
        if not self.adapter or event.key in {"ctrl+q", "ctrl+c"}:
            return
        self.adapter.handle_textual_key(event.key, character=event.character)
        event.stop()

    def _update_buffer(self, mirror: BufferMirror) -> None:
        if self._buffer_widget:
            self._buffer_widget.update(render_mirror(mirror))
        row, col = mirror.cursor
        marker = " [+]" if mirror.dirty else ""
        self.sub_title = f"Ln {row + 1}, Col {col + 1}{marker}"

    def _update_status(self, status: str) -> None:
        if self._status_widget:
            self._status_widget.update(status)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Edit a text file with gapedit.")
    parser.add_argument("path", nargs="?", help="File to open (created on save)")
    parser.add_argument(
        "--log-preset",
        default="quiet",
        choices=("development", "production", "quiet"),
        help="telelog preset; anything but 'quiet' may draw over the UI",
    )
    return parser.parse_args(argv)


def load_buffer(path: Optional[Path]) -> TextBuffer:
    if path is None:
        return TextBuffer(name="untitled")
    if not path.exists():
        return TextBuffer(name=path.name)
    return TextBuffer.from_file(path)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    telemetry.configure(preset=args.log_preset)
    path = Path(args.path) if args.path else None
    try:
        buffer = load_buffer(path)
    except LoadFileError as exc:
        raise SystemExit(str(exc)) from exc
    GapEditApp(buffer, path=path).run()


if __name__ == "__main__":  # pragma: no cover - manual entry point
    main()
