from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

from gapedit.adapters.textual import BufferMirror, TextualEditorAdapter, TextualUIHooks
from gapedit.adapters.textual.app import load_buffer, render_mirror
from gapedit.buffer import BufferEvent, EventKind, TextBuffer
from gapedit.commands import CommandEngine
from gapedit.runtime import EditorSettings


def make_adapter(
    text: str = "",
    *,
    path: Optional[Path] = None,
    settings: Optional[EditorSettings] = None,
) -> Tuple[TextualEditorAdapter, List[BufferMirror], List[str]]:
    buffer = TextBuffer(name="doc.txt")
    buffer.insert_data(text)
    buffer.mark_pristine()
    engine = CommandEngine(buffer, settings=settings or EditorSettings())
    mirrors: List[BufferMirror] = []
    statuses: List[str] = []
    hooks = TextualUIHooks(
        update_buffer=mirrors.append,
        update_status=statuses.append,
    )
    return TextualEditorAdapter(engine, hooks, path=path), mirrors, statuses


def type_text(adapter: TextualEditorAdapter, text: str) -> None:
    for ch in text:
        adapter.handle_textual_key(ch, character=ch)


def test_typing_inserts_and_refreshes() -> None:
    adapter, mirrors, _ = make_adapter()

    type_text(adapter, "hi!")

    assert mirrors[-1].text == "hi!"
    assert mirrors[-1].cursor == (0, 3)
    assert mirrors[-1].dirty is True
    assert len(adapter.engine.history) == 3


def test_enter_moves_to_next_line() -> None:
    adapter, mirrors, _ = make_adapter("ab")

    result = adapter.handle_textual_key("enter")

    assert result is not None and result.ok
    assert mirrors[-1].text == "ab\n"
    assert mirrors[-1].cursor == (1, 0)
    assert mirrors[-1].line_count == 1


def test_backspace_and_delete() -> None:
    adapter, mirrors, _ = make_adapter("abc")

    adapter.handle_textual_key("backspace")
    adapter.handle_textual_key("left")
    adapter.handle_textual_key("delete")

    assert mirrors[-1].text == "a"
    assert mirrors[-1].offset == 1


def test_undo_and_redo_keys() -> None:
    adapter, mirrors, _ = make_adapter()
    type_text(adapter, "ok")

    adapter.handle_textual_key("ctrl+z")
    assert mirrors[-1].text == "o"

    adapter.handle_textual_key("ctrl+y")
    assert mirrors[-1].text == "ok"
    assert mirrors[-1].offset == 2


def test_undo_with_empty_history_sets_status() -> None:
    adapter, _, statuses = make_adapter()

    result = adapter.handle_textual_key("ctrl+z")

    assert result is not None and not result.ok
    assert statuses[-1] == "nothing to undo"


def test_backspace_at_start_sets_status() -> None:
    adapter, mirrors, statuses = make_adapter()

    adapter.handle_textual_key("backspace")

    assert statuses[-1] == "cannot remove before buffer start"
    assert mirrors[-1].text == ""


def test_cursor_moves_do_not_touch_history() -> None:
    adapter, mirrors, _ = make_adapter("one two\nthree")

    adapter.handle_textual_key("up")
    assert mirrors[-1].cursor == (0, 5)
    adapter.handle_textual_key("home")
    assert mirrors[-1].offset == 0
    adapter.handle_textual_key("ctrl+right")
    assert mirrors[-1].offset == 4
    adapter.handle_textual_key("end")
    assert mirrors[-1].offset == 7
    adapter.handle_textual_key("down")
    assert mirrors[-1].cursor == (1, 5)

    assert adapter.engine.history == ()


def test_unmapped_keys_are_ignored() -> None:
    adapter, mirrors, _ = make_adapter("x")
    before = len(mirrors)

    assert adapter.handle_textual_key("f5") is None
    assert len(mirrors) == before


def test_save_writes_file_and_clears_dirty(tmp_path: Path) -> None:
    path = tmp_path / "doc.txt"
    path.write_text("old", encoding="utf-8")
    adapter, mirrors, statuses = make_adapter(path=path)
    type_text(adapter, "new")

    assert adapter.handle_textual_key("ctrl+s") is None

    assert path.read_text(encoding="utf-8") == "new"
    assert statuses[-1] == "wrote 3 bytes to doc.txt"
    assert mirrors[-1].dirty is False


def test_save_refusal_is_reported(tmp_path: Path) -> None:
    path = tmp_path / "doc.txt"
    path.write_text("old", encoding="utf-8")
    adapter, mirrors, statuses = make_adapter(
        path=path, settings=EditorSettings(overwrite_on_save=False)
    )
    type_text(adapter, "new")

    assert adapter.save() is False

    assert "exists already" in statuses[-1]
    assert path.read_text(encoding="utf-8") == "old"
    assert mirrors[-1].dirty is True


def test_save_without_path() -> None:
    adapter, _, statuses = make_adapter()

    assert adapter.save() is False
    assert statuses[-1] == "no file name"


def test_adapter_forwards_events_and_logs() -> None:
    buffer = TextBuffer(name="doc")
    engine = CommandEngine(buffer, settings=EditorSettings())
    events: List[BufferEvent] = []
    logs: List[str] = []
    hooks = TextualUIHooks(
        update_buffer=lambda mirror: None,
        handle_event=events.append,
        log=logs.append,
    )
    adapter = TextualEditorAdapter(engine, hooks)

    adapter.handle_textual_key("a", character="a")
    adapter.close()
    adapter.handle_textual_key("b", character="b")

    assert events == [BufferEvent(EventKind.INSERTION, 0, "a")]
    assert any(line.startswith("key ->") for line in logs)
    assert any(line.startswith("event ->") for line in logs)
    assert any(line.startswith("result <-") for line in logs)


def test_render_mirror_draws_cursor() -> None:
    mirror = BufferMirror(text="ab\ncd", cursor=(0, 2), offset=2, line_count=1, dirty=False)

    assert render_mirror(mirror) == "ab█\ncd"
    mirror.offset = 0
    assert render_mirror(mirror) == "█b\ncd"


def test_load_buffer_variants(tmp_path: Path) -> None:
    existing = tmp_path / "have.txt"
    existing.write_text("data", encoding="utf-8")

    assert load_buffer(None).name == "untitled"
    assert len(load_buffer(tmp_path / "new.txt")) == 0
    assert load_buffer(existing).dump_to_string() == "data"
