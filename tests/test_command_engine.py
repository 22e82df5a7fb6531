from __future__ import annotations

import random
from typing import List, Tuple

import pytest

from gapedit.buffer import BufferEvent, SharedBuffer, TextBuffer
from gapedit.commands import (
    CommandEngine,
    Delete,
    HistoryConsistencyError,
    Insert,
    InsertData,
    MacroPlay,
    MacroRecord,
    MacroStop,
    Redo,
    Remove,
    Undo,
)
from gapedit.runtime import EditorSettings


def make_engine(text: str = "", *, history_limit=None) -> Tuple[CommandEngine, TextBuffer]:
    buffer = TextBuffer(name="test")
    buffer.insert_data(text)
    engine = CommandEngine(buffer, settings=EditorSettings(history_limit=history_limit))
    return engine, buffer


def test_remove_then_undo_restores_text_and_cursor() -> None:
    engine, buffer = make_engine("hello")

    result = engine.execute(Remove(5, "o"))

    assert result.ok
    assert buffer.dump_to_string() == "hell"
    assert engine.history[-1].operation == Remove(4, "o")

    undone = engine.execute(Undo())

    assert undone.ok
    assert buffer.dump_to_string() == "hello"
    assert buffer.cursor.absolute == 5
    assert engine.history == ()
    assert len(engine.forward_history) == 1


def test_remove_at_start_is_rejected() -> None:
    engine, buffer = make_engine("abc")

    result = engine.execute(Remove(0))

    assert not result.ok
    assert result.status == "remove_at_start"
    assert buffer.dump_to_string() == "abc"
    assert engine.history == ()


def test_remove_mismatch_still_removes_actual_char() -> None:
    engine, buffer = make_engine("abc")

    result = engine.execute(Remove(2, "z"))

    assert result.ok
    assert result.message is not None and "'b'" in result.message
    assert buffer.dump_to_string() == "ac"
    assert engine.history[-1].operation == Remove(1, "b")


def test_delete_records_removed_char() -> None:
    engine, buffer = make_engine("abc")

    result = engine.execute(Delete(0))

    assert result.ok
    assert buffer.dump_to_string() == "bc"
    assert engine.history[-1].operation == Delete(0, "a")

    engine.execute(Undo())
    assert buffer.dump_to_string() == "abc"
    assert buffer.cursor.absolute == 3


def test_delete_at_end_reports_nothing_to_delete() -> None:
    engine, buffer = make_engine("abc")

    result = engine.execute(Delete(3))

    assert not result.ok
    assert result.status == "nothing_to_delete"
    assert engine.history == ()


@pytest.mark.parametrize(
    "operation",
    [Insert(9, "x"), InsertData(9, "xy"), Delete(9), Remove(9)],
)
def test_offsets_past_the_end_are_invalid(operation) -> None:
    engine, buffer = make_engine("abc")

    result = engine.execute(operation)

    assert not result.ok
    assert result.status == "invalid_position"
    assert buffer.dump_to_string() == "abc"
    assert buffer.cursor.absolute == 3
    assert engine.history == ()


def test_undo_and_redo_on_empty_stacks() -> None:
    engine, _ = make_engine()

    undo = engine.execute(Undo())
    redo = engine.execute(Redo())

    assert (undo.ok, undo.status) == (False, "history_empty")
    assert (redo.ok, redo.status) == (False, "forward_history_empty")
    assert not engine.can_undo()
    assert not engine.can_redo()


def test_insert_data_undoes_and_redoes_as_one_step() -> None:
    engine, buffer = make_engine("ad")

    engine.execute(InsertData(1, "bc\n"))
    assert buffer.dump_to_string() == "abc\nd"
    assert buffer.line_count == 1

    engine.execute(Undo())
    assert buffer.dump_to_string() == "ad"
    assert buffer.cursor.absolute == 2
    assert engine.forward_history[-1].inverse == (
        Remove(3, "\n"),
        Remove(2, "c"),
        Remove(1, "b"),
    )

    engine.execute(Redo())
    assert buffer.dump_to_string() == "abc\nd"
    assert buffer.cursor.absolute == 4
    assert buffer.line_count == 1
    assert engine.can_undo()
    assert not engine.can_redo()


def test_new_edit_clears_forward_history() -> None:
    engine, buffer = make_engine()

    engine.execute(Insert(0, "a"))
    engine.execute(Insert(1, "b"))
    engine.execute(Undo())
    assert engine.can_redo()

    engine.execute(Insert(1, "c"))

    assert not engine.can_redo()
    assert buffer.dump_to_string() == "ac"
    assert engine.execute(Redo()).status == "forward_history_empty"


def test_redo_keeps_older_redo_entries() -> None:
    engine, buffer = make_engine()
    for offset, ch in enumerate("xyz"):
        engine.execute(Insert(offset, ch))

    for _ in range(3):
        engine.execute(Undo())
    assert buffer.dump_to_string() == ""

    engine.execute(Redo())
    engine.execute(Redo())
    assert buffer.dump_to_string() == "xy"
    assert len(engine.forward_history) == 1


def _random_operation(rng: random.Random, length: int):
    choice = rng.random()
    if length == 0 or choice < 0.5:
        offset = rng.randint(0, length)
        if rng.random() < 0.2:
            return InsertData(offset, rng.choice(["ab", "x\ny", "{}", "\n"]))
        return Insert(offset, rng.choice("abc \n{}"))
    if choice < 0.75:
        return Remove(rng.randint(1, length))
    return Delete(rng.randint(0, length - 1))


@pytest.mark.parametrize("seed", [1, 7, 42, 2024])
def test_random_sequences_undo_and_redo_exactly(seed: int) -> None:
    rng = random.Random(seed)
    engine, buffer = make_engine("start\ntext")
    buffer.set_textpos(3)
    initial = (buffer.dump_to_string(), buffer.cursor.absolute, buffer.line_count)

    steps = 60
    for _ in range(steps):
        result = engine.execute(_random_operation(rng, len(buffer)))
        assert result.ok, result
    final = (buffer.dump_to_string(), buffer.cursor.absolute, buffer.line_count)

    for _ in range(steps):
        assert engine.execute(Undo()).ok
    assert (buffer.dump_to_string(), buffer.cursor.absolute, buffer.line_count) == initial
    assert engine.execute(Undo()).status == "history_empty"

    for _ in range(steps):
        assert engine.execute(Redo()).ok
    assert (buffer.dump_to_string(), buffer.cursor.absolute, buffer.line_count) == final


def test_history_limit_evicts_oldest() -> None:
    engine, buffer = make_engine(history_limit=2)
    for offset, ch in enumerate("abc"):
        engine.execute(Insert(offset, ch))

    assert len(engine.history) == 2
    engine.execute(Undo())
    engine.execute(Undo())

    assert buffer.dump_to_string() == "a"
    assert engine.execute(Undo()).status == "history_empty"


def test_register_buffer_drops_history() -> None:
    engine, _ = make_engine()
    engine.execute(Insert(0, "a"))
    engine.execute(Insert(1, "b"))
    engine.execute(Undo())

    other = TextBuffer(name="other")
    engine.register_buffer(other)

    assert engine.history == ()
    assert engine.forward_history == ()
    assert engine.buffer.name == "other"
    engine.execute(Insert(0, "z"))
    assert other.dump_to_string() == "z"


def test_accepts_shared_buffer_and_listener_can_read_back() -> None:
    shared = SharedBuffer(TextBuffer(name="shared"))
    engine = CommandEngine(shared, settings=EditorSettings())
    snapshots: List[str] = []

    def listener(event: BufferEvent) -> None:
        snapshots.append(shared.dump_to_string())

    shared.subscribe(listener)
    engine.execute(InsertData(0, "hi"))
    engine.execute(Remove(2))

    assert engine.buffer is shared
    assert snapshots == ["hi", "h"]


def test_edits_behind_the_engine_break_history() -> None:
    engine, buffer = make_engine()
    engine.execute(InsertData(0, "abc"))

    with engine.buffer.session() as inner:
        inner.clear_buffer_contents()

    with pytest.raises(HistoryConsistencyError) as excinfo:
        engine.execute(Undo())
    assert excinfo.value.operation == Remove(2, "c")
    assert buffer.dump_to_string() == ""
    assert len(engine.history) == 1


def test_unknown_operation_type_raises() -> None:
    engine, _ = make_engine()

    with pytest.raises(TypeError):
        engine.execute(object())  # type: ignore[arg-type]


def test_macro_record_and_play() -> None:
    engine, buffer = make_engine()

    assert engine.execute(MacroRecord("ab")).ok
    engine.execute(Insert(0, "a"))
    engine.execute(Insert(1, "b"))
    engine.execute(Undo())
    engine.execute(Redo())
    stopped = engine.execute(MacroStop())

    assert stopped.ok
    assert engine.macros.get("ab") == (Insert(0, "a"), Insert(1, "b"), Undo(), Redo())

    played = engine.execute(MacroPlay("ab"))

    assert played.ok
    assert buffer.dump_to_string() == "abab"
    assert len(engine.history) == 4

    engine.execute(Undo())
    engine.execute(Undo())
    assert buffer.dump_to_string() == "ab"


def test_macro_commands_report_misuse() -> None:
    engine, _ = make_engine()

    assert engine.execute(MacroPlay("missing")).status == "macro_not_found"
    assert engine.execute(MacroStop()).status == "macro_not_recording"
    engine.execute(MacroRecord("one"))
    assert engine.execute(MacroRecord("two")).status == "macro_already_recording"


def test_macro_playback_stops_on_recursion() -> None:
    engine, buffer = make_engine()
    engine.macros.load(
        {
            "a": [["insert", 0, "x"], ["macro_play", "b"]],
            "b": [["macro_play", "a"]],
        }
    )

    result = engine.execute(MacroPlay("a"))

    assert not result.ok
    assert result.status == "macro_recursion"
    assert "step 2" in (result.message or "")
    assert buffer.dump_to_string() == "x"


def test_macro_playback_stops_at_first_failure() -> None:
    engine, buffer = make_engine()
    engine.macros.load({"bad": [["insert", 0, "q"], ["remove", 5, ""], ["insert", 0, "r"]]})

    result = engine.execute(MacroPlay("bad"))

    assert not result.ok
    assert result.status == "invalid_position"
    assert buffer.dump_to_string() == "q"


def test_macros_survive_serialisation() -> None:
    engine, _ = make_engine()
    engine.execute(MacroRecord("greet"))
    engine.execute(InsertData(0, "hi"))
    engine.execute(MacroStop())

    data = engine.macros.serialize()
    other, buffer = make_engine()
    other.macros.load(data)
    other.execute(MacroPlay("greet"))

    assert data == {"greet": [["insert_data", 0, "hi"]]}
    assert other.macros.names() == ("greet",)
    assert buffer.dump_to_string() == "hi"


def test_failing_listener_leaves_history_in_step() -> None:
    engine, buffer = make_engine()
    engine.execute(Insert(0, "a"))

    def listener(event: BufferEvent) -> None:
        raise RuntimeError("listener failed")

    unsubscribe = engine.buffer.subscribe(listener)
    with pytest.raises(RuntimeError, match="listener failed"):
        engine.execute(Insert(1, "b"))
    unsubscribe()

    assert buffer.dump_to_string() == "ab"
    assert [entry.operation for entry in engine.history] == [
        Insert(0, "a"),
        Insert(1, "b"),
    ]
    assert engine.execute(Undo()).ok
    assert buffer.dump_to_string() == "a"


def test_undo_while_recording_is_replayed() -> None:
    engine, buffer = make_engine()

    engine.execute(MacroRecord("noop"))
    engine.execute(Insert(0, "x"))
    engine.execute(Undo())
    engine.execute(MacroStop())
    assert buffer.dump_to_string() == ""

    assert engine.execute(MacroPlay("noop")).ok
    assert buffer.dump_to_string() == ""
    assert engine.can_redo()


def test_failed_undo_restores_text_and_keeps_entry() -> None:
    engine, buffer = make_engine()
    engine.execute(InsertData(0, "abc"))

    with engine.buffer.session() as inner:
        inner.set_textpos(2)
        inner.remove()
        inner.insert_ch("X")
        inner.set_textpos(3)

    with pytest.raises(HistoryConsistencyError) as excinfo:
        engine.execute(Undo())

    assert excinfo.value.operation == Remove(1, "b")
    assert buffer.dump_to_string() == "aXc"
    assert buffer.cursor.absolute == 3
    assert [entry.operation for entry in engine.history] == [InsertData(0, "abc")]
    assert engine.forward_history == ()


def test_failed_redo_does_not_touch_text() -> None:
    engine, buffer = make_engine("ab")
    engine.execute(Remove(2))
    engine.execute(Undo())

    with engine.buffer.session() as inner:
        inner.set_textpos(2)
        inner.remove()
        inner.insert_ch("Z")

    with pytest.raises(HistoryConsistencyError):
        engine.execute(Redo())

    assert buffer.dump_to_string() == "aZ"
    assert len(engine.forward_history) == 1
