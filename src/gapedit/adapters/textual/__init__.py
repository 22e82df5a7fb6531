"""Textual host adapter. ``app`` needs textual; the controller does not."""

from .controller import BufferMirror, TextualEditorAdapter, TextualUIHooks

__all__ = ["BufferMirror", "TextualEditorAdapter", "TextualUIHooks"]
