"""Gap-buffer text storage, position tracking, and undoable edit commands."""

__all__ = [
    "adapters",
    "buffer",
    "commands",
    "runtime",
]

__version__ = "0.1.0"
