"""Rendering values for the user."""

from __future__ import annotations

from typing import TYPE_CHECKING

from clyde.data import FileRange, LineRange, MultiFileRange, Position, Span
from clyde.types import Value, ValueKind

if TYPE_CHECKING:
    from clyde.file_system import FileSystem

# Sets with this many elements or more are summarised
MAX_SET_ITEMS = 5


def format_position(position: Position, fs: FileSystem) -> str:
    return f"{fs.show_path(position.file)}:{position.line + 1}:{position.column + 1}"


def format_range(rng: object, fs: FileSystem) -> str:
    if isinstance(rng, FileRange):
        return fs.show_path(rng.file)
    if isinstance(rng, LineRange):
        return f"{fs.show_path(rng.file)}:{rng.line + 1}"
    if isinstance(rng, MultiFileRange):
        return ", ".join(fs.show_path(f) for f in rng.files)
    if isinstance(rng, Span):
        return (
            f"{fs.show_path(rng.file)}:{rng.start_line + 1}:{rng.start_column + 1}"
            f"-{rng.end_line + 1}:{rng.end_column + 1}"
        )
    return repr(rng)


def format_value(value: Value, fs: FileSystem) -> str:
    """Format a value for display.

    Void and empty sets show as `()`. Sets of fewer than five elements are
    listed in brackets, larger ones are summarised as `[...]*N`.
    """
    if value.is_void():
        return "()"

    kind = value.kind
    if kind == ValueKind.SET:
        items = value.data
        if len(items) < MAX_SET_ITEMS:
            return "[" + ", ".join(format_value(v, fs) for v in items) + "]"
        return f"[...]*{len(items)}"
    if kind == ValueKind.NUMBER:
        return str(value.data)
    if kind == ValueKind.STRING:
        return repr(value.data)
    if kind == ValueKind.POSITION:
        return format_position(value.data, fs)
    if kind == ValueKind.RANGE:
        return format_range(value.data, fs)
    if kind == ValueKind.IDENTIFIER:
        return value.data.name
    if kind == ValueKind.DEFINITION:
        defn = value.data
        return f"{defn.kind} {defn.name} at {format_position(defn.span.start(), fs)}"
    if kind == ValueKind.QUERY:
        return f"<query: {value.ty.unquery()}>"
    return repr(value.data)
