"""Source-code facts produced by the file system and the backend.

Lines and columns are 0-based throughout; only the parser and the display
layer deal in 1-based numbers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class FilePath:
    """Opaque handle for a file known to a FileSystem.

    Only the file system that issued a path can turn it back into a
    physical path or display string.
    """

    key: int

    def __str__(self) -> str:
        return f"<file {self.key}>"


@dataclass(frozen=True)
class Position:
    """A single point in a file."""

    file: FilePath
    line: int
    column: int


@dataclass(frozen=True)
class FileRange:
    """A whole file."""

    file: FilePath


@dataclass(frozen=True)
class MultiFileRange:
    """Several whole files, e.g. every match of a pattern."""

    files: tuple[FilePath, ...]


@dataclass(frozen=True)
class LineRange:
    """A whole line of a file."""

    file: FilePath
    line: int


@dataclass(frozen=True)
class Span:
    """A region of a file. ``end_column`` is exclusive."""

    file: FilePath
    start_line: int
    start_column: int
    end_line: int
    end_column: int

    def contains(self, position: Position) -> bool:
        if position.file != self.file:
            return False
        start = (self.start_line, self.start_column)
        end = (self.end_line, self.end_column)
        return start <= (position.line, position.column) < end

    def start(self) -> Position:
        return Position(self.file, self.start_line, self.start_column)


Range = Union[FileRange, MultiFileRange, LineRange, Span]
Locator = Union[Position, FileRange, MultiFileRange, LineRange, Span]

RANGE_TYPES = (FileRange, MultiFileRange, LineRange, Span)


def range_files(rng: Range) -> tuple[FilePath, ...]:
    """Return the files covered by a range."""
    if isinstance(rng, MultiFileRange):
        return rng.files
    return (rng.file,)


@dataclass(frozen=True)
class Identifier:
    """An occurrence of a name in the source.

    ``id`` is unique per occurrence within one backend session.
    """

    id: int
    name: str
    span: Span


@dataclass(frozen=True)
class Definition:
    """Where a name is defined. ``kind`` is `function`, `class` or `variable`."""

    name: str
    kind: str
    span: Span
