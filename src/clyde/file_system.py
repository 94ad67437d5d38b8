"""Mapping location literals to files, lines and columns."""

from __future__ import annotations

import itertools
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Callable, TypeVar

from clyde.data import FilePath, FileRange, LineRange, Locator, MultiFileRange, Position, Span
from clyde.errors import BadLocationError, FileSystemError

if TYPE_CHECKING:
    from clyde.parsing.query_parser import Location

logger = logging.getLogger(__name__)

T = TypeVar("T")

GLOB_CHARS = "*?["


class FileSystem(ABC):
    """Source files of a project, addressed through FilePath handles."""

    @abstractmethod
    def find(self, pattern: str) -> list[FilePath]:
        """Files matching ``pattern``. Zero, one or many matches are all valid."""

    @abstractmethod
    def all_files(self) -> list[FilePath]:
        """Every file of the project."""

    @abstractmethod
    def with_file(self, path: FilePath, fn: Callable[[list[str]], T]) -> T:
        """Call ``fn`` with the lines of ``path`` (without line endings)."""

    @abstractmethod
    def show_path(self, path: FilePath) -> str:
        """Display string for ``path``, relative to the project root."""

    @abstractmethod
    def physical_path(self, path: FilePath) -> Path:
        ...

    @abstractmethod
    def resolve_path(self, physical: Path) -> FilePath:
        ...

    def resolve_location(self, location: Location) -> Locator:
        return resolve_location(location, self)

    def get_line(self, path: FilePath, line: int) -> str:
        """Return line ``line`` (0-based) of ``path``."""

        def pick(lines: list[str]) -> str:
            if not 0 <= line < len(lines):
                raise FileSystemError(f"Line {line + 1} is out of range for `{self.show_path(path)}`")
            return lines[line]

        return self.with_file(path, pick)

    def line_count(self, path: FilePath) -> int:
        return self.with_file(path, len)

    def snippet(self, rng: FileRange | LineRange | MultiFileRange | Span) -> str:
        """The source text covered by a range."""
        if isinstance(rng, MultiFileRange):
            return "\n".join(self.snippet(FileRange(f)) for f in rng.files)
        if isinstance(rng, FileRange):
            return self.with_file(rng.file, "\n".join)
        if isinstance(rng, LineRange):
            return self.get_line(rng.file, rng.line)

        def cut(lines: list[str]) -> str:
            selected = lines[rng.start_line:rng.end_line + 1]
            if not selected:
                return ""
            if len(selected) == 1:
                return selected[0][rng.start_column:rng.end_column]
            selected[0] = selected[0][rng.start_column:]
            selected[-1] = selected[-1][:rng.end_column]
            return "\n".join(selected)

        return self.with_file(rng.file, cut)


def resolve_location(location: Location, fs: FileSystem) -> Locator:
    """Resolve a parsed location literal against ``fs``.

    - file, line and column: a Position
    - file and line: a LineRange
    - file only: a FileRange, or a MultiFileRange if the name matches several
    - nothing: a MultiFileRange of every file
    A line or column with several matching files, or without a file, is an
    error. A line (or column) of 0 counts as absent.
    """
    line = location.line_index
    column = location.column_index

    if location.file is None:
        if line is not None or column is not None:
            raise BadLocationError("a line or column needs a file name")
        files = fs.all_files()
        if not files:
            raise BadLocationError("there are no files")
        return MultiFileRange(tuple(files))

    files = fs.find(location.file)
    if not files:
        raise BadLocationError(f"no file matches `{location.file}`")
    if len(files) > 1:
        if line is not None or column is not None:
            raise BadLocationError(
                f"`{location.file}` matches {len(files)} files, "
                "a line or column needs exactly one"
            )
        return MultiFileRange(tuple(files))

    path = files[0]
    if line is None:
        if column is not None:
            raise BadLocationError("a column needs a line")
        return FileRange(path)

    count = fs.line_count(path)
    if line >= count:
        raise BadLocationError(
            f"line {line + 1} is past the end of `{fs.show_path(path)}` ({count} lines)"
        )
    if column is None:
        return LineRange(path, line)
    return Position(path, line, column)


class PhysicalFs(FileSystem):
    """Files on disk under a root directory.

    Each file is read at most once and its lines are kept for the life of
    the file system.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).resolve()
        self._keys = itertools.count()
        self._paths: dict[Path, FilePath] = {}
        self._physical: dict[FilePath, Path] = {}
        self._lines: dict[FilePath, list[str]] = {}

    def find(self, pattern: str) -> list[FilePath]:
        if Path(pattern).is_absolute():
            raise BadLocationError(f"absolute paths are not supported: `{pattern}`")
        if any(c in pattern for c in GLOB_CHARS):
            matches = [p for p in self.root.glob(pattern) if p.is_file()]
        elif (self.root / pattern).is_file():
            matches = [(self.root / pattern).resolve()]
        elif "/" not in pattern:
            matches = [p for p in self.root.rglob(pattern) if p.is_file()]
        else:
            matches = []
        matches = sorted(p for p in matches if self._visible(p))
        logger.debug("find(%r): %d match(es)", pattern, len(matches))
        return [self._intern(p) for p in matches]

    def all_files(self) -> list[FilePath]:
        files = sorted(p for p in self.root.rglob("*") if p.is_file() and self._visible(p))
        return [self._intern(p) for p in files]

    def with_file(self, path: FilePath, fn: Callable[[list[str]], T]) -> T:
        return fn(self._load(path))

    def show_path(self, path: FilePath) -> str:
        return self.physical_path(path).relative_to(self.root).as_posix()

    def physical_path(self, path: FilePath) -> Path:
        try:
            return self._physical[path]
        except KeyError:
            raise FileSystemError(f"Unknown file: {path}") from None

    def resolve_path(self, physical: Path) -> FilePath:
        physical = Path(physical)
        if not physical.is_absolute():
            physical = self.root / physical
        physical = physical.resolve()
        try:
            physical.relative_to(self.root)
        except ValueError:
            raise FileSystemError(f"`{physical}` is outside of `{self.root}`") from None
        return self._intern(physical)

    def _visible(self, path: Path) -> bool:
        """Return False for hidden paths or paths outside the root."""
        try:
            parts = path.relative_to(self.root).parts
        except ValueError:
            return False
        return not any(part.startswith(".") for part in parts)

    def _intern(self, physical: Path) -> FilePath:
        path = self._paths.get(physical)
        if path is None:
            path = FilePath(next(self._keys))
            self._paths[physical] = path
            self._physical[path] = physical
        return path

    def _load(self, path: FilePath) -> list[str]:
        lines = self._lines.get(path)
        if lines is None:
            physical = self.physical_path(path)
            try:
                lines = physical.read_text(encoding="utf-8").splitlines()
            except (OSError, UnicodeDecodeError) as e:
                raise FileSystemError(f"Could not read `{self.show_path(path)}`: {e}") from e
            logger.debug("Loaded %s (%d lines)", physical, len(lines))
            self._lines[path] = lines
        return lines
