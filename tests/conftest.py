"""Shared stubs for the Clyde tests: an in-memory file system, a recording
backend and an environment that keeps a history."""

from __future__ import annotations

from fnmatch import fnmatch
from pathlib import Path

import pytest

from clyde.backend import Backend
from clyde.data import Definition, FilePath, Identifier, LineRange, Span, range_files
from clyde.display import format_value
from clyde.environment import Environment
from clyde.errors import BackendError, VarNotFound
from clyde.file_system import FileSystem
from clyde.interpreter import History, Interpreter, SymbolTable
from clyde.parsing.query_parser import parse_stmt


class StubFs(FileSystem):
    """Files held in memory, keyed by their relative name."""

    def __init__(self, files: dict[str, str]) -> None:
        self.names = list(files)
        self.texts = files

    def find(self, pattern):
        return [
            FilePath(i)
            for i, name in enumerate(self.names)
            if fnmatch(name, pattern) or name.rsplit("/", 1)[-1] == pattern
        ]

    def all_files(self):
        return [FilePath(i) for i in range(len(self.names))]

    def with_file(self, path, fn):
        return fn(self.texts[self.names[path.key]].splitlines())

    def show_path(self, path):
        return self.names[path.key]

    def physical_path(self, path):
        return Path(self.names[path.key])

    def resolve_path(self, physical):
        return FilePath(self.names.index(Path(physical).as_posix()))


class StubBackend(Backend):
    """Serves a fixed list of identifiers and records every call."""

    def __init__(self, identifiers=(), definitions=None) -> None:
        self.identifiers = list(identifiers)
        self.definitions = definitions or {}
        self.calls: list[str] = []

    def identifier_at(self, position):
        self.calls.append("identifier_at")
        for ident in self.identifiers:
            if ident.span.contains(position):
                return ident
        return None

    def identifiers_in(self, rng):
        self.calls.append("identifiers_in")
        files = range_files(rng)
        result = [i for i in self.identifiers if i.span.file in files]
        if isinstance(rng, LineRange):
            result = [i for i in result if i.span.start_line == rng.line]
        return result

    def definition_of(self, identifier):
        self.calls.append("definition_of")
        try:
            return self.definitions[identifier.name]
        except KeyError:
            raise BackendError(f"No definition found for `{identifier.name}`") from None


class StubEnv(Environment):
    """Environment that records what it is asked to show."""

    def __init__(self, fs: FileSystem, backend: Backend) -> None:
        self.fs = fs
        self._backend = backend
        self.backend_requests = 0
        self.shown: list[str] = []
        self.meta: list = []
        self.history = History()
        self.symbols = SymbolTable()
        self.interpreter = Interpreter(self, self.symbols)

    def exec_meta(self, kind):
        self.meta.append(kind)

    def show(self, value):
        self.shown.append(format_value(value, self.fs))

    def lookup_var(self, var):
        raise VarNotFound(var)

    def lookup_numeric_var(self, index):
        return self.history.lookup(index)

    def file_system(self):
        return self.fs

    def backend(self):
        self.backend_requests += 1
        return self._backend

    def run(self, text: str):
        """Interpret one statement, recording it in the history like the REPL does."""
        try:
            value = self.interpreter.interpret_stmt(parse_stmt(text))
        except Exception:
            self.history.append(None)
            raise
        self.history.append(value)
        return value


FOO = FilePath(0)

# foo.rs:
#   fn main() {
#       let x = y;
#   }
FOO_SOURCE = "fn main() {\n    let x = y;\n}\n"


def ident(id: int, name: str, line: int, column: int) -> Identifier:
    return Identifier(id, name, Span(FOO, line, column, line, column + len(name)))


FOO_IDENTS = [
    ident(0, "fn", 0, 0),
    ident(1, "main", 0, 3),
    ident(2, "let", 1, 4),
    ident(3, "x", 1, 8),
    ident(4, "y", 1, 12),
]

FOO_DEFS = {
    "x": Definition("x", "variable", Span(FOO, 1, 8, 1, 9)),
    "main": Definition("main", "function", Span(FOO, 0, 3, 0, 7)),
}


@pytest.fixture
def fs() -> StubFs:
    return StubFs({"foo.rs": FOO_SOURCE, "src/bar.rs": "a\nb\n"})


@pytest.fixture
def backend() -> StubBackend:
    return StubBackend(FOO_IDENTS, FOO_DEFS)


@pytest.fixture
def env(fs, backend) -> StubEnv:
    return StubEnv(fs, backend)
