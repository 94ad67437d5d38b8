"""Backend for Python source files, built on the standard library tokenizer.

Identifiers are NAME tokens that are not keywords. Definitions are the
names following `def` and `class`, and names assigned (or annotated) at the
start of a logical line, including tuple targets such as `a, b = ...`.
This is lexical: there is no scope analysis, so a name resolves to the
nearest earlier definition in the same file, then to the first definition
in any other file.
"""

from __future__ import annotations

import io
import itertools
import keyword
import logging
import tokenize
from dataclasses import dataclass, field

from clyde.backend.base import Backend
from clyde.data import Definition, FilePath, FileRange, Identifier, LineRange, MultiFileRange, Position, Range, Span
from clyde.errors import BackendError
from clyde.file_system import FileSystem

logger = logging.getLogger(__name__)

SOURCE_SUFFIXES = (".py", ".pyi")

# Keyword -> kind of the definition introduced by the following name
DEFINERS = {
    "def": "function",
    "class": "class",
}


@dataclass
class FileIndex:
    """Identifiers and definitions of one file."""

    identifiers: list[Identifier] = field(default_factory=list)
    definitions: dict[str, list[Definition]] = field(default_factory=dict)

    def define(self, name: str, kind: str, span: Span) -> None:
        self.definitions.setdefault(name, []).append(Definition(name, kind, span))


class PythonBackend(Backend):
    """Answers identifier and definition queries for `.py` files.

    Files are indexed the first time they are asked about, and the index is
    kept for the life of the backend.
    """

    def __init__(self, fs: FileSystem) -> None:
        self.fs = fs
        self._ids = itertools.count()
        self._indexes: dict[FilePath, FileIndex] = {}

    def identifier_at(self, position: Position) -> Identifier | None:
        for ident in self.index(position.file).identifiers:
            if ident.span.contains(position):
                return ident
        return None

    def identifiers_in(self, rng: Range) -> list[Identifier]:
        if isinstance(rng, MultiFileRange):
            result: list[Identifier] = []
            for path in rng.files:
                if self.handles(path):
                    result.extend(self.index(path).identifiers)
                else:
                    logger.debug("Skipping non-Python file %s", self.fs.show_path(path))
            return result

        idents = self.index(rng.file).identifiers
        if isinstance(rng, FileRange):
            return list(idents)
        if isinstance(rng, LineRange):
            return [i for i in idents if i.span.start_line == rng.line]
        return [i for i in idents if rng.contains(i.span.start())]

    def definition_of(self, identifier: Identifier) -> Definition:
        own = identifier.span.file
        defs = self.index(own).definitions.get(identifier.name)
        if defs:
            start = (identifier.span.start_line, identifier.span.start_column)
            before = [d for d in defs if (d.span.start_line, d.span.start_column) <= start]
            return before[-1] if before else defs[0]

        for path in self.fs.all_files():
            if path == own or not self.handles(path):
                continue
            defs = self.index(path).definitions.get(identifier.name)
            if defs:
                return defs[0]
        raise BackendError(f"No definition found for `{identifier.name}`")

    # ---- Indexing ----

    def handles(self, path: FilePath) -> bool:
        return self.fs.show_path(path).endswith(SOURCE_SUFFIXES)

    def index(self, path: FilePath) -> FileIndex:
        """Return the index for ``path``, building it on first use."""
        index = self._indexes.get(path)
        if index is None:
            if not self.handles(path):
                raise BackendError(f"Not a Python source file: `{self.fs.show_path(path)}`")
            index = self._index_file(path)
            self._indexes[path] = index
        return index

    def _index_file(self, path: FilePath) -> FileIndex:
        source = self.fs.with_file(path, lambda lines: "".join(line + "\n" for line in lines))
        index = FileIndex()
        try:
            self._scan(path, source, index)
        except (tokenize.TokenError, SyntaxError) as e:
            raise BackendError(f"Could not tokenize `{self.fs.show_path(path)}`: {e}") from e
        logger.debug(
            "Indexed %s: %d identifiers, %d defined names",
            self.fs.show_path(path),
            len(index.identifiers),
            len(index.definitions),
        )
        return index

    def _scan(self, path: FilePath, source: str, index: FileIndex) -> None:
        prev: tokenize.TokenInfo | None = None
        # Candidate assignment targets at the start of a logical line
        targets: list[tuple[str, Span]] | None = []

        for tok in tokenize.generate_tokens(io.StringIO(source).readline):
            if tok.type in (tokenize.NL, tokenize.COMMENT):
                continue
            if tok.type in (tokenize.NEWLINE, tokenize.INDENT, tokenize.DEDENT):
                targets = []
                prev = tok
                continue

            if tok.type == tokenize.NAME and not keyword.iskeyword(tok.string):
                span = Span(path, tok.start[0] - 1, tok.start[1], tok.end[0] - 1, tok.end[1])
                index.identifiers.append(Identifier(next(self._ids), tok.string, span))
                if prev is not None and prev.type == tokenize.NAME and prev.string in DEFINERS:
                    index.define(tok.string, DEFINERS[prev.string], span)
                if targets is not None and (not targets or (prev is not None and prev.string == ",")):
                    targets.append((tok.string, span))
                else:
                    targets = None
            elif tok.type == tokenize.OP and targets:
                if tok.string == "=" or (tok.string == ":" and len(targets) == 1):
                    for name, span in targets:
                        index.define(name, "variable", span)
                    targets = None
                elif tok.string != ",":
                    targets = None
            else:
                targets = None
            prev = tok
