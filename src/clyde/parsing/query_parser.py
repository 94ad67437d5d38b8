"""Parser for the Clyde query language."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, TypeVar, Union

from clyde.errors import EmptyInput, ParseError
from clyde.parsing.query_lexer import expand, lex
from clyde.parsing.tokens import SymbolKind, Token, TokenKind

T = TypeVar("T")


@dataclass(frozen=True)
class Context:
    """The raw input of a statement plus an opaque fragment owned by the driver."""

    input: str | None = None
    env_ctx: Any = None


@dataclass(frozen=True)
class Identifier:
    """A name in the source text, e.g. a function name."""

    name: str
    ctx: Context = field(default_factory=Context, compare=False)


# ---- Meta variables ----


@dataclass(frozen=True)
class Dollar:
    """`$`: the most recent result."""

    def __str__(self) -> str:
        return "$"


@dataclass(frozen=True)
class Numeric:
    """`$n` or `$-n`: an absolute or (negative) relative history index."""

    index: int

    def __str__(self) -> str:
        return f"${self.index}"


@dataclass(frozen=True)
class Named:
    """`$name`: a named variable."""

    name: str

    def __str__(self) -> str:
        return self.name


MetaVar = Union[Dollar, Numeric, Named]


# ---- Expressions ----


@dataclass(frozen=True)
class VoidExpr:
    """`()`."""

    ctx: Context = field(default_factory=Context, compare=False)


@dataclass(frozen=True)
class VarRef:
    """A reference to a meta variable."""

    var: MetaVar
    ctx: Context = field(default_factory=Context, compare=False)


@dataclass(frozen=True)
class Location:
    """A location literal such as `(:src/foo.py:12:4)`.

    ``line`` and ``column`` are the 1-based numbers as typed.
    """

    file: str | None = None
    line: int | None = None
    column: int | None = None
    ctx: Context = field(default_factory=Context, compare=False)

    @property
    def line_index(self) -> int | None:
        """The 0-based line, or None if no (or a zero) line was given."""
        if self.line is None or self.line == 0:
            return None
        return self.line - 1

    @property
    def column_index(self) -> int | None:
        """The 0-based column, or None if no (or a zero) column was given."""
        if self.column is None or self.column == 0:
            return None
        return self.column - 1

    def is_unspecified(self) -> bool:
        return self.file is None and self.line is None and self.column is None


@dataclass(frozen=True)
class Apply:
    """Application of a named function: `lhs -> ident args...`.

    ``shorthand`` is set when the function name led the expression
    (`show $`), ``many`` when the name was followed by `*` (`select*`).
    """

    ident: Identifier
    lhs: Expr
    args: tuple[Expr, ...] = ()
    many: bool = False
    shorthand: bool = False
    ctx: Context = field(default_factory=Context, compare=False)


Expr = Union[VoidExpr, VarRef, Location, Apply]


# ---- Statements ----


class MetaKind(Enum):
    """Meta-commands, written `^help` and `^exit`."""

    HELP = "help"
    EXIT = "exit"


@dataclass(frozen=True)
class Meta:
    kind: MetaKind


@dataclass(frozen=True)
class Assign:
    """`name = expr`."""

    name: Identifier
    expr: Expr


@dataclass(frozen=True)
class Statement:
    """A single parsed statement."""

    kind: Union[Expr, Meta, Assign]
    ctx: Context = field(default_factory=Context, compare=False)


@dataclass
class Program:
    """A sequence of statements."""

    statements: list[Statement] = field(default_factory=list)


class QueryParser:
    """Recursive-descent parser over one lexed token tree.

    Grammar::

        statement := '^' IDENT | IDENT '=' expr | expr    then [';']
        expr      := term ('->' IDENT ['*'] primary*)*
        term      := IDENT ['*'] primary+ | primary
        primary   := '$' [NUMBER | IDENT] | RAW_TREE
    """

    def __init__(self, tree: Token, ctx: Context | None = None) -> None:
        if tree.kind != TokenKind.TREE or tree.tree is None:
            raise ParseError(f"Expected a lexed token tree, found {tree.kind.value}")
        self.tokens = tree.tree.tokens
        self.position = 0
        self.ctx = ctx or Context()

    # --- Statements ---

    def parse_stmt(self) -> Statement:
        tok = self.peek()
        if tok is None:
            raise self.make_err("Expected statement, found end of input")

        if tok.is_symbol(SymbolKind.CARET):
            kind: Union[Expr, Meta, Assign] = self.meta()
        elif tok.is_ident() and self.peek(1) is not None and self.peek(1).is_symbol(SymbolKind.EQ):
            kind = self.assign()
        else:
            kind = self.parse_expr()

        self.maybe_semi()
        return Statement(kind=kind, ctx=self.ctx)

    def meta(self) -> Meta:
        self.expect_symbol(SymbolKind.CARET)
        ident = self.identifier()
        try:
            return Meta(MetaKind(ident.name))
        except ValueError:
            raise self.make_err(f"Unknown meta-command: `^{ident.name}`") from None

    def assign(self) -> Assign:
        name = self.identifier()
        self.expect_symbol(SymbolKind.EQ)
        return Assign(name=name, expr=self.parse_expr())

    # --- Expressions ---

    def parse_expr(self) -> Expr:
        return self.exactly_one("expression", lambda this: this.maybe_expr())

    def maybe_expr(self) -> Expr | None:
        expr = self.maybe_term()
        if expr is None:
            return None
        while self.peek() is not None and self.peek().is_symbol(SymbolKind.ARROW_RIGHT):
            self.bump()
            ident = self.identifier()
            many = self.maybe_asterisk()
            args = self.zero_or_more(lambda this: this.maybe_primary())
            expr = Apply(ident=ident, lhs=expr, args=tuple(args), many=many, ctx=self.ctx)
        return expr

    def maybe_term(self) -> Expr | None:
        tok = self.peek()
        if tok is None:
            return None
        if tok.is_ident():
            ident = self.identifier()
            many = self.maybe_asterisk()
            operands = self.one_or_more("expression", lambda this: this.maybe_primary())
            return Apply(
                ident=ident,
                lhs=operands[0],
                args=tuple(operands[1:]),
                many=many,
                shorthand=True,
                ctx=self.ctx,
            )
        return self.maybe_primary()

    def maybe_primary(self) -> Expr | None:
        tok = self.peek()
        if tok is None:
            return None
        if tok.is_symbol(SymbolKind.DOLLAR):
            self.bump()
            return VarRef(var=self.meta_var(tok), ctx=self.ctx)
        if tok.kind == TokenKind.RAW_TREE:
            return self.raw_tree()
        return None

    def meta_var(self, dollar: Token) -> MetaVar:
        # `$name` and `$n` are written without a space after `$`
        tok = self.peek()
        if tok is None or tok.span.start != dollar.span.end:
            return Dollar()
        if tok.kind == TokenKind.NUMBER:
            self.bump()
            return Numeric(tok.value)  # type: ignore[arg-type]
        if tok.is_ident():
            self.bump()
            return Named(tok.span.text)
        return Dollar()

    def raw_tree(self) -> Expr:
        tok = self.next()
        inner = tok.span.inner()
        if inner.lstrip().startswith(":"):
            return LocationParser(inner, self.ctx).location()

        nested = QueryParser(expand(tok), self.ctx)
        expr = nested.maybe_expr()
        nested.end()
        if expr is None:
            return VoidExpr(ctx=self.ctx)
        return expr

    # --- Helpers ---

    def identifier(self) -> Identifier:
        tok = self.next()
        if tok.kind == TokenKind.IDENT:
            return Identifier(name=tok.span.text, ctx=self.ctx)
        raise self.make_err(f"Expected identifier, found `{tok}`", tok)

    def maybe_asterisk(self) -> bool:
        tok = self.peek()
        if tok is not None and tok.is_symbol(SymbolKind.ASTERISK):
            self.bump()
            return True
        return False

    def maybe_semi(self) -> None:
        tok = self.peek()
        if tok is None:
            return
        if tok.is_symbol(SymbolKind.SEMICOLON):
            self.bump()
            return
        raise self.make_err(f"Unexpected token: `{tok}`", tok)

    def expect_symbol(self, kind: SymbolKind) -> None:
        tok = self.next()
        if not tok.is_symbol(kind):
            raise self.make_err(f"Expected `{kind.value}`, found `{tok}`", tok)

    def end(self) -> None:
        """Fail unless every token has been consumed."""
        tok = self.peek()
        if tok is not None:
            raise self.make_err(f"Unexpected token: `{tok}`", tok)

    def peek(self, ahead: int = 0) -> Token | None:
        pos = self.position + ahead
        if pos < len(self.tokens):
            return self.tokens[pos]
        return None

    def bump(self) -> None:
        if self.position < len(self.tokens):
            self.position += 1

    def next(self) -> Token:
        tok = self.peek()
        if tok is None:
            raise self.make_err("Unexpected end of statement")
        self.bump()
        return tok

    def zero_or_more(self, f: Callable[[QueryParser], T | None]) -> list[T]:
        result = []
        while True:
            item = f(self)
            if item is None:
                return result
            result.append(item)

    def one_or_more(self, expected: str, f: Callable[[QueryParser], T | None]) -> list[T]:
        result = self.zero_or_more(f)
        if not result:
            raise self.make_err(f"Expected {expected}, found {self._describe_next()}", self.peek())
        return result

    def exactly_one(self, expected: str, f: Callable[[QueryParser], T | None]) -> T:
        result = f(self)
        if result is None:
            raise self.make_err(f"Expected {expected}, found {self._describe_next()}", self.peek())
        return result

    def _describe_next(self) -> str:
        tok = self.peek()
        return "end of input" if tok is None else f"`{tok}`"

    def make_err(self, msg: str, tok: Token | None = None) -> ParseError:
        return ParseError(msg, tok.span.start if tok is not None else None)


class LocationParser:
    """Parser for the location mini-grammar.

    A location consists of a filename, a line number and a column number,
    all optional:

    `:`          unspecified location
    `:str`       just a filename (which may be a pattern)
    `:n`         just a line number
    `:str:n`     filename and line number
    `:n:n`       line and column numbers
    `:str:n:n`   fully specified

    A trailing colon is permitted for any of the above forms.
    """

    def __init__(self, input: str, ctx: Context | None = None) -> None:
        self.input = input.strip()
        self.ctx = ctx or Context()

    def location(self) -> Location:
        if not self.input.startswith(":"):
            raise ParseError(f"Invalid location, expected `:`, found `{self.input}`")

        segments = [s.strip() for s in self.input[1:].split(":")]
        if len(segments) > 1 and not segments[-1]:
            segments.pop()
        if len(segments) > 3:
            raise ParseError(f"Invalid location, unexpected `{segments[3]}`")

        first = segments[0]
        if not first:
            if len(segments) > 1:
                raise ParseError(f"Invalid location, unexpected `{segments[1]}`")
            return Location(ctx=self.ctx)

        if first.isdecimal():
            if len(segments) > 2:
                raise ParseError(f"Invalid location, unexpected `{segments[2]}`")
            column = self.number(segments[1]) if len(segments) > 1 else None
            return Location(line=int(first), column=column, ctx=self.ctx)

        line = self.number(segments[1]) if len(segments) > 1 else None
        column = self.number(segments[2]) if len(segments) > 2 else None
        return Location(file=first, line=line, column=column, ctx=self.ctx)

    @staticmethod
    def number(s: str) -> int:
        if not s.isdecimal():
            raise ParseError(f"Invalid location, expected number, found `{s}`")
        return int(s)


def parse_statement(tree: Token, ctx: Context | None = None) -> Statement:
    """Parse an already-lexed token tree into a statement."""
    parser = QueryParser(tree, ctx)
    result = parser.parse_stmt()
    parser.end()
    return result


def parse_stmt(text: str, env_ctx: Any = None) -> Statement:
    """Lex and parse a single statement.

    Raises EmptyInput if ``text`` holds nothing but whitespace or a comment.
    """
    tree = lex(text, 0)
    if tree.is_empty():
        raise EmptyInput()
    return parse_statement(tree, Context(input=text, env_ctx=env_ctx))


def parse_program(text: str) -> Program:
    """Parse a script of `;`-separated statements.

    `#` starts a comment running to the end of the line.
    """
    program = Program()
    pos = 0
    while pos < len(text):
        tree = lex(text[pos:], pos)
        end = tree.span.end
        tokens = tree.tree.tokens if tree.tree is not None else []
        # A lone `;` is an empty statement
        if tokens and not (len(tokens) == 1 and tokens[0].is_symbol(SymbolKind.SEMICOLON)):
            source = text[pos:end]
            program.statements.append(parse_statement(tree, Context(input=source)))
        if end < len(text) and text[end] == "#":
            newline = text.find("\n", end)
            end = len(text) if newline == -1 else newline + 1
        pos = end
    return program
