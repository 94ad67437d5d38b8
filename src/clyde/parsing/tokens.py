"""Tokens and token trees produced by the Clyde lexer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class SymbolKind(Enum):
    """Punctuation recognised by the lexer."""

    CARET = "^"
    DOLLAR = "$"
    ASTERISK = "*"
    EQ = "="
    HASH = "#"
    SEMICOLON = ";"
    ARROW_RIGHT = "->"


# Mapping from symbol text to SymbolKind
SYMBOLS: dict[str, SymbolKind] = {sk.value: sk for sk in SymbolKind}


class TokenKind(Enum):
    """Kinds of token."""

    SYMBOL = "symbol"
    IDENT = "ident"
    NUMBER = "number"
    # Parenthesized region, not lexed yet. The span includes the delimiters.
    RAW_TREE = "raw_tree"
    # Flat sequence of sibling tokens, ended by `;` or the end of input.
    TREE = "tree"


@dataclass(frozen=True)
class Span:
    """A region of the original input: start offset plus the exact text."""

    start: int
    text: str

    @property
    def end(self) -> int:
        return self.start + len(self.text)

    def inner(self) -> str:
        """Return the text without its opening and closing delimiters."""
        return self.text[1:-1]


@dataclass
class TokenTree:
    """Sibling tokens from a single lexing pass."""

    tokens: list[Token] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.tokens)


@dataclass
class Token:
    """A single token.

    ``symbol`` is set for SYMBOL tokens, ``value`` for NUMBER tokens and
    ``tree`` for TREE tokens.
    """

    kind: TokenKind
    span: Span
    symbol: SymbolKind | None = None
    value: int | None = None
    tree: TokenTree | None = None

    def is_empty(self) -> bool:
        """Return True if there is nothing to parse in this token."""
        if self.kind == TokenKind.TREE:
            return self.tree is None or not self.tree.tokens
        if self.kind == TokenKind.RAW_TREE:
            return not self.span.inner().strip()
        return False

    def is_symbol(self, kind: SymbolKind) -> bool:
        return self.kind == TokenKind.SYMBOL and self.symbol == kind

    def is_ident(self, name: str | None = None) -> bool:
        if self.kind != TokenKind.IDENT:
            return False
        return name is None or self.span.text == name

    def __str__(self) -> str:
        return self.span.text
