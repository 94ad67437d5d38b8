"""Lexer for the Clyde query language."""

from __future__ import annotations

import ply.lex as ply_lex

from clyde.errors import LexError
from clyde.parsing.tokens import SYMBOLS, Span, Token, TokenKind, TokenTree


class QueryLexer:
    """Lexer for tokenizing Clyde statements.

    Parenthesized regions are not lexed: the whole region, delimiters
    included, becomes a single RAWTREE token which the parser expands on
    demand (see ``expand``).
    """

    tokens = [
        "CARET",
        "DOLLAR",
        "ASTERISK",
        "EQ",
        "HASH",
        "SEMICOLON",
        "ARROW",
        "NUMBER",
        "IDENTIFIER",
        "RAWTREE",
    ]

    # Simple tokens
    t_CARET = r"\^"
    t_DOLLAR = r"\$"
    t_ASTERISK = r"\*"
    t_EQ = r"="

    # Ignored characters (all whitespace, statements end with `;` or end of input)
    t_ignore = " \t\r\n\f\v"

    def __init__(self) -> None:
        self.lexer: ply_lex.Lexer = None  # type: ignore
        # Offset of the current input within the logical input
        self.offset = 0

    def t_ARROW(self, t: ply_lex.LexToken) -> ply_lex.LexToken:
        r"->"
        return t

    def t_NUMBER(self, t: ply_lex.LexToken) -> ply_lex.LexToken:
        r"-?\d+"
        return t

    def t_HASH(self, t: ply_lex.LexToken) -> ply_lex.LexToken:
        r"\#"
        return t

    def t_SEMICOLON(self, t: ply_lex.LexToken) -> ply_lex.LexToken:
        r";"
        return t

    def t_RAWTREE(self, t: ply_lex.LexToken) -> ply_lex.LexToken:
        r"\("
        data = t.lexer.lexdata
        depth = 1
        pos = t.lexpos + 1
        while pos < len(data):
            ch = data[pos]
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth == 0:
                    break
            pos += 1
        else:
            raise LexError(
                f"Unexpected end of input (unclosed delimiters), expected `{')' * depth}`",
                self.offset + len(data) - 1,
            )
        t.value = data[t.lexpos:pos + 1]
        t.lexer.lexpos = pos + 1
        return t

    def t_IDENTIFIER(self, t: ply_lex.LexToken) -> ply_lex.LexToken:
        r"[^\W\d_][^\W_]*"
        return t

    def t_error(self, t: ply_lex.LexToken) -> None:
        ch = t.value[0]
        if ch == "-":
            if t.lexpos + 1 >= len(t.lexer.lexdata):
                raise LexError("Unexpected end of input, expected `>`", self.offset + t.lexpos + 1)
            raise LexError("Unexpected token", self.offset + t.lexpos + 1)
        raise LexError(f"Unexpected token `{ch}`", self.offset + t.lexpos)

    # --- Lexer methods ---

    def build(self, **kwargs) -> None:  # type: ignore
        """Build the lexer."""
        kwargs.setdefault("errorlog", ply_lex.NullLogger())
        self.lexer = ply_lex.lex(module=self, **kwargs)

    def input(self, data: str, offset: int = 0) -> None:
        """Set the input string to tokenize."""
        self.offset = offset
        self.lexer.input(data)

    def token(self) -> ply_lex.LexToken | None:
        """Return the next token."""
        return self.lexer.token()

    def tokenize(self, data: str, offset: int = 0) -> list[ply_lex.LexToken]:
        """Tokenize the whole input, ignoring statement and comment boundaries."""
        self.input(data, offset)
        tokens = []
        while True:
            tok = self.token()
            if tok is None:
                break
            tokens.append(tok)
        return tokens

    def lex_tree(self, data: str, offset: int = 0) -> Token:
        """Lex one token tree from the start of ``data``.

        Stops before a `#` (the rest of the input is a comment) or after a
        `;`. Spans are offset by ``offset``.
        """
        self.input(data, offset)
        tokens: list[Token] = []
        end = len(data)
        while True:
            tok = self.token()
            if tok is None:
                break
            if tok.type == "HASH":
                end = tok.lexpos
                break
            tokens.append(self._convert(tok))
            if tok.type == "SEMICOLON":
                end = tok.lexpos + 1
                break
        return Token(
            kind=TokenKind.TREE,
            span=Span(offset, data[:end]),
            tree=TokenTree(tokens),
        )

    def _convert(self, tok: ply_lex.LexToken) -> Token:
        span = Span(self.offset + tok.lexpos, tok.value)
        if tok.type == "IDENTIFIER":
            return Token(kind=TokenKind.IDENT, span=span)
        if tok.type == "NUMBER":
            return Token(kind=TokenKind.NUMBER, span=span, value=int(tok.value))
        if tok.type == "RAWTREE":
            return Token(kind=TokenKind.RAW_TREE, span=span)
        return Token(kind=TokenKind.SYMBOL, span=span, symbol=SYMBOLS[tok.value])


_shared_lexer: QueryLexer | None = None


def _lexer() -> QueryLexer:
    global _shared_lexer
    if _shared_lexer is None:
        lexer = QueryLexer()
        lexer.build()
        _shared_lexer = lexer
    return _shared_lexer


def lex(input: str, offset: int = 0) -> Token:
    """Lex a token tree from ``input``; ``offset`` is added to every span."""
    return _lexer().lex_tree(input, offset)


def expand(raw: Token) -> Token:
    """Lex the interior of a RAW_TREE token, keeping absolute offsets."""
    if raw.kind != TokenKind.RAW_TREE:
        raise ValueError(f"Expected a raw token tree, found {raw.kind.value}")
    return lex(raw.span.inner(), raw.span.start + 1)
