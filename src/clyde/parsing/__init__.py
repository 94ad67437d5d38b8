"""Parsing module for the Clyde query language."""

from clyde.parsing.query_lexer import QueryLexer, expand, lex
from clyde.parsing.query_parser import (
    Apply,
    Assign,
    Context,
    Location,
    Meta,
    MetaKind,
    Program,
    QueryParser,
    Statement,
    VarRef,
    VoidExpr,
    parse_program,
    parse_statement,
    parse_stmt,
)
from clyde.parsing.tokens import SymbolKind, Token, TokenKind

__all__ = [
    "Apply",
    "Assign",
    "Context",
    "Location",
    "Meta",
    "MetaKind",
    "Program",
    "QueryLexer",
    "QueryParser",
    "Statement",
    "SymbolKind",
    "Token",
    "TokenKind",
    "VarRef",
    "VoidExpr",
    "expand",
    "lex",
    "parse_program",
    "parse_statement",
    "parse_stmt",
]
