"""Tests for the Clyde lexer."""

import pytest

from clyde.errors import LexError
from clyde.parsing import query_lexer
from clyde.parsing.query_lexer import QueryLexer, expand, lex
from clyde.parsing.tokens import SymbolKind, TokenKind


def kinds(tree):
    return [t.kind for t in tree.tree.tokens]


def texts(tree):
    return [t.span.text for t in tree.tree.tokens]


class TestQueryLexer:
    """Tests for the ply lexer class."""

    def test_tokenize_chain(self):
        """Test tokenizing a function chain."""
        lexer = QueryLexer()
        lexer.build()

        tokens = lexer.tokenize("$x -> idents -> show")
        token_types = [t.type for t in tokens]

        assert token_types == ["DOLLAR", "IDENTIFIER", "ARROW", "IDENTIFIER", "ARROW", "IDENTIFIER"]

    def test_tokenize_symbols(self):
        """Test tokenizing every symbol."""
        lexer = QueryLexer()
        lexer.build()

        tokens = lexer.tokenize("^ $ * = # ; ->")
        token_types = [t.type for t in tokens]

        assert token_types == ["CARET", "DOLLAR", "ASTERISK", "EQ", "HASH", "SEMICOLON", "ARROW"]

    def test_tokenize_numbers(self):
        """Test that negative numbers are single tokens."""
        lexer = QueryLexer()
        lexer.build()

        tokens = lexer.tokenize("$-12 $3")
        assert [(t.type, t.value) for t in tokens] == [
            ("DOLLAR", "$"),
            ("NUMBER", "-12"),
            ("DOLLAR", "$"),
            ("NUMBER", "3"),
        ]

    def test_raw_tree_is_one_token(self):
        """Test that a parenthesized region is not lexed."""
        lexer = QueryLexer()
        lexer.build()

        tokens = lexer.tokenize("show (a (b) @ c) $")
        assert [t.type for t in tokens] == ["IDENTIFIER", "RAWTREE", "DOLLAR"]
        assert tokens[1].value == "(a (b) @ c)"


class TestLex:
    """Tests for lexing token trees."""

    def test_kinds(self):
        tree = lex("select* (:foo.rs) -> idents -> show")
        assert tree.kind == TokenKind.TREE
        assert kinds(tree) == [
            TokenKind.IDENT,
            TokenKind.SYMBOL,
            TokenKind.RAW_TREE,
            TokenKind.SYMBOL,
            TokenKind.IDENT,
            TokenKind.SYMBOL,
            TokenKind.IDENT,
        ]
        raw = tree.tree.tokens[2]
        assert raw.span.inner().startswith(":")
        assert tree.tree.tokens[1].symbol == SymbolKind.ASTERISK
        assert tree.tree.tokens[3].symbol == SymbolKind.ARROW_RIGHT

    def test_number_value(self):
        tree = lex("$-1")
        assert tree.tree.tokens[1].kind == TokenKind.NUMBER
        assert tree.tree.tokens[1].value == -1

    def test_unicode_identifier(self):
        tree = lex("größe2")
        assert texts(tree) == ["größe2"]

    def test_underscore_is_not_an_identifier(self):
        with pytest.raises(LexError) as exc_info:
            lex("foo_bar")
        assert exc_info.value.position == 3

    def test_spans_cover_input(self):
        """Test that token spans reproduce the input, apart from whitespace."""
        source = "select* (:foo.rs) -> idents -> show"
        tree = lex(source)
        rebuilt = [" "] * len(source)
        for tok in tree.tree.tokens:
            rebuilt[tok.span.start:tok.span.end] = tok.span.text
        assert "".join(rebuilt) == source

    def test_offset_shifts_spans(self):
        """Test that lexing a suffix with an offset gives the same absolute spans."""
        source = "x = $1 -> pick -> show"
        full = lex(source, 0)
        suffix = lex(source[4:], 4)
        full_spans = [(t.span.start, t.span.text) for t in full.tree.tokens[2:]]
        suffix_spans = [(t.span.start, t.span.text) for t in suffix.tree.tokens]
        assert full_spans == suffix_spans

    def test_offset_on_tree_span(self):
        tree = lex("  $ ", 10)
        assert tree.span.start == 10
        assert tree.tree.tokens[0].span.start == 12

    def test_semicolon_ends_tree(self):
        tree = lex("$; show $")
        assert texts(tree) == ["$", ";"]
        assert tree.span.text == "$;"

    def test_hash_ends_tree(self):
        """Test that a comment stops lexing, so nothing after it is checked."""
        tree = lex("$ # comment (unclosed @")
        assert texts(tree) == ["$"]
        assert tree.span.text == "$ "

    def test_shared_lexer_is_built_on_first_use(self, monkeypatch):
        monkeypatch.setattr(query_lexer, "_shared_lexer", None)
        tree = lex("$ -> show")
        assert texts(tree) == ["$", "->", "show"]
        assert query_lexer._shared_lexer is not None
        assert query_lexer._shared_lexer.lexer is not None

    def test_empty(self):
        assert lex("").is_empty()
        assert lex("   \t\n").is_empty()
        assert lex("# just a comment").is_empty()
        assert not lex("$").is_empty()


class TestExpand:
    """Tests for lexing the interior of raw trees."""

    def test_expand_absolute_spans(self):
        tree = lex("show ($x -> pick)")
        raw = tree.tree.tokens[1]
        assert raw.kind == TokenKind.RAW_TREE

        inner = expand(raw)
        assert inner.kind == TokenKind.TREE
        assert texts(inner) == ["$", "x", "->", "pick"]
        assert [t.span.start for t in inner.tree.tokens] == [6, 7, 9, 12]

    def test_expand_nested(self):
        tree = lex("((a))")
        inner = expand(tree.tree.tokens[0])
        assert kinds(inner) == [TokenKind.RAW_TREE]
        assert inner.tree.tokens[0].span.start == 1

    def test_expand_error_position(self):
        tree = lex("show (foo @)")
        with pytest.raises(LexError) as exc_info:
            expand(tree.tree.tokens[1])
        assert exc_info.value.position == 10

    def test_expand_requires_raw_tree(self):
        tree = lex("$")
        with pytest.raises(ValueError):
            expand(tree)

    def test_whitespace_raw_tree_is_empty(self):
        tree = lex("(   )")
        assert tree.tree.tokens[0].is_empty()


class TestLexErrors:
    """Tests for lexer error messages and positions."""

    def test_invalid_character(self):
        with pytest.raises(LexError) as exc_info:
            lex("foo @")
        assert exc_info.value.message == "Unexpected token `@`"
        assert exc_info.value.position == 4

    def test_dash_at_end(self):
        with pytest.raises(LexError) as exc_info:
            lex("foo -")
        assert exc_info.value.message == "Unexpected end of input, expected `>`"
        assert exc_info.value.position == 5

    def test_dash_followed_by_other(self):
        with pytest.raises(LexError) as exc_info:
            lex("foo -x")
        assert exc_info.value.message == "Unexpected token"
        assert exc_info.value.position == 5

    def test_unclosed_paren(self):
        with pytest.raises(LexError) as exc_info:
            lex("show ((:foo")
        assert "unclosed delimiters" in exc_info.value.message
        assert "`))`" in exc_info.value.message
        assert exc_info.value.position == 10

    def test_error_position_includes_offset(self):
        with pytest.raises(LexError) as exc_info:
            lex("a @", 100)
        assert exc_info.value.position == 102

    def test_lex_error_is_syntax_error(self):
        with pytest.raises(SyntaxError):
            lex("!")

    def test_str_mentions_position(self):
        with pytest.raises(LexError) as exc_info:
            lex("!")
        assert str(exc_info.value) == "Unexpected token `!` at position 0"
