"""Tests for deferred queries."""

import pytest

from conftest import FOO, FOO_DEFS, FOO_IDENTS, StubBackend
from clyde.backend import Backend
from clyde.data import FileRange, LineRange, Position
from clyde.errors import BackendError, EmptySetError, NotImplementedBackendError
from clyde.query import COUNT, DEFINITIONS, IDENTS, NAMES, PICK, CallQuery, ReadyQuery, as_query
from clyde.types import DEFINITION, IDENTIFIER, NUMBER, POSITION, STRING, Type, Value, ValueKind

SET_IDENT = Type.set_of(IDENTIFIER)


def idents_of(locator):
    return CallQuery(IDENTS, SET_IDENT, ReadyQuery(Value.from_locator(locator)))


class TestReadyQuery:
    """Tests for already-computed queries."""

    def test_eval_is_repeatable(self):
        backend = StubBackend()
        value = Value.number(7)
        query = ReadyQuery(value)
        assert query.eval(backend) == value
        assert query.eval(backend) == value
        assert backend.calls == []

    def test_type(self):
        assert ReadyQuery(Value.number(7)).ty == NUMBER

    def test_as_query(self):
        value = Value.number(1)
        assert isinstance(as_query(value), ReadyQuery)
        query = idents_of(FileRange(FOO))
        assert as_query(Value.query(query)) is query


class TestIdentsQuery:
    """Tests for identifier lookups."""

    def test_building_does_not_call_backend(self):
        backend = StubBackend(FOO_IDENTS)
        idents_of(FileRange(FOO))
        assert backend.calls == []

    def test_range(self):
        backend = StubBackend(FOO_IDENTS)
        result = idents_of(LineRange(FOO, 1)).eval(backend)
        assert result.ty == SET_IDENT
        assert [v.data.name for v in result.data] == ["let", "x", "y"]
        assert backend.calls == ["identifiers_in"]

    def test_position(self):
        backend = StubBackend(FOO_IDENTS)
        result = idents_of(Position(FOO, 0, 5)).eval(backend)
        assert [v.data.name for v in result.data] == ["main"]
        assert backend.calls == ["identifier_at"]

    def test_position_without_identifier(self):
        backend = StubBackend(FOO_IDENTS)
        result = idents_of(Position(FOO, 2, 0)).eval(backend)
        assert result.is_void()
        assert result.ty == SET_IDENT

    def test_each_eval_calls_backend(self):
        backend = StubBackend(FOO_IDENTS)
        query = idents_of(FileRange(FOO))
        query.eval(backend)
        query.eval(backend)
        assert backend.calls == ["identifiers_in", "identifiers_in"]

    def test_set_of_locations(self):
        backend = StubBackend(FOO_IDENTS)
        locations = Value.set(
            [Value.position(Position(FOO, 0, 0)), Value.position(Position(FOO, 1, 12))],
            POSITION,
        )
        result = CallQuery(IDENTS, SET_IDENT, ReadyQuery(locations)).eval(backend)
        assert [v.data.name for v in result.data] == ["fn", "y"]

    def test_not_implemented_backend(self):
        with pytest.raises(NotImplementedBackendError, match="identifiers_in"):
            idents_of(FileRange(FOO)).eval(Backend())


class TestChainedQueries:
    """Tests for queries built on other queries."""

    def test_pick_then_def(self):
        backend = StubBackend(FOO_IDENTS, FOO_DEFS)
        idents = idents_of(Position(FOO, 1, 8))
        pick = CallQuery(PICK, IDENTIFIER, idents)
        definition = CallQuery(DEFINITIONS, DEFINITION, pick)

        result = definition.eval(backend)
        assert result.kind == ValueKind.DEFINITION
        assert result.data == FOO_DEFS["x"]
        assert backend.calls == ["identifier_at", "definition_of"]

    def test_pick_empty(self):
        backend = StubBackend(FOO_IDENTS)
        pick = CallQuery(PICK, IDENTIFIER, idents_of(Position(FOO, 2, 0)))
        with pytest.raises(EmptySetError):
            pick.eval(backend)

    def test_def_of_set(self):
        backend = StubBackend(FOO_IDENTS, FOO_DEFS)
        query = CallQuery(DEFINITIONS, Type.set_of(DEFINITION), idents_of(Position(FOO, 0, 5)))
        result = query.eval(backend)
        assert result.ty == Type.set_of(DEFINITION)
        assert [v.data for v in result.data] == [FOO_DEFS["main"]]

    def test_missing_definition(self):
        backend = StubBackend(FOO_IDENTS, FOO_DEFS)
        query = CallQuery(DEFINITIONS, Type.set_of(DEFINITION), idents_of(LineRange(FOO, 0)))
        with pytest.raises(BackendError, match="`fn`"):
            query.eval(backend)

    def test_count(self):
        backend = StubBackend(FOO_IDENTS)
        result = CallQuery(COUNT, NUMBER, idents_of(FileRange(FOO))).eval(backend)
        assert result == Value.number(5)

    def test_names(self):
        backend = StubBackend(FOO_IDENTS)
        query = CallQuery(NAMES, Type.set_of(STRING), idents_of(LineRange(FOO, 0)))
        result = query.eval(backend)
        assert [v.data for v in result.data] == ["fn", "main"]
