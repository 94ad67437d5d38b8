"""Deferred backend computations.

A Query tree is built without a backend. ``Query.eval(backend)`` is the only
place backend calls happen; nothing is cached between evaluations, so each
statement re-forces its queries against the current backend state.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from clyde.errors import TypeCheckError
from clyde.types import DEFINITION, IDENTIFIER, STRING, Type, Value, ValueKind, coerce, elements

if TYPE_CHECKING:
    from clyde.backend import Backend


class Query(ABC):
    """A computation producing a value of type ``ty`` when evaluated."""

    ty: Type

    @abstractmethod
    def eval(self, backend: Backend) -> Value:
        ...


class ReadyQuery(Query):
    """An already-computed value. Evaluating it never touches the backend."""

    def __init__(self, value: Value) -> None:
        self.value = value
        self.ty = value.ty

    def eval(self, backend: Backend) -> Value:
        return self.value

    def __repr__(self) -> str:
        return f"ReadyQuery({self.value!r})"


class CallQuery(Query):
    """A pending call of ``function`` on the result of ``lhs``."""

    def __init__(
        self,
        function: QueryFunction,
        ty: Type,
        lhs: Query,
        args: tuple[Value, ...] = (),
    ) -> None:
        self.function = function
        self.ty = ty
        self.lhs = lhs
        self.args = args

    def eval(self, backend: Backend) -> Value:
        lhs = self.lhs.eval(backend)
        result = self.function.call(self, lhs, backend)
        if not result.ty.is_subtype(self.ty):
            raise TypeCheckError(
                f"`{self.function.NAME}` produced {result.ty}, expected {self.ty}"
            )
        return result

    def __repr__(self) -> str:
        return f"CallQuery({self.function.NAME}, {self.ty}, {self.lhs!r})"


def as_query(value: Value) -> Query:
    """The query carried by ``value``, or a ready query wrapping it."""
    if value.kind == ValueKind.QUERY:
        return value.data
    return ReadyQuery(value)


class QueryFunction(ABC):
    """The backend-calling half of a function, run when a CallQuery is forced."""

    NAME: str = ""

    @abstractmethod
    def call(self, node: CallQuery, lhs: Value, backend: Backend) -> Value:
        ...


class IdentsQuery(QueryFunction):
    """Identifiers at a position or within a range."""

    NAME = "idents"

    def call(self, node: CallQuery, lhs: Value, backend: Backend) -> Value:
        found = []
        for loc in elements(lhs):
            if loc.kind == ValueKind.POSITION:
                ident = backend.identifier_at(loc.data)
                if ident is not None:
                    found.append(ident)
            elif loc.kind == ValueKind.RANGE:
                found.extend(backend.identifiers_in(loc.data))
            else:
                raise TypeCheckError(f"Expected location, found {loc.ty}")
        return Value.set((Value.identifier(i) for i in found), IDENTIFIER)


class DefinitionQuery(QueryFunction):
    """Definitions of one or more identifiers."""

    NAME = "def"

    def call(self, node: CallQuery, lhs: Value, backend: Backend) -> Value:
        if node.ty.is_set():
            idents = elements(coerce(lhs, Type.set_of(IDENTIFIER), backend))
            defs = (Value.definition(backend.definition_of(i.data)) for i in idents)
            return Value.set(defs, DEFINITION)
        ident = coerce(lhs, IDENTIFIER, backend)
        return Value.definition(backend.definition_of(ident.data))


class PickQuery(QueryFunction):
    """First element of a set."""

    NAME = "pick"

    def call(self, node: CallQuery, lhs: Value, backend: Backend) -> Value:
        return coerce(lhs, node.ty, backend)


class CountQuery(QueryFunction):
    """Number of elements."""

    NAME = "count"

    def call(self, node: CallQuery, lhs: Value, backend: Backend) -> Value:
        return count(lhs)


class NameQuery(QueryFunction):
    """Names of identifiers or definitions."""

    NAME = "name"

    def call(self, node: CallQuery, lhs: Value, backend: Backend) -> Value:
        return names(lhs, node.ty)


def count(value: Value) -> Value:
    return Value.number(len(elements(value)))


def names(value: Value, ty: Type) -> Value:
    """Names of the identifiers or definitions in ``value``, as ``ty``."""
    result = []
    for item in elements(value):
        if item.kind not in (ValueKind.IDENTIFIER, ValueKind.DEFINITION):
            raise TypeCheckError(f"Expected identifier or definition, found {item.ty}")
        result.append(Value.string(item.data.name))
    return coerce(Value.set(result, STRING), ty)


IDENTS = IdentsQuery()
DEFINITIONS = DefinitionQuery()
PICK = PickQuery()
COUNT = CountQuery()
NAMES = NameQuery()
