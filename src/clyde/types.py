"""Types, values and coercion for the Clyde interpreter.

The type lattice is closed::

    Void, Number, String, Identifier, Location, Position, Range,
    Definition, Set(T), Query(T)

Subtyping (checked before evaluation):

- ``T <: Set(T)``, and ``Void <: Set(T)`` (an empty set is void)
- ``T <: Query(T)``
- ``Position <: Location`` and ``Range <: Location``

Coercion (applied during evaluation) lives in ``coerce``; every function
goes through it rather than converting values by hand.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable

from clyde.data import RANGE_TYPES, Definition, Identifier, Locator, Position
from clyde.errors import BackendError, EmptySetError, TypeCheckError

if TYPE_CHECKING:
    from clyde.backend import Backend
    from clyde.query import Query


class TypeKind(Enum):
    """Kinds of type in the lattice."""

    VOID = "Void"
    NUMBER = "Number"
    STRING = "String"
    IDENTIFIER = "Identifier"
    LOCATION = "Location"
    POSITION = "Position"
    RANGE = "Range"
    DEFINITION = "Definition"
    SET = "Set"
    QUERY = "Query"


_WRAPPERS = (TypeKind.SET, TypeKind.QUERY)
_LOCATIONS = (TypeKind.LOCATION, TypeKind.POSITION, TypeKind.RANGE)


@dataclass(frozen=True)
class Type:
    """A type. ``inner`` is set for Set and Query, and only for them."""

    kind: TypeKind
    inner: Type | None = None

    def __post_init__(self) -> None:
        if (self.kind in _WRAPPERS) != (self.inner is not None):
            raise ValueError(f"Malformed type: {self.kind.value} with inner {self.inner}")

    @staticmethod
    def set_of(inner: Type) -> Type:
        return Type(TypeKind.SET, inner)

    @staticmethod
    def query_of(inner: Type) -> Type:
        return Type(TypeKind.QUERY, inner)

    def is_void(self) -> bool:
        return self.kind == TypeKind.VOID

    def is_set(self) -> bool:
        return self.kind == TypeKind.SET

    def is_query(self) -> bool:
        return self.kind == TypeKind.QUERY

    def unquery(self) -> Type:
        """Strip any number of Query wrappers."""
        ty = self
        while ty.kind == TypeKind.QUERY:
            ty = ty.inner  # type: ignore[assignment]
        return ty

    def element(self) -> Type:
        """The element type of a set, or the type itself."""
        if self.kind == TypeKind.SET:
            return self.inner  # type: ignore[return-value]
        return self

    def is_location(self) -> bool:
        """Whether a value of this type can be used where a location is expected."""
        if self.kind in _WRAPPERS:
            return self.inner.is_location()  # type: ignore[union-attr]
        return self.kind in _LOCATIONS

    def is_subtype(self, other: Type) -> bool:
        """Return True if ``self <: other``."""
        if self == other:
            return True
        if other.kind == TypeKind.SET:
            if self.kind == TypeKind.VOID:
                return True
            if self.kind == TypeKind.SET:
                return self.inner.is_subtype(other.inner)  # type: ignore[union-attr, arg-type]
            return self.is_subtype(other.inner)  # type: ignore[arg-type]
        if other.kind == TypeKind.QUERY:
            if self.kind == TypeKind.QUERY:
                return self.inner.is_subtype(other.inner)  # type: ignore[union-attr, arg-type]
            return self.is_subtype(other.inner)  # type: ignore[arg-type]
        if other.kind == TypeKind.LOCATION:
            return self.kind in (TypeKind.POSITION, TypeKind.RANGE)
        return False

    def __str__(self) -> str:
        if self.inner is not None:
            return f"{self.kind.value}<{self.inner}>"
        return self.kind.value


VOID = Type(TypeKind.VOID)
NUMBER = Type(TypeKind.NUMBER)
STRING = Type(TypeKind.STRING)
IDENTIFIER = Type(TypeKind.IDENTIFIER)
LOCATION = Type(TypeKind.LOCATION)
POSITION = Type(TypeKind.POSITION)
RANGE = Type(TypeKind.RANGE)
DEFINITION = Type(TypeKind.DEFINITION)


class ValueKind(Enum):
    """Kinds of runtime value. Mirrors TypeKind, minus Location."""

    VOID = "void"
    NUMBER = "number"
    STRING = "string"
    SET = "set"
    POSITION = "position"
    RANGE = "range"
    IDENTIFIER = "identifier"
    DEFINITION = "definition"
    QUERY = "query"


@dataclass(frozen=True, eq=False)
class Value:
    """A runtime value.

    Build values with the constructors below so that ``ty`` and ``kind``
    always agree. ``data`` holds the payload: an int, a str, a tuple of
    Values, a data object or a Query.
    """

    ty: Type
    kind: ValueKind
    data: Any = None

    @staticmethod
    def void() -> Value:
        return Value(VOID, ValueKind.VOID)

    @staticmethod
    def number(n: int) -> Value:
        return Value(NUMBER, ValueKind.NUMBER, n)

    @staticmethod
    def string(s: str) -> Value:
        return Value(STRING, ValueKind.STRING, s)

    @staticmethod
    def set(items: Iterable[Value], elem_ty: Type) -> Value:
        items = tuple(items)
        for item in items:
            if not item.ty.is_subtype(elem_ty):
                raise TypeCheckError(f"Set element of type {item.ty} is not a {elem_ty}")
        return Value(Type.set_of(elem_ty), ValueKind.SET, items)

    @staticmethod
    def position(position: Position) -> Value:
        return Value(POSITION, ValueKind.POSITION, position)

    @staticmethod
    def range(rng: Any) -> Value:
        return Value(RANGE, ValueKind.RANGE, rng)

    @staticmethod
    def identifier(ident: Identifier) -> Value:
        return Value(IDENTIFIER, ValueKind.IDENTIFIER, ident)

    @staticmethod
    def definition(defn: Definition) -> Value:
        return Value(DEFINITION, ValueKind.DEFINITION, defn)

    @staticmethod
    def query(query: Query) -> Value:
        return Value(Type.query_of(query.ty), ValueKind.QUERY, query)

    @staticmethod
    def from_locator(locator: Locator) -> Value:
        if isinstance(locator, Position):
            return Value.position(locator)
        if isinstance(locator, RANGE_TYPES):
            return Value.range(locator)
        raise TypeError(f"Not a locator: {locator!r}")

    def is_void(self) -> bool:
        """True for Void and for an empty set."""
        if self.kind == ValueKind.VOID:
            return True
        return self.kind == ValueKind.SET and not self.data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        if self.is_void() and other.is_void():
            return True
        return self.ty == other.ty and self.kind == other.kind and self.data == other.data

    __hash__ = None  # type: ignore[assignment]


def elements(value: Value) -> tuple[Value, ...]:
    """View a value as a set: void is empty, a bare value is a singleton."""
    if value.kind == ValueKind.SET:
        return value.data
    if value.kind == ValueKind.VOID:
        return ()
    return (value,)


def can_coerce(actual: Type, expected: Type) -> bool:
    """Return True if a value of type ``actual`` can be coerced to ``expected``."""
    if actual.is_subtype(expected):
        return True
    if actual.is_query():
        return can_coerce(actual.inner, expected)  # type: ignore[arg-type]
    if expected.is_query():
        return can_coerce(actual, expected.inner)  # type: ignore[arg-type]
    if actual.is_set():
        if expected.is_set():
            return can_coerce(actual.inner, expected.inner)  # type: ignore[arg-type]
        return can_coerce(actual.inner, expected)  # type: ignore[arg-type]
    if expected.is_set():
        return can_coerce(actual, expected.inner)  # type: ignore[arg-type]
    return False


def force(value: Value, backend: Backend | None) -> Value:
    """Evaluate any pending queries wrapping ``value``."""
    while value.kind == ValueKind.QUERY:
        if backend is None:
            raise BackendError("No backend available to evaluate the query")
        value = value.data.eval(backend)
    return value


def coerce(value: Value, expected: Type, backend: Backend | None = None) -> Value:
    """Convert ``value`` to ``expected``.

    - ``Query(T) -> T`` forces the query (``backend`` is required)
    - ``T -> Query(T)`` wraps the value in a ready query
    - ``Set(T) -> T`` takes the first element; EmptySetError if there is none
    - ``T -> Set(T)`` makes a singleton set
    - ``Position -> Location`` and ``Range -> Location`` keep the value as is

    Raises TypeCheckError when no conversion applies.
    """
    if value.ty == expected:
        return value

    if expected.is_query():
        if value.kind == ValueKind.QUERY and value.ty.is_subtype(expected):
            return value
        from clyde.query import ReadyQuery

        inner = coerce(force(value, backend), expected.inner, backend)  # type: ignore[arg-type]
        return Value.query(ReadyQuery(inner))

    if value.kind == ValueKind.QUERY:
        return coerce(force(value, backend), expected, backend)

    if expected.is_set():
        elem_ty: Type = expected.inner  # type: ignore[assignment]
        if value.is_void():
            return Value.set((), elem_ty)
        if value.kind == ValueKind.SET:
            return Value.set((coerce(v, elem_ty, backend) for v in value.data), elem_ty)
        return Value.set((coerce(value, elem_ty, backend),), elem_ty)

    if value.is_void():
        if expected.is_void():
            return Value.void()
        raise EmptySetError(f"Expected {expected}, found an empty set")

    if value.kind == ValueKind.SET:
        return coerce(value.data[0], expected, backend)

    if value.ty.is_subtype(expected):
        return value

    raise TypeCheckError(f"Expected {expected}, found {value.ty}")
