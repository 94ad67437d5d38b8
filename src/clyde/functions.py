"""Named functions of the Clyde language and their dispatch table.

Each function has a type rule (``ty``), run against the unevaluated AST,
and an evaluation rule (``eval``). The interpreter only goes through
``Function.apply``, which checks arity, then runs ``ty``, and only if that
succeeds runs ``eval``. A type error therefore never reaches the backend.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from clyde.errors import TypeCheckError, UnknownFunctionError
from clyde.query import COUNT, DEFINITIONS, IDENTS, NAMES, PICK, CallQuery, as_query, count, names
from clyde.types import DEFINITION, IDENTIFIER, NUMBER, STRING, VOID, Type, TypeKind, Value, ValueKind, coerce

if TYPE_CHECKING:
    from clyde.interpreter import Interpreter
    from clyde.parsing.query_parser import Apply, Expr


@dataclass(frozen=True)
class Arity:
    """Accepted argument counts: none, exactly n, or at least n."""

    count: int = 0
    open_ended: bool = False

    @staticmethod
    def exactly(n: int) -> Arity:
        return Arity(n)

    @staticmethod
    def at_least(n: int) -> Arity:
        return Arity(n, open_ended=True)

    def check(self, args: Sequence[Expr]) -> None:
        found = len(args)
        if found == self.count or (self.open_ended and found > self.count):
            return
        raise TypeCheckError(f"Incorrect arguments, expected: {self}, found {found}")

    def __str__(self) -> str:
        if self.open_ended:
            return f"{self.count} or more"
        return str(self.count)


Arity.NONE = Arity()  # type: ignore[attr-defined]


class Function:
    """Base class for named functions.

    Subclasses set NAME, ARITY and DOC and implement ``ty`` and ``eval``.
    """

    NAME: str = ""
    ARITY: Arity = Arity.NONE  # type: ignore[attr-defined]
    DOC: str = ""

    def ty(self, interp: Interpreter, lhs: Expr, args: Sequence[Expr]) -> Type:
        raise NotImplementedError

    def eval(self, interp: Interpreter, lhs: Expr, args: Sequence[Expr]) -> Value:
        raise NotImplementedError

    def type_of(self, interp: Interpreter, apply: Apply) -> Type:
        """Arity check followed by the type rule."""
        self.ARITY.check(apply.args)
        return self.ty(interp, apply.lhs, apply.args)

    def apply(self, interp: Interpreter, apply: Apply) -> Value:
        """Type-check ``apply`` and, if that succeeds, evaluate it."""
        self.type_of(interp, apply)
        return self.eval(interp, apply.lhs, apply.args)

    def __repr__(self) -> str:
        return f"<function {self.NAME}>"


class Show(Function):
    NAME = "show"
    DOC = "Print a value, evaluating it first if it is a query."

    def ty(self, interp: Interpreter, lhs: Expr, args: Sequence[Expr]) -> Type:
        interp.type_expr(lhs)
        return VOID

    def eval(self, interp: Interpreter, lhs: Expr, args: Sequence[Expr]) -> Value:
        value = interp.force(interp.interpret_expr(lhs))
        interp.env.show(value)
        return Value.void()


class Select(Function):
    """Evaluate a query.

    Any non-void left-hand side is accepted: a plain value of type `T` is
    a ready query of type `Query(T)`, so selecting it yields the value
    itself. Void is a type error.

    Without `*` the result is a single element: a set is reduced to its
    first element. `select*` keeps the whole set.
    """

    NAME = "select"
    DOC = "Evaluate a query. `select` yields one element, `select*` all of them."

    def __init__(self, many: bool = False) -> None:
        self.many = many
        if many:
            self.NAME = "select*"

    def ty(self, interp: Interpreter, lhs: Expr, args: Sequence[Expr]) -> Type:
        ty = interp.type_expr(lhs)
        if ty.is_void():
            raise TypeCheckError(f"Expected query, found {ty}")
        result = ty.unquery()
        if not self.many:
            result = result.element()
        return result

    def eval(self, interp: Interpreter, lhs: Expr, args: Sequence[Expr]) -> Value:
        value = interp.force(interp.interpret_expr(lhs))
        if not self.many and value.kind in (ValueKind.SET, ValueKind.VOID):
            return coerce(value, value.ty.element())
        return value


class Idents(Function):
    NAME = "idents"
    DOC = "Identifiers at a position or within a range."

    def ty(self, interp: Interpreter, lhs: Expr, args: Sequence[Expr]) -> Type:
        ty = interp.type_expr(lhs)
        if not ty.is_location():
            raise TypeCheckError(f"Expected location, found {ty}")
        return Type.query_of(Type.set_of(IDENTIFIER))

    def eval(self, interp: Interpreter, lhs: Expr, args: Sequence[Expr]) -> Value:
        value = interp.interpret_expr(lhs)
        return Value.query(CallQuery(IDENTS, Type.set_of(IDENTIFIER), as_query(value)))


class Pick(Function):
    NAME = "pick"
    DOC = "The first element of a set."

    def ty(self, interp: Interpreter, lhs: Expr, args: Sequence[Expr]) -> Type:
        ty = interp.type_expr(lhs)
        if ty.is_query():
            return Type.query_of(ty.unquery().element())
        if ty.is_void():
            raise TypeCheckError("Cannot pick from Void")
        return ty.element()

    def eval(self, interp: Interpreter, lhs: Expr, args: Sequence[Expr]) -> Value:
        value = interp.interpret_expr(lhs)
        if value.kind == ValueKind.QUERY:
            elem = value.ty.unquery().element()
            return Value.query(CallQuery(PICK, elem, value.data))
        return coerce(value, value.ty.element())


class Def(Function):
    NAME = "def"
    DOC = "The definition of an identifier (or of each identifier in a set)."

    def ty(self, interp: Interpreter, lhs: Expr, args: Sequence[Expr]) -> Type:
        ty = interp.type_expr(lhs)
        inner = ty.unquery()
        if inner.element().kind != TypeKind.IDENTIFIER:
            raise TypeCheckError(f"Expected identifier, found {ty}")
        if inner.is_set():
            return Type.query_of(Type.set_of(DEFINITION))
        return Type.query_of(DEFINITION)

    def eval(self, interp: Interpreter, lhs: Expr, args: Sequence[Expr]) -> Value:
        value = interp.interpret_expr(lhs)
        result = Type.set_of(DEFINITION) if value.ty.unquery().is_set() else DEFINITION
        return Value.query(CallQuery(DEFINITIONS, result, as_query(value)))


class Count(Function):
    NAME = "count"
    DOC = "The number of elements in a set."

    def ty(self, interp: Interpreter, lhs: Expr, args: Sequence[Expr]) -> Type:
        ty = interp.type_expr(lhs)
        if ty.is_void():
            raise TypeCheckError("Cannot count Void")
        if ty.is_query():
            return Type.query_of(NUMBER)
        return NUMBER

    def eval(self, interp: Interpreter, lhs: Expr, args: Sequence[Expr]) -> Value:
        value = interp.interpret_expr(lhs)
        if value.kind == ValueKind.QUERY:
            return Value.query(CallQuery(COUNT, NUMBER, value.data))
        return count(value)


class Name(Function):
    NAME = "name"
    DOC = "The name of an identifier or definition, as a string."

    def ty(self, interp: Interpreter, lhs: Expr, args: Sequence[Expr]) -> Type:
        ty = interp.type_expr(lhs)
        inner = ty.unquery()
        if inner.element().kind not in (TypeKind.IDENTIFIER, TypeKind.DEFINITION):
            raise TypeCheckError(f"Expected identifier or definition, found {ty}")
        result = Type.set_of(STRING) if inner.is_set() else STRING
        return Type.query_of(result) if ty.is_query() else result

    def eval(self, interp: Interpreter, lhs: Expr, args: Sequence[Expr]) -> Value:
        value = interp.interpret_expr(lhs)
        result = Type.set_of(STRING) if value.ty.unquery().is_set() else STRING
        if value.kind == ValueKind.QUERY:
            return Value.query(CallQuery(NAMES, result, value.data))
        return names(value, result)


FUNCTIONS: dict[str, Function] = {
    f.NAME: f
    for f in (Show(), Select(), Select(many=True), Idents(), Pick(), Def(), Count(), Name())
}


def lookup_function(name: str, many: bool = False) -> Function:
    """Find the function called ``name`` (``name*`` if ``many``)."""
    key = f"{name}*" if many else name
    try:
        return FUNCTIONS[key]
    except KeyError:
        raise UnknownFunctionError(key) from None
