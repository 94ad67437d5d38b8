"""Interpreter for parsed Clyde statements."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from clyde.errors import NumericVarNotFound, TypeCheckError, VarNotFound
from clyde.functions import lookup_function
from clyde.parsing.query_parser import (
    Apply,
    Assign,
    Dollar,
    Expr,
    Location,
    Meta,
    MetaVar,
    Named,
    Numeric,
    Program,
    Statement,
    VarRef,
    VoidExpr,
)
from clyde.types import LOCATION, VOID, Type, Value, ValueKind, force

if TYPE_CHECKING:
    from clyde.environment import Environment


@dataclass
class SymbolTable:
    """Named bindings for a session plus the most recent result."""

    variables: dict[MetaVar, Value] = field(default_factory=dict)
    result: Value = field(default_factory=Value.void)

    def lookup(self, var: MetaVar) -> Value | None:
        return self.variables.get(var)


class History:
    """Results of previous statements, one entry per statement.

    A statement that failed is recorded as None so that numbering stays
    aligned with the prompt.
    """

    def __init__(self) -> None:
        self.entries: list[Value | None] = []

    def append(self, value: Value | None) -> None:
        self.entries.append(value)

    def __len__(self) -> int:
        return len(self.entries)

    def lookup(self, index: int) -> Value:
        """Return entry ``index``; negative indices count back from the latest."""
        size = len(self.entries)
        pos = index if index >= 0 else size + index
        if pos < 0 or pos >= size:
            raise NumericVarNotFound(index, size - 1)
        value = self.entries[pos]
        if value is None:
            raise VarNotFound(Numeric(index), f"Variable `${pos}` has no value (the statement failed)")
        return value


class Interpreter:
    """Evaluates statements against an environment.

    Function applications are type-checked over the whole statement before
    anything is evaluated.
    """

    def __init__(self, env: Environment, symbols: SymbolTable | None = None) -> None:
        self.env = env
        self.symbols = symbols if symbols is not None else SymbolTable()

    def interpret(self, program: Program) -> SymbolTable:
        """Run every statement of ``program``, stopping at the first error."""
        for stmt in program.statements:
            self.interpret_stmt(stmt)
        return self.symbols

    def interpret_stmt(self, stmt: Statement) -> Value:
        """Evaluate a statement and display its result."""
        value = self.evaluate_stmt(stmt)
        if not isinstance(stmt.kind, (Assign, Meta)):
            self.show_result(value)
        return value

    def evaluate_stmt(self, stmt: Statement) -> Value:
        """Evaluate a statement without displaying anything."""
        kind = stmt.kind
        if isinstance(kind, Meta):
            self.env.exec_meta(kind.kind)
            return Value.void()
        if isinstance(kind, Assign):
            value = self.evaluate_expr(kind.expr)
            self.symbols.variables[Named(kind.name.name)] = value
            self.symbols.result = value
            return value
        value = self.evaluate_expr(kind)
        self.symbols.result = value
        return value

    def evaluate_expr(self, expr: Expr) -> Value:
        self.type_expr(expr)
        return self.interpret_expr(expr)

    def show_result(self, value: Value) -> None:
        if not value.is_void():
            self.env.show(value)

    def interpret_expr(self, expr: Expr) -> Value:
        if isinstance(expr, VoidExpr):
            return Value.void()
        if isinstance(expr, VarRef):
            return self.lookup_var(expr.var)
        if isinstance(expr, Location):
            locator = self.env.file_system().resolve_location(expr)
            return Value.from_locator(locator)
        if isinstance(expr, Apply):
            return self.interpret_apply(expr)
        raise TypeCheckError(f"Unknown expression: {expr!r}")

    def type_expr(self, expr: Expr) -> Type:
        if isinstance(expr, VoidExpr):
            return VOID
        if isinstance(expr, VarRef):
            return self.lookup_var(expr.var).ty
        if isinstance(expr, Location):
            return LOCATION
        if isinstance(expr, Apply):
            return self.type_apply(expr)
        raise TypeCheckError(f"Unknown expression: {expr!r}")

    def interpret_apply(self, apply: Apply) -> Value:
        return lookup_function(apply.ident.name, apply.many).apply(self, apply)

    def type_apply(self, apply: Apply) -> Type:
        return lookup_function(apply.ident.name, apply.many).type_of(self, apply)

    def lookup_var(self, var: MetaVar) -> Value:
        if isinstance(var, Dollar):
            return self.env.lookup_numeric_var(-1)
        if isinstance(var, Numeric):
            return self.env.lookup_numeric_var(var.index)
        value = self.symbols.lookup(var)
        if value is None:
            value = self.env.lookup_var(var)
            self.symbols.variables[var] = value
        return value

    def force(self, value: Value) -> Value:
        if value.kind != ValueKind.QUERY:
            return value
        return force(value, self.env.backend())
