"""Clyde - an interactive query language for source code."""

from clyde.errors import ClydeError
from clyde.interpreter import History, Interpreter, SymbolTable
from clyde.parsing import parse_program, parse_stmt
from clyde.types import Type, Value

__all__ = [
    # Main API
    "Interpreter",
    "parse_program",
    "parse_stmt",
    # Session state
    "History",
    "SymbolTable",
    # Values
    "Type",
    "Value",
    "ClydeError",
]

__version__ = "0.1.0"
