"""Exceptions raised by the Clyde lexer, parser, interpreter and collaborators."""

from __future__ import annotations

from typing import Any


class ClydeError(Exception):
    """Base class for every error that aborts a single statement."""


class LexError(ClydeError, SyntaxError):
    """Invalid character or unterminated delimiter.

    ``position`` is the absolute offset into the original input, suitable for
    drawing a ``^`` under the offending character.
    """

    def __init__(self, message: str, position: int) -> None:
        super().__init__(message)
        self.message = message
        self.position = position

    def __str__(self) -> str:
        return f"{self.message} at position {self.position}"


class ParseError(ClydeError, SyntaxError):
    """Grammar violation, trailing tokens or a malformed location literal."""

    def __init__(self, message: str, position: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.position = position

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        return f"{self.message} (position {self.position})"


class EmptyInput(ClydeError):
    """The input held no tokens. Callers should ignore it."""


class TypeCheckError(ClydeError, TypeError):
    """Arity mismatch, subtype/coercion failure or wrong operand shape."""


class UnknownFunctionError(ClydeError):
    """No function is registered under the given name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown function: `{name}`")
        self.name = name


class VarNotFound(ClydeError):
    """A named or history variable could not be resolved."""

    def __init__(self, var: Any, message: str | None = None) -> None:
        super().__init__(message or f"Variable not found: `{var}`")
        self.var = var


class NumericVarNotFound(VarNotFound):
    """A history index is out of range."""

    def __init__(self, index: int, bound: int) -> None:
        if bound < 0:
            detail = "history is empty"
        else:
            detail = f"valid indices are 0 to {bound}"
        super().__init__(index, f"Variable not found: `${index}` ({detail})")
        self.index = index
        self.bound = bound


class EmptySetError(ClydeError):
    """An element was requested from an empty set."""


class BackendError(ClydeError):
    """A code-intelligence backend call failed."""


class NotImplementedBackendError(BackendError):
    """The current backend does not provide the requested capability."""

    def __init__(self, method: str) -> None:
        super().__init__(f"Function not implemented by current backend: `{method}`")
        self.method = method


class FileSystemError(ClydeError):
    """A file system collaborator failed."""


class BadLocationError(FileSystemError):
    """A location literal does not resolve to any file, line or column."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Invalid location: {message}")
