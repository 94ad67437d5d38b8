"""The boundary between the interpreter and whatever drives it."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from clyde.backend import Backend
    from clyde.file_system import FileSystem
    from clyde.parsing.query_parser import MetaKind, MetaVar
    from clyde.types import Value


class Environment(ABC):
    """Session services the interpreter relies on.

    An environment owns the history, the file system and the backend.
    The backend should be created on first use and reused afterwards.
    """

    @abstractmethod
    def exec_meta(self, kind: MetaKind) -> None:
        """Run a meta-command (`^help`, `^exit`)."""

    @abstractmethod
    def show(self, value: Value) -> None:
        """Display a value to the user."""

    @abstractmethod
    def lookup_var(self, var: MetaVar) -> Value:
        """Resolve a named variable the interpreter does not know about.

        Raises VarNotFound if there is no such variable.
        """

    @abstractmethod
    def lookup_numeric_var(self, index: int) -> Value:
        """Resolve a history reference. Negative indices count from the end."""

    @abstractmethod
    def file_system(self) -> FileSystem:
        ...

    @abstractmethod
    def backend(self) -> Backend:
        ...
