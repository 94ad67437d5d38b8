"""The interface a code-intelligence backend provides to queries."""

from __future__ import annotations

from clyde.data import Definition, Identifier, Position, Range
from clyde.errors import NotImplementedBackendError


class Backend:
    """Answers questions about source code.

    Every method raises NotImplementedBackendError unless a subclass
    provides it, so an unsupported capability is never mistaken for an
    empty answer.
    """

    def identifier_at(self, position: Position) -> Identifier | None:
        """The identifier covering ``position``, if any."""
        raise NotImplementedBackendError("identifier_at")

    def identifiers_in(self, rng: Range) -> list[Identifier]:
        """Every identifier within ``rng``, in source order."""
        raise NotImplementedBackendError("identifiers_in")

    def definition_of(self, identifier: Identifier) -> Definition:
        """Where ``identifier`` is defined. Raises BackendError if it cannot be found."""
        raise NotImplementedBackendError("definition_of")
