"""Code-intelligence backends."""

from clyde.backend.base import Backend
from clyde.backend.python_source import PythonBackend

__all__ = [
    "Backend",
    "PythonBackend",
]
