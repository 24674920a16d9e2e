"""Minimal runtime object wiring.

This package builds a registry of constructed values from a set of creator
callables. Each creator's parameters are filled with values produced by other
creators, matched by the name of their annotated type, and each result is
stored under the name of the creator's declared return type.

Exports:
- `Container`: holds the registry; `set` wires creators, `get` reads values back.
- `new`: create an empty `Container`.
- `DI`: protocol describing the `set`/`get` interface.
- `dependency_key`: the registry key a type is stored under.
- `ContainerError` and its subclasses, one per kind of wiring failure.
"""

from ._container import DI, Container, new
from ._creator import dependency_key
from ._errors import (
    ContainerError,
    InvalidCreatorTypeError,
    InvalidDependencyTypeError,
    InvalidErrorShapeError,
    InvalidResultArityError,
    MissingDependencyError,
    NoReturnValueError,
    UndefinedDependencyNameError,
)


__all__ = [
    "DI",
    "Container",
    "ContainerError",
    "InvalidCreatorTypeError",
    "InvalidDependencyTypeError",
    "InvalidErrorShapeError",
    "InvalidResultArityError",
    "MissingDependencyError",
    "NoReturnValueError",
    "UndefinedDependencyNameError",
    "dependency_key",
    "new",
]
