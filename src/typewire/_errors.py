from __future__ import annotations


class ContainerError(RuntimeError):
    """Base class for every error raised while wiring creators."""


class InvalidCreatorTypeError(ContainerError):
    pass


class NoReturnValueError(ContainerError):
    pass


class InvalidDependencyTypeError(ContainerError):
    pass


class UndefinedDependencyNameError(ContainerError):
    pass


class MissingDependencyError(ContainerError):
    """No registered value matches a creator parameter."""

    def __init__(self, key: str) -> None:
        super().__init__(f"missing dependency: {key}")
        self.key = key


class InvalidResultArityError(ContainerError):
    pass


class InvalidErrorShapeError(ContainerError):
    pass
