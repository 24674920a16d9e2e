from __future__ import annotations

import inspect
import logging
import sys
import types
from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated, Any, Union, get_args, get_origin

from ._errors import (
    InvalidCreatorTypeError,
    InvalidDependencyTypeError,
    InvalidErrorShapeError,
    InvalidResultArityError,
    NoReturnValueError,
    UndefinedDependencyNameError,
)


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable


_NONE_TYPE = type(None)


@dataclass(frozen=True)
class CreatorResult:
    """Outcome of one creator call: a value, or the failure the creator reported."""

    value: object
    error: BaseException | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class Creator:
    """A callable together with what its signature declares.

    `outputs` holds the declared output types in order; `parameters` the
    parameters the container has to fill (variadic ones are left out).
    """

    func: Callable[..., object]
    parameters: tuple[inspect.Parameter, ...]
    outputs: tuple[Any, ...]

    @classmethod
    def from_callable(cls, obj: object) -> Creator:
        if not callable(obj):
            msg = f"invalid creator type: {obj!r}"
            raise InvalidCreatorTypeError(msg)

        sig = _signature(obj)

        if inspect.isclass(obj):
            # A class creates itself.
            outputs: tuple[Any, ...] = (obj,)
        else:
            outputs = _declared_outputs(sig.return_annotation)

        if not outputs:
            msg = f"invalid creator, no return value: {_describe(obj)}"
            raise NoReturnValueError(msg)

        params = tuple(
            p for p in sig.parameters.values() if p.kind not in (p.VAR_POSITIONAL, p.VAR_KEYWORD)
        )
        return cls(func=obj, parameters=params, outputs=outputs)

    @property
    def requires_args(self) -> bool:
        return bool(self.parameters)

    @property
    def name(self) -> str:
        return _describe(self.func)

    def output_key(self) -> str:
        """Registry key of the primary output.

        Raises InvalidDependencyTypeError unless the output is a structured
        type (a class outside `builtins`, including ABCs and protocols), and
        UndefinedDependencyNameError if that type has no name of its own.
        """
        dependency = self.outputs[0]
        if not _is_structured(dependency):
            msg = f"invalid dependency type: {dependency!r} (returned by {self.name})"
            raise InvalidDependencyTypeError(msg)

        key = _type_name(dependency)
        if not key:
            msg = f"undefined dependency name: {dependency!r} (returned by {self.name})"
            raise UndefinedDependencyNameError(msg)
        return key

    def parameter_key(self, param: inspect.Parameter) -> str:
        if param.annotation is inspect.Parameter.empty:
            msg = f"undefined dependency name: parameter '{param.name}' of {self.name} has no annotation"
            raise UndefinedDependencyNameError(msg)

        key = _type_name(param.annotation)
        if not key and isinstance(param.annotation, str) and param.annotation.isidentifier():
            # Unresolved forward reference: the string is the type name.
            key = param.annotation
        if not key:
            msg = f"undefined dependency name: {param.annotation!r} (parameter '{param.name}' of {self.name})"
            raise UndefinedDependencyNameError(msg)
        return key

    def call(self, args: list[Any], kwargs: dict[str, Any]) -> object:
        return self.func(*args, **kwargs)

    def unpack(self, raw: object) -> CreatorResult:
        """Check the shape of what the creator returned and wrap it.

        One declared output: `raw` is the value. Two declared outputs: `raw`
        must be a `(value, error)` pair where `error` is None or an exception.
        """
        if len(self.outputs) == 1:
            return CreatorResult(value=raw)

        if len(self.outputs) != 2:
            msg = f"invalid result, expected 1 or 2 values, {self.name} declares {len(self.outputs)}"
            raise InvalidResultArityError(msg)

        if not _is_error_type(self.outputs[1]):
            msg = f"invalid result, expected 2nd value to be an error: {self.outputs[1]!r} (declared by {self.name})"
            raise InvalidErrorShapeError(msg)

        if not isinstance(raw, tuple) or len(raw) != 2:
            msg = f"invalid result, expected 1 or 2 values, {self.name} returned {raw!r}"
            raise InvalidResultArityError(msg)

        value, error = raw
        if error is not None and not isinstance(error, BaseException):
            msg = f"invalid result, expected 2nd value to be an error: {error!r} (returned by {self.name})"
            raise InvalidErrorShapeError(msg)

        return CreatorResult(value=value, error=error)


def dependency_key(tp: Any) -> str:
    """Return the registry key values of type `tp` are stored under.

    `Annotated[T, ...]` resolves to the key of `T`.
    """
    key = _type_name(tp)
    if not key:
        msg = f"undefined dependency name: {tp!r}"
        raise UndefinedDependencyNameError(msg)
    return key


def _signature(obj: Callable[..., object]) -> inspect.Signature:
    try:
        sig = inspect.signature(obj)
    except (TypeError, ValueError) as exc:
        msg = f"invalid creator type: {obj!r} ({exc})"
        raise InvalidCreatorTypeError(msg) from exc

    global_ns, local_ns = _annotation_scope(obj)

    def evaluate(annotation: Any) -> Any:
        if not isinstance(annotation, str):
            return annotation
        try:
            return eval(annotation, global_ns, local_ns)  # noqa: S307
        except NameError as exc:
            # Unresolvable forward reference: keep the string.
            logger.warning("'%s' name error evaluating annotations of %s", exc.name, _describe(obj))
            return annotation

    params = [p.replace(annotation=evaluate(p.annotation)) for p in sig.parameters.values()]
    return sig.replace(parameters=params, return_annotation=evaluate(sig.return_annotation))


def _annotation_scope(obj: Callable[..., object]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Globals and closure variables string annotations of `obj` are evaluated in."""
    if inspect.isclass(obj):
        target: Any = obj.__init__
    elif inspect.isfunction(obj) or inspect.ismethod(obj):
        target = obj
    else:
        target = type(obj).__call__
    target = inspect.unwrap(getattr(target, "__func__", target))

    global_ns = getattr(target, "__globals__", None)
    if global_ns is None:
        module = sys.modules.get(getattr(obj, "__module__", None) or "")
        global_ns = vars(module) if module is not None else {}

    local_ns: dict[str, Any] = {}
    if inspect.isfunction(target):
        for name, cell in zip(target.__code__.co_freevars, target.__closure__ or ()):
            try:
                local_ns[name] = cell.cell_contents
            except ValueError:
                # Not bound yet.
                continue

    return global_ns, local_ns


def _declared_outputs(annotation: Any) -> tuple[Any, ...]:
    if annotation is inspect.Signature.empty or annotation is None or annotation is _NONE_TYPE:
        return ()

    if get_origin(annotation) is tuple:
        args = get_args(annotation)
        if args and args[-1] is not Ellipsis:
            return args

    return (annotation,)


def _unwrap(tp: Any) -> Any:
    if get_origin(tp) is Annotated:
        return get_args(tp)[0]
    return tp


def _is_structured(tp: Any) -> bool:
    tp = _unwrap(tp)
    origin = get_origin(tp)
    if origin is not None:
        # Parametrised generic: structured when its origin is.
        return inspect.isclass(origin) and origin is not types.UnionType and origin.__module__ != "builtins"

    return inspect.isclass(tp) and tp is not Any and tp.__module__ != "builtins"


def _type_name(tp: Any) -> str:
    tp = _unwrap(tp)
    if get_origin(tp) is not None:
        # Parametrised aliases and unions have no name of their own.
        return ""

    name = getattr(tp, "__name__", "")
    return name if isinstance(name, str) else ""


def _is_error_type(tp: Any) -> bool:
    if inspect.isclass(tp):
        return issubclass(tp, BaseException)

    if get_origin(tp) in (Union, types.UnionType):
        members = [a for a in get_args(tp) if a is not _NONE_TYPE]
        return bool(members) and all(_is_error_type(a) for a in members)

    return False


def _describe(obj: object) -> str:
    return getattr(obj, "__qualname__", None) or repr(obj)
