from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any, Protocol

from ._creator import Creator
from ._errors import MissingDependencyError, UndefinedDependencyNameError


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ._creator import CreatorResult


class DI(Protocol):
    def set(self, *creators: object) -> None: ...

    def get(self, key: str) -> object | None: ...


class Container:
    """Minimal runtime wiring container.

    - `set` takes creator callables, calls them and stores each result under
      the name of its declared return type
    - creators without parameters run first, then the rest in the given order
    - parameters are filled with already stored values, matched by type name
    - `get` reads a stored value back by name.
    """

    def __init__(self) -> None:
        self._services: dict[str, object] = {}

    def set(self, *creators: object) -> None:
        """Call the creators and store what they return.

        Example:
          container.set(make_repo, make_db)
          repo = container.get("Repo")

        A creator annotated `-> tuple[T, Exception | None]` may report a
        failure through its second value; that exception is raised here as is
        and no further creators run. Values stored before a failure are kept.
        """
        without_args, with_args = _classify(creators)
        logger.debug(
            "Wiring %d creator(s) without arguments, %d with arguments", len(without_args), len(with_args)
        )

        self._set_without_args(without_args)
        self._set_with_args(with_args)

    def get(self, key: str) -> object | None:
        """Return the value stored under `key`, or None."""
        return self._services.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._services

    def _set_without_args(self, creators: Iterable[Creator]) -> None:
        for creator in creators:
            key = creator.output_key()
            self._set_result(key, creator, creator.call([], {}))

    def _set_with_args(self, creators: Iterable[Creator]) -> None:
        for creator in creators:
            key = creator.output_key()
            args, kwargs = self._collect_arguments(creator)
            self._set_result(key, creator, creator.call(args, kwargs))

    def _collect_arguments(self, creator: Creator) -> tuple[list[Any], dict[str, Any]]:
        args: list[Any] = []
        kwargs: dict[str, Any] = {}

        for p in creator.parameters:
            value = self._resolve_param(creator, p)
            if p.kind is p.KEYWORD_ONLY:
                kwargs[p.name] = value
            else:
                args.append(value)

        return args, kwargs

    def _resolve_param(self, creator: Creator, p: inspect.Parameter) -> Any:
        """Resolving param.

        Resolution precedence:
        1. stored value under the annotation's type name
        2. default, also when the annotation has no usable name
        3. error.
        """
        try:
            key = creator.parameter_key(p)
        except UndefinedDependencyNameError:
            if p.default is p.empty:
                raise
            return p.default

        if key in self._services:
            return self._services[key]

        if p.default is not inspect.Parameter.empty:
            return p.default

        raise MissingDependencyError(key)

    def _set_result(self, key: str, creator: Creator, raw: object) -> None:
        result: CreatorResult = creator.unpack(raw)

        if result.failed:
            logger.warning("Creator %s for '%s' reported a failure: %r", creator.name, key, result.error)
            raise result.error  # type: ignore[misc]

        if key in self._services:
            logger.debug("Replacing '%s' with the value from %s", key, creator.name)

        self._services[key] = result.value
        logger.debug("Stored '%s' from %s", key, creator.name)


def new() -> Container:
    """Create an empty container."""
    return Container()


def _classify(creators: Iterable[object]) -> tuple[list[Creator], list[Creator]]:
    without_args: list[Creator] = []
    with_args: list[Creator] = []

    for obj in creators:
        creator = Creator.from_callable(obj)
        if creator.requires_args:
            with_args.append(creator)
        else:
            without_args.append(creator)

    return without_args, with_args
