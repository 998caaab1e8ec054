"""Short-name lookup of application types.

Heuristics such as ``UsersController -> UserResource`` or a docstring
``@return list[PostResource]`` only yield a class *name*. The catalog maps
such names back to classes, either from modules registered up front or from
the globals of the module that defines the handler under analysis.
"""

from __future__ import annotations

import importlib
import inspect
import pkgutil
import sys
from typing import TYPE_CHECKING

from specforge_common.errors import ConfigurationError
from specforge_common.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from types import ModuleType

__all__ = ["TypeCatalog"]

logger = get_logger(__name__)


class TypeCatalog:
    """Mapping of short class name to class.

    Parameters
    ----------
    types : Iterable[type], optional
        Classes to register immediately.

    Examples
    --------
    >>> class UserResource: ...
    >>> catalog = TypeCatalog([UserResource])
    >>> catalog.find("UserResource") is UserResource
    True
    """

    def __init__(self, types: Iterable[type] = ()) -> None:
        self._types: dict[str, type] = {}
        for cls in types:
            self.add(cls)

    def __len__(self) -> int:
        return len(self._types)

    def __iter__(self) -> Iterator[type]:
        return iter(self._types.values())

    def add(self, cls: type) -> None:
        """Register ``cls``; the first class registered under a name is kept."""
        existing = self._types.setdefault(cls.__name__, cls)
        if existing is not cls:
            logger.debug(
                "Catalog name already taken",
                extra={"operation": "catalog_add", "type_name": cls.__name__},
            )

    def add_module(self, module: str | ModuleType, *, recursive: bool = True) -> None:
        """Register the classes defined in ``module`` (and its submodules).

        Raises
        ------
        ConfigurationError
            If the module cannot be imported.
        """
        if isinstance(module, str):
            try:
                module = importlib.import_module(module)
            except ImportError as exc:
                msg = f"Cannot import catalog module {module!r}"
                raise ConfigurationError(msg, cause=exc, context={"module": module}) from exc

        self._add_members(module)
        if recursive and hasattr(module, "__path__"):
            for info in pkgutil.walk_packages(module.__path__, prefix=f"{module.__name__}."):
                try:
                    submodule = importlib.import_module(info.name)
                except ImportError as exc:
                    logger.log_failure(
                        "Skipping unimportable catalog module",
                        exception=exc,
                        operation="catalog_add",
                        module_name=info.name,
                    )
                    continue
                self._add_members(submodule)

    def _add_members(self, module: ModuleType) -> None:
        for _, member in inspect.getmembers(module, inspect.isclass):
            if member.__module__ == module.__name__:
                self.add(member)

    def find(self, name: str, *, near: object = None) -> type | None:
        """Return the class called ``name``.

        Parameters
        ----------
        name : str
            Short (or dotted) class name.
        near : object, optional
            A class or function whose defining module is searched first.

        Returns
        -------
        type | None
            The class, or ``None`` when nothing by that name is known.
        """
        short = name.rsplit(".", 1)[-1]
        if near is not None:
            module = sys.modules.get(getattr(near, "__module__", "") or "")
            candidate = getattr(module, short, None) if module is not None else None
            if inspect.isclass(candidate):
                return candidate
        return self._types.get(short)
