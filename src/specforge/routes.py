"""Route descriptors supplied by the host application.

The route table itself is enumerated by the host framework; the generator only
consumes :class:`RouteDescriptor` values, either built in code or decoded from
a JSON manifest. A descriptor names its handler by import path:

- ``"shop.controllers:UserController"`` plus ``action="show"`` for a method
  of a controller class,
- ``"shop.views:health"`` without ``action`` for a plain function or a
  callable class.
"""

from __future__ import annotations

import importlib
import inspect
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Final

import msgspec

from specforge_common.errors import RouteResolutionError
from specforge_common.logging import get_logger

__all__ = [
    "BODY_METHODS",
    "ResolvedHandler",
    "RouteDescriptor",
    "filter_routes",
    "load_routes",
    "normalize_uri",
    "path_parameter_names",
    "resolve_handler",
    "routes_from_payload",
]

logger = get_logger(__name__)

BODY_METHODS: Final = frozenset({"POST", "PUT", "PATCH"})

_OPTIONAL_PARAMETER: Final = re.compile(r"\{(\w+)\?\}")
_PATH_PARAMETER: Final = re.compile(r"\{(\w+)\??\}")


class RouteDescriptor(msgspec.Struct, frozen=True, kw_only=True):
    """One route of the host application.

    Attributes
    ----------
    uri : str
        URI template; ``{name}`` marks a path parameter, ``{name?}`` an
        optional one.
    methods : tuple[str, ...]
        HTTP methods, any case.
    controller : str
        Import path ``module:QualName`` (or ``module.QualName``) of the
        controller class or handler function.
    action : str | None
        Handler method name on the controller class.
    middleware : tuple[str, ...]
        Middleware names attached to the route.
    name : str | None
        Route name.
    """

    uri: str
    methods: tuple[str, ...] = ("GET",)
    controller: str
    action: str | None = None
    middleware: tuple[str, ...] = ()
    name: str | None = None

    @classmethod
    def for_handler(
        cls,
        target: type | Callable[..., object],
        action: str | None = None,
        *,
        uri: str,
        methods: Sequence[str] = ("GET",),
        middleware: Sequence[str] = (),
        name: str | None = None,
    ) -> RouteDescriptor:
        """Describe a route served by ``target`` (a controller class or function)."""
        return cls(
            uri=uri,
            methods=tuple(methods),
            controller=f"{target.__module__}:{target.__qualname__}",
            action=action,
            middleware=tuple(middleware),
            name=name,
        )

    def operation_methods(self) -> list[str]:
        """Return upper-case methods to document, dropping HEAD when GET is present."""
        methods = list(dict.fromkeys(method.upper() for method in self.methods))
        if "GET" in methods and "HEAD" in methods:
            methods.remove("HEAD")
        return methods


@dataclass(frozen=True, slots=True)
class ResolvedHandler:
    """Handler callable plus the controller class that owns it, if any."""

    handler: Callable[..., object]
    controller: type | None
    action: str


def routes_from_payload(payload: Iterable[object]) -> list[RouteDescriptor]:
    """Convert a decoded manifest (a list of mappings) into descriptors.

    Raises
    ------
    RouteResolutionError
        If an entry is malformed.
    """
    try:
        return msgspec.convert(list(payload), type=list[RouteDescriptor])
    except msgspec.ValidationError as exc:
        msg = f"Invalid route manifest: {exc}"
        raise RouteResolutionError(msg, cause=exc) from exc


def load_routes(path: str | Path) -> list[RouteDescriptor]:
    """Read a JSON route manifest from ``path``.

    Raises
    ------
    RouteResolutionError
        If the file cannot be read or decoded.
    """
    try:
        payload = Path(path).read_bytes()
        return msgspec.json.decode(payload, type=list[RouteDescriptor])
    except (OSError, msgspec.DecodeError) as exc:
        msg = f"Cannot load route manifest {path}"
        raise RouteResolutionError(msg, cause=exc, context={"path": str(path)}) from exc


def _split_path(path: str) -> tuple[str, str]:
    if ":" in path:
        module_name, _, attribute = path.partition(":")
    else:
        module_name, _, attribute = path.rpartition(".")
    if not module_name or not attribute:
        msg = f"Handler path {path!r} is not of the form 'module:attribute'"
        raise RouteResolutionError(msg, context={"controller": path})
    return module_name, attribute


def _import_target(path: str) -> object:
    module_name, attribute = _split_path(path)
    try:
        target: object = importlib.import_module(module_name)
    except ImportError as exc:
        msg = f"Cannot import handler module {module_name!r}"
        raise RouteResolutionError(msg, cause=exc, context={"controller": path}) from exc
    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            msg = f"{path!r} has no attribute {part!r}"
            raise RouteResolutionError(msg, cause=exc, context={"controller": path}) from exc
    return target


def resolve_handler(route: RouteDescriptor) -> ResolvedHandler:
    """Import the handler of ``route``.

    Parameters
    ----------
    route : RouteDescriptor
        Route to resolve.

    Returns
    -------
    ResolvedHandler
        The handler function and its controller class. A callable class
        named without an action resolves to its ``__call__`` method.

    Raises
    ------
    RouteResolutionError
        If the module, class or method does not exist.
    """
    target = _import_target(route.controller)
    context = {"controller": route.controller, "action": route.action}

    if route.action is not None:
        if not inspect.isclass(target):
            msg = f"{route.controller!r} is not a class, cannot look up action {route.action!r}"
            raise RouteResolutionError(msg, context=context)
        handler = getattr(target, route.action, None)
        if not callable(handler):
            msg = f"{target.__qualname__} has no handler method {route.action!r}"
            raise RouteResolutionError(msg, context=context)
        return ResolvedHandler(handler, target, route.action)

    if inspect.isclass(target):
        if "__call__" not in vars(target):
            msg = f"{target.__qualname__} is not callable and no action was given"
            raise RouteResolutionError(msg, context=context)
        return ResolvedHandler(target.__call__, target, "__call__")
    if not callable(target):
        msg = f"{route.controller!r} is not callable"
        raise RouteResolutionError(msg, context=context)
    return ResolvedHandler(target, None, getattr(target, "__name__", "handler"))


def normalize_uri(uri: str) -> str:
    """Strip optional markers from path parameters and ensure a leading slash.

    Examples
    --------
    >>> normalize_uri("api/users/{user?}")
    '/api/users/{user}'
    """
    normalized = _OPTIONAL_PARAMETER.sub(r"{\1}", uri.strip())
    if not normalized.startswith("/"):
        normalized = f"/{normalized}"
    return normalized


def path_parameter_names(uri: str) -> list[str]:
    """Return path parameter names in declaration order."""
    return list(dict.fromkeys(_PATH_PARAMETER.findall(uri)))


def filter_routes(
    routes: Iterable[RouteDescriptor],
    include: Sequence[str] = ("*",),
    exclude: Sequence[str] = (),
    middleware: Sequence[str] = (),
) -> list[RouteDescriptor]:
    """Select the routes to document.

    Parameters
    ----------
    routes : Iterable[RouteDescriptor]
        Candidate routes, in order.
    include : Sequence[str], optional
        Glob patterns; a route must match one. Defaults to every route.
    exclude : Sequence[str], optional
        Glob patterns; a route matching any is dropped.
    middleware : Sequence[str], optional
        When non-empty, a route must carry at least one of these middleware.

    Returns
    -------
    list[RouteDescriptor]
        Selected routes in their original order. Patterns are matched against
        the normalized URI without its leading slash.
    """
    selected: list[RouteDescriptor] = []
    for route in routes:
        path = normalize_uri(route.uri).lstrip("/")
        if not any(fnmatchcase(path, pattern) for pattern in include):
            continue
        if any(fnmatchcase(path, pattern) for pattern in exclude):
            continue
        if middleware and not set(middleware) & set(route.middleware):
            continue
        selected.append(route)
    logger.debug(
        "Filtered routes",
        extra={"operation": "filter_routes", "selected": len(selected)},
    )
    return selected
