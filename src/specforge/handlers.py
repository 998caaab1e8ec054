"""Signature introspection of route handlers.

Handlers are plain functions or methods of a controller class. ``self`` and
``cls`` as well as ``*args``/``**kwargs`` never describe request input and are
dropped here, so callers only see documentable parameters.
"""

from __future__ import annotations

import inspect
import typing
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

from specforge_common.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = ["MISSING", "HandlerParameter", "handler_parameters", "return_annotation"]

logger = get_logger(__name__)

MISSING: Final = inspect.Parameter.empty

_RECEIVER_NAMES: Final = frozenset({"self", "cls"})
_VARIADIC: Final = frozenset({inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD})


@dataclass(frozen=True, slots=True)
class HandlerParameter:
    """One documentable handler parameter.

    Attributes
    ----------
    name : str
        Parameter name.
    annotation : object
        Resolved annotation, or :data:`MISSING`.
    has_default : bool
        Whether the parameter declares a default value.
    """

    name: str
    annotation: object = MISSING
    has_default: bool = False

    @property
    def annotated(self) -> bool:
        return self.annotation is not MISSING


def _type_hints(handler: Callable[..., object]) -> dict[str, Any]:
    target = inspect.unwrap(handler)
    try:
        return typing.get_type_hints(target, include_extras=True)
    except (NameError, TypeError) as exc:
        logger.log_failure(
            "Unresolvable handler annotations, using them unevaluated",
            exception=exc,
            operation="inspect_handler",
            handler=getattr(target, "__qualname__", repr(target)),
        )
        return dict(getattr(target, "__annotations__", {}))


def _signature(handler: Callable[..., object]) -> inspect.Signature | None:
    try:
        return inspect.signature(handler)
    except (TypeError, ValueError):
        return None


def handler_parameters(handler: Callable[..., object]) -> list[HandlerParameter]:
    """Return the documentable parameters of ``handler`` in declaration order."""
    signature = _signature(handler)
    if signature is None:
        return []
    hints = _type_hints(handler)
    parameters: list[HandlerParameter] = []
    for parameter in signature.parameters.values():
        if parameter.name in _RECEIVER_NAMES or parameter.kind in _VARIADIC:
            continue
        parameters.append(
            HandlerParameter(
                name=parameter.name,
                annotation=hints.get(parameter.name, MISSING),
                has_default=parameter.default is not inspect.Parameter.empty,
            )
        )
    return parameters


def return_annotation(handler: Callable[..., object]) -> object:
    """Return the resolved return annotation of ``handler``.

    Returns
    -------
    object
        The annotation (``None`` for ``-> None``), or :data:`MISSING` when the
        handler declares no return type.
    """
    signature = _signature(handler)
    if signature is None or signature.return_annotation is inspect.Signature.empty:
        return MISSING
    hints = _type_hints(handler)
    annotation = hints.get("return", signature.return_annotation)
    if annotation is type(None) or annotation == "None":
        return None
    return annotation
