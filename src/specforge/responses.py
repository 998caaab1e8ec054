"""Response shape inference for route handlers.

The success response comes from, in order of precedence, explicit
``@response`` tags, the handler's return annotation and naming conventions.
Standard error responses are added afterwards without overwriting anything
already present. Inference never aborts generation: a failure while inferring
one handler degrades to a generic object success response.
"""

from __future__ import annotations

import inspect
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, get_origin

from specforge.annotations import DocAnnotations, is_collection_expression, type_names
from specforge.contracts import JsonResponse
from specforge.descriptors import (
    UNKNOWN,
    Capability,
    CollectionType,
    NamedType,
    NullableType,
    PrimitiveKind,
    PrimitiveType,
    UnionType,
    classify,
)
from specforge.handlers import MISSING, handler_parameters, return_annotation
from specforge.schema import ArraySchema, generic_object, validation_error_schema
from specforge.source import collection_item_names, looks_like_fetch_or_fail, method_source
from specforge_common.errors import CapabilityError
from specforge_common.logging import get_logger

if TYPE_CHECKING:
    from specforge.descriptors import TypeDescriptor
    from specforge.handlers import HandlerParameter
    from specforge.resolver import TypeResolver
    from specforge.schema import SchemaNode

__all__ = [
    "STANDARD_ERROR_DESCRIPTIONS",
    "ResponseDescriptor",
    "ResponseInferencer",
    "success_description",
    "success_status",
]

logger = get_logger(__name__)

STANDARD_ERROR_DESCRIPTIONS: Final[dict[int, str]] = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Resource not found",
    422: "Validation error",
    500: "Internal Server Error",
}

_SUCCESS_DESCRIPTIONS: Final[tuple[tuple[tuple[str, ...], str], ...]] = (
    (("index", "list"), "List retrieved successfully"),
    (("show", "get"), "Resource retrieved successfully"),
    (("store", "create"), "Resource created successfully"),
    (("update", "edit"), "Resource updated successfully"),
    (("destroy", "delete"), "Resource deleted successfully"),
)

_VALIDATED_CAPABILITIES: Final = frozenset({Capability.RULE_VALIDATED, Capability.DECLARED_FIELDS})

# compound CamelCase only, so "User not found" keeps its first word
_TYPE_TOKEN: Final = re.compile(r"^[A-Z][a-z0-9]+(?:[A-Z][A-Za-z0-9]*)+$")


@dataclass(frozen=True, slots=True)
class ResponseDescriptor:
    """One documented response; ``schema`` is ``None`` for an empty body."""

    description: str
    schema: SchemaNode | None = None

    def to_openapi(self) -> dict[str, object]:
        rendered: dict[str, object] = {"description": self.description}
        if self.schema is not None:
            rendered["content"] = {"application/json": {"schema": self.schema.to_openapi()}}
        return rendered


def _contains(name: str, *needles: str) -> bool:
    lowered = name.lower()
    return any(needle in lowered for needle in needles)


def success_status(action: str) -> int:
    """Return the conventional success status of a handler named ``action``.

    Examples
    --------
    >>> success_status("store"), success_status("destroy"), success_status("show")
    (201, 204, 200)
    """
    if _contains(action, "store", "create"):
        return 201
    if _contains(action, "destroy", "delete"):
        return 204
    return 200


def success_description(action: str) -> str:
    """Return the conventional success description of a handler named ``action``."""
    for needles, description in _SUCCESS_DESCRIPTIONS:
        if _contains(action, *needles):
            return description
    return "Successful response"


def _is_raw_response(annotation: object) -> bool:
    target = get_origin(annotation) or annotation
    if not inspect.isclass(target):
        return False
    return issubclass(target, (JsonResponse, Mapping)) or target.__name__.endswith("Response")


def _is_wrapped_collection(descriptor: TypeDescriptor) -> bool:
    if not isinstance(descriptor, CollectionType):
        return False
    item = descriptor.item_type or descriptor.generic_item_type
    return item is None or (isinstance(item, PrimitiveType) and item.kind is PrimitiveKind.UNKNOWN)


def _named_capabilities(descriptor: TypeDescriptor) -> set[Capability]:
    match descriptor:
        case NamedType(capability=capability):
            return {capability}
        case NullableType(inner=inner):
            return _named_capabilities(inner)
        case UnionType(members=members):
            found: set[Capability] = set()
            for member in members:
                found |= _named_capabilities(member)
            return found
        case _:
            return set()


def _is_identifier_name(name: str) -> bool:
    lowered = name.lower()
    return lowered == "id" or lowered.endswith("_id")


class ResponseInferencer:
    """Infer the responses of route handlers.

    Parameters
    ----------
    resolver : TypeResolver
        Resolver of the current run; named return types are resolved through it.
    default_responses : Mapping[int, str] | None, optional
        Extra status codes added to every operation when not otherwise present.
    """

    def __init__(
        self, resolver: TypeResolver, *, default_responses: Mapping[int, str] | None = None
    ) -> None:
        self.resolver = resolver
        self.default_responses = dict(default_responses or {})

    def infer(
        self,
        handler: Callable[..., object],
        *,
        controller: type | None = None,
        annotations: DocAnnotations | None = None,
    ) -> dict[int, ResponseDescriptor]:
        """Return the responses of ``handler`` keyed by status code.

        Parameters
        ----------
        handler : Callable[..., object]
            Route handler (function or unbound method).
        controller : type | None, optional
            Class owning ``handler``; enables the controller naming convention.
        annotations : DocAnnotations | None, optional
            Parsed handler docstring.

        Returns
        -------
        dict[int, ResponseDescriptor]
            Responses sorted by status code.

        Raises
        ------
        CapabilityError
            If a type was dispatched to an analyzer that cannot handle it.
        """
        annotations = annotations or DocAnnotations()
        action = getattr(handler, "__name__", "handler")
        parameters = handler_parameters(handler)

        responses: dict[int, ResponseDescriptor] = {}
        try:
            responses.update(self._explicit(annotations, handler))
            if not annotations.has_explicit_success:
                status = success_status(action)
                responses.setdefault(
                    status,
                    ResponseDescriptor(
                        success_description(action),
                        self._success_schema(handler, controller, annotations),
                    ),
                )
        except CapabilityError:
            raise
        except Exception as exc:
            logger.log_failure(
                "Response inference failed, documenting a generic success response",
                exception=exc,
                operation="infer_responses",
                handler=getattr(handler, "__qualname__", action),
            )
            if not annotations.has_explicit_success:
                status = success_status(action)
                responses.setdefault(
                    status,
                    ResponseDescriptor(
                        success_description(action), None if status == 204 else generic_object()
                    ),
                )

        self._augment(responses, action, parameters, handler)
        return dict(sorted(responses.items()))

    def _explicit(
        self, annotations: DocAnnotations, handler: Callable[..., object]
    ) -> dict[int, ResponseDescriptor]:
        """Turn ``@response`` tags into responses.

        A leading word naming a known structured type becomes the body schema:
        ``@response 201 UserResource User created`` documents a ``UserResource``.
        """
        responses: dict[int, ResponseDescriptor] = {}
        for annotation in annotations.responses:
            head, _, rest = annotation.description.partition(" ")
            schema = (
                self._named_schema(head, near=handler) if _TYPE_TOKEN.match(head) else None
            )
            description = (rest.strip() if schema is not None else annotation.description) or (
                "Response"
            )
            responses[annotation.status] = ResponseDescriptor(description, schema)
        return responses

    def _success_schema(
        self,
        handler: Callable[..., object],
        controller: type | None,
        annotations: DocAnnotations,
    ) -> SchemaNode | None:
        annotation = return_annotation(handler)
        if annotation is None:
            return None
        if annotation is MISSING:
            return self._documented_schema(annotations.returns, handler)

        if _is_raw_response(annotation):
            return self._documented_schema(annotations.returns, handler) or generic_object()

        descriptor = self.resolver.describe(annotation)
        if descriptor == UNKNOWN:
            return self._documented_schema(annotations.returns, handler) or generic_object()
        if _is_wrapped_collection(descriptor):
            item = self._collection_item(handler, controller, annotations)
            return ArraySchema(items=item or generic_object())
        return self.resolver.resolve(descriptor)

    def _documented_schema(
        self, expression: str | None, handler: Callable[..., object]
    ) -> SchemaNode | None:
        """Resolve a docstring return expression naming a known type."""
        if not expression:
            return None
        for name in type_names(expression):
            schema = self._named_schema(name, near=handler)
            if schema is not None:
                if is_collection_expression(expression):
                    return ArraySchema(items=schema)
                return schema
        return None

    def _collection_item(
        self,
        handler: Callable[..., object],
        controller: type | None,
        annotations: DocAnnotations,
    ) -> SchemaNode | None:
        candidates: list[tuple[str, object]] = []
        if annotations.returns:
            candidates.extend((name, handler) for name in type_names(annotations.returns))
        candidates.extend(
            (name, handler) for name in collection_item_names(method_source(handler))
        )
        if controller is not None and controller.__name__.endswith("Controller"):
            stem = controller.__name__.removesuffix("Controller")
            candidates.append((f"{stem}Resource", controller))

        for name, near in candidates:
            schema = self._named_schema(name, near=near)
            if schema is not None:
                return schema
        return None

    def _named_schema(self, name: str, *, near: object) -> SchemaNode | None:
        target = self.resolver.catalog.find(name, near=near)
        if target is None:
            return None
        capability = classify(target, self.resolver.projection_methods)
        if capability is None:
            return None
        return self.resolver.resolve(NamedType(target, capability))

    def _augment(
        self,
        responses: dict[int, ResponseDescriptor],
        action: str,
        parameters: list[HandlerParameter],
        handler: Callable[..., object],
    ) -> None:
        codes = [400, 401, 500]
        if (
            _contains(action, "show", "update", "destroy")
            or any(_is_identifier_name(parameter.name) for parameter in parameters)
            or looks_like_fetch_or_fail(method_source(handler))
        ):
            codes.append(404)
        if any(self._is_validated(parameter) for parameter in parameters):
            codes.append(422)
        if _contains(action, "store", "update", "destroy"):
            codes.append(403)

        for code in codes:
            if code not in responses:
                schema = validation_error_schema() if code == 422 else None
                responses[code] = ResponseDescriptor(STANDARD_ERROR_DESCRIPTIONS[code], schema)
        for code, description in self.default_responses.items():
            responses.setdefault(int(code), ResponseDescriptor(description))

    def _is_validated(self, parameter: HandlerParameter) -> bool:
        if not parameter.annotated:
            return False
        capabilities = _named_capabilities(self.resolver.describe(parameter.annotation))
        return bool(capabilities & _VALIDATED_CAPABILITIES)
