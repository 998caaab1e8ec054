"""Assembly of one OpenAPI operation per route and HTTP method."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from specforge.annotations import DocAnnotations, parse_docstring
from specforge.descriptors import (
    NULL,
    Capability,
    CollectionType,
    NamedType,
    NullableType,
    PrimitiveKind,
    PrimitiveType,
    UnionType,
)
from specforge.handlers import handler_parameters
from specforge.responses import ResponseDescriptor
from specforge.routes import BODY_METHODS, path_parameter_names
from specforge.schema import PrimitiveSchema, ReferenceSchema

if TYPE_CHECKING:
    from specforge.descriptors import TypeDescriptor
    from specforge.handlers import HandlerParameter
    from specforge.resolver import TypeResolver
    from specforge.responses import ResponseInferencer
    from specforge.routes import RouteDescriptor
    from specforge.schema import SchemaNode

__all__ = [
    "OperationAssembler",
    "OperationDescriptor",
    "Parameter",
    "ParameterLocation",
    "RequestBody",
    "ResponseDescriptor",
    "route_description",
]

_BODY_CAPABILITIES: Final = frozenset({Capability.RULE_VALIDATED, Capability.DECLARED_FIELDS})

_ACTION_VERBS: Final[tuple[tuple[tuple[str, ...], str], ...]] = (
    (("index", "list"), "List"),
    (("show", "get"), "Get"),
    (("store", "create"), "Create"),
    (("update", "edit"), "Update"),
    (("destroy", "delete"), "Delete"),
)
_METHOD_VERBS: Final[dict[str, str]] = {
    "POST": "Create",
    "PUT": "Update",
    "PATCH": "Update",
    "DELETE": "Delete",
}
_NON_RESOURCE_SEGMENTS: Final = frozenset({"api"})


class ParameterLocation(StrEnum):
    PATH = "path"
    QUERY = "query"


@dataclass(frozen=True, slots=True)
class Parameter:
    """A path or query parameter."""

    name: str
    location: ParameterLocation
    required: bool
    schema: SchemaNode

    def to_openapi(self) -> dict[str, object]:
        return {
            "name": self.name,
            "in": self.location.value,
            "required": self.required,
            "schema": self.schema.to_openapi(),
        }


@dataclass(frozen=True, slots=True)
class RequestBody:
    """JSON request body referencing a validated input type."""

    schema: SchemaNode
    required: bool = True

    def to_openapi(self) -> dict[str, object]:
        return {
            "required": self.required,
            "content": {"application/json": {"schema": self.schema.to_openapi()}},
        }


@dataclass(frozen=True, slots=True)
class OperationDescriptor:
    """Everything documented about one route and HTTP method.

    Attributes
    ----------
    summary : str
        One-line summary.
    description : str | None
        Longer description.
    operation_id : str | None
        Unique operation id.
    tags : tuple[str, ...]
        Grouping tags.
    deprecated : bool
        Whether the handler is marked deprecated.
    parameters : tuple[Parameter, ...]
        Path parameters first, then query parameters.
    request_body : RequestBody | None
        Body of POST/PUT/PATCH operations taking validated input.
    responses : dict[int, ResponseDescriptor]
        Responses by status code, ascending.
    """

    summary: str
    description: str | None = None
    operation_id: str | None = None
    tags: tuple[str, ...] = ()
    deprecated: bool = False
    parameters: tuple[Parameter, ...] = ()
    request_body: RequestBody | None = None
    responses: dict[int, ResponseDescriptor] = field(default_factory=dict)

    def to_openapi(self) -> dict[str, object]:
        rendered: dict[str, object] = {"summary": self.summary}
        if self.description:
            rendered["description"] = self.description
        if self.operation_id:
            rendered["operationId"] = self.operation_id
        if self.tags:
            rendered["tags"] = list(self.tags)
        if self.deprecated:
            rendered["deprecated"] = True
        if self.parameters:
            rendered["parameters"] = [parameter.to_openapi() for parameter in self.parameters]
        if self.request_body is not None:
            rendered["requestBody"] = self.request_body.to_openapi()
        rendered["responses"] = {
            str(status): response.to_openapi() for status, response in self.responses.items()
        }
        return rendered


def _is_query_descriptor(descriptor: TypeDescriptor) -> bool:
    match descriptor:
        case PrimitiveType(kind=kind):
            return kind not in {PrimitiveKind.OBJECT, PrimitiveKind.UNKNOWN, PrimitiveKind.NULL}
        case CollectionType():
            return True
        case NullableType(inner=inner):
            return _is_query_descriptor(inner)
        case UnionType(members=members):
            present = [member for member in members if member != NULL]
            return bool(present) and all(_is_query_descriptor(member) for member in present)
        case _:
            return False


def _annotation_name(annotation: object) -> str:
    return getattr(annotation, "__name__", None) or str(annotation)


def _resource_name(uri: str) -> str:
    segments = [
        segment
        for segment in uri.strip("/").split("/")
        if segment and not segment.startswith("{") and segment not in _NON_RESOURCE_SEGMENTS
    ]
    return segments[0] if segments else "resource"


def route_description(uri: str, method: str, action: str) -> str:
    """Return a short phrase such as ``List users`` derived from the route.

    Examples
    --------
    >>> route_description("/api/users/{id}", "GET", "show")
    'Get users'
    """
    resource = _resource_name(uri)
    lowered = action.lower()
    for needles, verb in _ACTION_VERBS:
        if any(needle in lowered for needle in needles):
            return f"{verb} {resource}"
    if method == "GET":
        return f"{'Get' if '{' in uri else 'List'} {resource}"
    verb = _METHOD_VERBS.get(method, method.capitalize())
    return f"{verb} {resource}"


class OperationAssembler:
    """Build :class:`OperationDescriptor` values for resolved handlers.

    Parameters
    ----------
    resolver : TypeResolver
        Resolver of the current run.
    inferencer : ResponseInferencer
        Response inferencer of the current run.
    ignored_parameter_types : Iterable[str], optional
        Class names of framework objects never documented as query parameters.
    parse_docstrings : bool, optional
        Whether handler docstrings contribute summaries, tags and responses.
    """

    def __init__(
        self,
        resolver: TypeResolver,
        inferencer: ResponseInferencer,
        *,
        ignored_parameter_types: Iterable[str] = ("Request", "HttpRequest"),
        parse_docstrings: bool = True,
    ) -> None:
        self.resolver = resolver
        self.inferencer = inferencer
        self.ignored_parameter_types = frozenset(ignored_parameter_types)
        self.parse_docstrings = parse_docstrings

    def assemble(
        self,
        route: RouteDescriptor,
        method: str,
        handler: Callable[..., object],
        *,
        controller: type | None = None,
    ) -> OperationDescriptor:
        """Assemble the operation serving ``method`` on ``route``.

        Parameters
        ----------
        route : RouteDescriptor
            Route being documented.
        method : str
            Upper-case HTTP method.
        handler : Callable[..., object]
            Resolved handler.
        controller : type | None, optional
            Controller class owning ``handler``.

        Returns
        -------
        OperationDescriptor
            The assembled operation.
        """
        action = getattr(handler, "__name__", "handler")
        annotations = (
            parse_docstring(handler.__doc__) if self.parse_docstrings else DocAnnotations()
        )
        owner = controller.__name__ if controller is not None else _module_tag(handler)
        parameters = handler_parameters(handler)

        path_names = path_parameter_names(route.uri)
        body, body_parameter = (
            self._request_body(parameters) if method in BODY_METHODS else (None, None)
        )
        documented = [
            *self._path_parameters(path_names, parameters),
            *self._query_parameters(parameters, path_names, body_parameter),
        ]

        operation_id = f"{owner}.{action}"
        if len(route.operation_methods()) > 1:
            operation_id = f"{operation_id}_{method.lower()}"

        return OperationDescriptor(
            summary=annotations.summary or f"Handle {action} request in {owner}",
            description=annotations.description or route_description(route.uri, method, action),
            operation_id=operation_id,
            tags=(owner.removesuffix("Controller") or owner,),
            deprecated=annotations.deprecated,
            parameters=tuple(documented),
            request_body=body,
            responses=self.inferencer.infer(
                handler, controller=controller, annotations=annotations
            ),
        )

    def _path_parameters(
        self, names: list[str], parameters: list[HandlerParameter]
    ) -> list[Parameter]:
        by_name = {parameter.name: parameter for parameter in parameters}
        documented: list[Parameter] = []
        for name in names:
            parameter = by_name.get(name)
            schema: SchemaNode = PrimitiveSchema(type="string")
            if parameter is not None and parameter.annotated:
                descriptor = self.resolver.describe(parameter.annotation)
                if _is_query_descriptor(descriptor):
                    schema = self.resolver.resolve(descriptor)
            documented.append(Parameter(name, ParameterLocation.PATH, True, schema))
        return documented

    def _query_parameters(
        self,
        parameters: list[HandlerParameter],
        path_names: list[str],
        body_parameter: str | None,
    ) -> list[Parameter]:
        documented: list[Parameter] = []
        for parameter in parameters:
            if (
                not parameter.annotated
                or parameter.name in path_names
                or parameter.name == body_parameter
                or _annotation_name(parameter.annotation) in self.ignored_parameter_types
            ):
                continue
            descriptor = self.resolver.describe(parameter.annotation)
            if not _is_query_descriptor(descriptor):
                continue
            documented.append(
                Parameter(
                    parameter.name,
                    ParameterLocation.QUERY,
                    not parameter.has_default,
                    self.resolver.resolve(descriptor),
                )
            )
        return documented

    def _request_body(
        self, parameters: list[HandlerParameter]
    ) -> tuple[RequestBody | None, str | None]:
        for parameter in parameters:
            if not parameter.annotated:
                continue
            descriptor = self.resolver.describe(parameter.annotation)
            if isinstance(descriptor, NamedType) and descriptor.capability in _BODY_CAPABILITIES:
                schema = self.resolver.resolve(descriptor)
                if isinstance(schema, ReferenceSchema):
                    return RequestBody(schema), parameter.name
        return None, None


def _module_tag(handler: Callable[..., object]) -> str:
    module = getattr(handler, "__module__", None) or "default"
    return module.rsplit(".", 1)[-1]
