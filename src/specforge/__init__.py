"""Static OpenAPI synthesis from route descriptors and type metadata.

Route handlers, their type annotations, docstrings and source text are read
statically and turned into an in-memory OpenAPI 3.0 document.
"""

from __future__ import annotations

from specforge.catalog import TypeCatalog
from specforge.contracts import (
    FormRequest,
    JsonResource,
    JsonResponse,
    Nullable,
    Required,
    ResourceCollection,
)
from specforge.document import OpenApiDocument
from specforge.generator import OpenApiGenerator
from specforge.registry import SchemaRegistry
from specforge.resolver import TypeResolver
from specforge.routes import RouteDescriptor, filter_routes, load_routes, routes_from_payload
from specforge.rules import translate

__all__ = [
    "FormRequest",
    "JsonResource",
    "JsonResponse",
    "Nullable",
    "OpenApiDocument",
    "OpenApiGenerator",
    "Required",
    "ResourceCollection",
    "RouteDescriptor",
    "SchemaRegistry",
    "TypeCatalog",
    "TypeResolver",
    "filter_routes",
    "load_routes",
    "routes_from_payload",
    "translate",
]
