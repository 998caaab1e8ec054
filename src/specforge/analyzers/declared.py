"""Analyzer for types that declare typed fields.

Dataclasses, ``msgspec.Struct`` subclasses and ``pydantic.BaseModel``
subclasses all qualify. Fields are taken in declaration order; class
variables and private names are skipped.
"""

from __future__ import annotations

import dataclasses
import typing
from typing import Annotated, Any, ClassVar, get_args, get_origin

import msgspec
import pydantic

from specforge.analyzers.base import StructuredTypeAnalyzer
from specforge.annotations import attribute_hints, type_names
from specforge.contracts import Required
from specforge.descriptors import Capability, CollectionType, describe, permits_null
from specforge.schema import ObjectSchema
from specforge_common.logging import get_logger

if typing.TYPE_CHECKING:
    from specforge.descriptors import TypeDescriptor
    from specforge.schema import SchemaNode

__all__ = ["DeclaredFieldAnalyzer", "declared_field_names"]

logger = get_logger(__name__)


def declared_field_names(cls: type) -> list[str]:
    """Return the public field names of ``cls`` in declaration order."""
    if dataclasses.is_dataclass(cls):
        names = [field.name for field in dataclasses.fields(cls)]
    elif issubclass(cls, msgspec.Struct):
        names = list(cls.__struct_fields__)
    elif issubclass(cls, pydantic.BaseModel):
        names = list(cls.model_fields)
    else:
        names = list(getattr(cls, "__annotations__", {}))
    return [name for name in names if not name.startswith("_")]


def _type_hints(cls: type) -> dict[str, Any]:
    if issubclass(cls, pydantic.BaseModel):
        return {name: info.rebuild_annotation() for name, info in cls.model_fields.items()}
    try:
        return typing.get_type_hints(cls, include_extras=True)
    except (NameError, TypeError) as exc:
        logger.log_failure(
            "Unresolvable field annotations, unresolved fields fall back to string",
            exception=exc,
            operation="analyze_type",
            type_name=cls.__qualname__,
        )
        hints: dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            hints.update(getattr(klass, "__annotations__", {}))
        return hints


class DeclaredFieldAnalyzer(StructuredTypeAnalyzer):
    """Object schema from declared field types.

    A field is required unless its type admits ``None`` (``X | None``,
    ``Optional[X]``, ``Annotated[X, Nullable()]``). ``Annotated[X, Required()]``
    makes a field required regardless.
    """

    capability = Capability.DECLARED_FIELDS

    def build(self, cls: type) -> ObjectSchema:
        hints = _type_hints(cls)
        doc_hints = attribute_hints(cls.__doc__)
        properties: dict[str, SchemaNode] = {}
        required: list[str] = []

        for name in declared_field_names(cls):
            annotation = hints.get(name, Any)
            if get_origin(annotation) is ClassVar or annotation is ClassVar:
                continue
            descriptor = self.resolver.describe(annotation)
            if isinstance(descriptor, CollectionType) and name in doc_hints:
                descriptor = self._with_documented_items(descriptor, doc_hints[name], cls)

            properties[name] = self.resolver.resolve(descriptor)
            if _forces_required(annotation) or not permits_null(descriptor):
                required.append(name)

        return ObjectSchema(properties=properties, required=tuple(required))

    def _with_documented_items(
        self, descriptor: CollectionType, expression: str, owner: type
    ) -> TypeDescriptor:
        for name in type_names(expression):
            item = self.resolver.catalog.find(name, near=owner)
            if item is not None:
                generic = self.resolver.describe(item)
                return dataclasses.replace(descriptor, generic_item_type=generic)
        return descriptor


def _forces_required(annotation: object) -> bool:
    if get_origin(annotation) is not Annotated:
        return False
    return any(isinstance(marker, Required) for marker in get_args(annotation)[1:])
