"""Analyzer for presentation types shaped by a projection method.

Such types (``JsonResource`` subclasses or anything with ``to_dict``) build
their payload in code, so the shape is read from the method's source: the keys
of the dict literal it returns or, failing that, the attributes it reads from
``self``. Values are typed from what their expression reveals, then from the
key name. When nothing can be read, the shape defaults to ``id``,
``created_at`` and ``updated_at``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from specforge.analyzers.base import StructuredTypeAnalyzer
from specforge.descriptors import Capability, NamedType, classify, find_projection_method
from specforge.schema import ArraySchema, ObjectSchema, PrimitiveSchema, generic_object
from specforge.source import HintKind, ValueHint, projection_shape, self_attribute_names

if TYPE_CHECKING:
    from specforge.schema import SchemaNode

__all__ = ["DEFAULT_PROJECTION_SHAPE", "ProjectionAnalyzer", "schema_for_key"]

DEFAULT_PROJECTION_SHAPE: Final[tuple[str, ...]] = ("id", "created_at", "updated_at")

_SCALAR_HINTS: Final[dict[HintKind, str]] = {
    HintKind.INTEGER: "integer",
    HintKind.NUMBER: "number",
    HintKind.BOOLEAN: "boolean",
}


def schema_for_key(name: str) -> PrimitiveSchema:
    """Type a projected key by naming convention.

    Examples
    --------
    >>> schema_for_key("user_id").to_openapi()
    {'type': 'integer'}
    >>> schema_for_key("published_at").to_openapi()
    {'type': 'string', 'format': 'date-time'}
    """
    if name == "id" or name.endswith("_id"):
        return PrimitiveSchema(type="integer")
    if name == "email":
        return PrimitiveSchema(type="string", format="email")
    if name.endswith("_at"):
        return PrimitiveSchema(type="string", format="date-time")
    return PrimitiveSchema(type="string")


class ProjectionAnalyzer(StructuredTypeAnalyzer):
    """Object schema inferred from a projection method's source."""

    capability = Capability.PROJECTED

    def build(self, cls: type) -> ObjectSchema:
        method = find_projection_method(cls, self.resolver.projection_methods)
        if method is None:
            return self.fallback(cls)

        shape = projection_shape(method)
        if shape:
            properties = {key: self._schema_for(key, hint, cls) for key, hint in shape.items()}
        else:
            properties = {name: schema_for_key(name) for name in self_attribute_names(method)}
        if not properties:
            return self.fallback(cls)
        return ObjectSchema(properties=properties)

    def fallback(self, cls: type) -> ObjectSchema:
        del cls
        return ObjectSchema(
            properties={name: schema_for_key(name) for name in DEFAULT_PROJECTION_SHAPE}
        )

    def _named(self, name: str | None, owner: type) -> SchemaNode | None:
        if name is None:
            return None
        target = self.resolver.catalog.find(name, near=owner)
        if target is None:
            return None
        capability = classify(target, self.resolver.projection_methods)
        if capability is None:
            return None
        return self.resolver.resolve(NamedType(target, capability))

    def _schema_for(self, key: str, hint: ValueHint | None, owner: type) -> SchemaNode:
        if hint is None:
            return schema_for_key(key)
        match hint.kind:
            case HintKind.STRING:
                by_name = schema_for_key(key)
                return by_name if by_name.type == "string" else PrimitiveSchema(type="string")
            case HintKind.INTEGER | HintKind.NUMBER | HintKind.BOOLEAN:
                return PrimitiveSchema(type=_SCALAR_HINTS[hint.kind])
            case HintKind.NULL:
                by_name = schema_for_key(key)
                return PrimitiveSchema(type=by_name.type, format=by_name.format, nullable=True)
            case HintKind.ARRAY:
                return ArraySchema(items=PrimitiveSchema(type="string"))
            case HintKind.OBJECT:
                if not hint.fields:
                    return generic_object()
                return ObjectSchema(
                    properties={
                        name: self._schema_for(name, nested, owner)
                        for name, nested in hint.fields.items()
                    }
                )
            case HintKind.NAMED:
                return self._named(hint.name, owner) or schema_for_key(key)
            case HintKind.COLLECTION:
                return ArraySchema(items=self._named(hint.name, owner) or generic_object())
