"""Schema nodes and their OpenAPI 3.0 rendering.

Nodes are immutable; analyzers and the resolver build them, the document
assembler renders them with :meth:`to_openapi`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Final

__all__ = [
    "REF_PREFIX",
    "ArraySchema",
    "ObjectSchema",
    "OneOfSchema",
    "PrimitiveSchema",
    "ReferenceSchema",
    "SchemaNode",
    "generic_object",
    "validation_error_schema",
    "with_nullable",
]

REF_PREFIX: Final[str] = "#/components/schemas/"


@dataclass(frozen=True, slots=True)
class PrimitiveSchema:
    """Scalar schema with optional format, enum and bounds."""

    type: str = "string"
    format: str | None = None
    nullable: bool = False
    enum: tuple[object, ...] | None = None
    minimum: int | float | None = None
    maximum: int | float | None = None
    min_length: int | None = None
    max_length: int | None = None
    description: str | None = None

    def to_openapi(self) -> dict[str, object]:
        rendered: dict[str, object] = {"type": self.type}
        if self.format is not None:
            rendered["format"] = self.format
        if self.nullable:
            rendered["nullable"] = True
        if self.enum is not None:
            rendered["enum"] = list(self.enum)
        if self.minimum is not None:
            rendered["minimum"] = self.minimum
        if self.maximum is not None:
            rendered["maximum"] = self.maximum
        if self.min_length is not None:
            rendered["minLength"] = self.min_length
        if self.max_length is not None:
            rendered["maxLength"] = self.max_length
        if self.description is not None:
            rendered["description"] = self.description
        return rendered


@dataclass(frozen=True, slots=True)
class ArraySchema:
    """Array schema; ``items`` is always present."""

    items: SchemaNode = field(default_factory=PrimitiveSchema)
    nullable: bool = False
    min_items: int | None = None
    max_items: int | None = None
    description: str | None = None

    def to_openapi(self) -> dict[str, object]:
        rendered: dict[str, object] = {"type": "array", "items": self.items.to_openapi()}
        if self.nullable:
            rendered["nullable"] = True
        if self.min_items is not None:
            rendered["minItems"] = self.min_items
        if self.max_items is not None:
            rendered["maxItems"] = self.max_items
        if self.description is not None:
            rendered["description"] = self.description
        return rendered


@dataclass(frozen=True, slots=True)
class ObjectSchema:
    """Object schema with ordered properties.

    Attributes
    ----------
    properties : dict[str, SchemaNode]
        Property schemas in declaration order.
    required : tuple[str, ...]
        Names of required properties, in declaration order.
    additional_properties : SchemaNode | None
        Schema of values under arbitrary keys, if any.
    """

    properties: dict[str, SchemaNode] = field(default_factory=dict)
    required: tuple[str, ...] = ()
    nullable: bool = False
    additional_properties: SchemaNode | None = None
    description: str | None = None

    def to_openapi(self) -> dict[str, object]:
        rendered: dict[str, object] = {"type": "object"}
        if self.properties:
            rendered["properties"] = {
                name: node.to_openapi() for name, node in self.properties.items()
            }
        if self.required:
            rendered["required"] = list(self.required)
        if self.additional_properties is not None:
            rendered["additionalProperties"] = self.additional_properties.to_openapi()
        if self.nullable:
            rendered["nullable"] = True
        if self.description is not None:
            rendered["description"] = self.description
        return rendered


@dataclass(frozen=True, slots=True)
class ReferenceSchema:
    """Pointer to a named component schema.

    A nullable reference is wrapped in ``allOf`` because OpenAPI 3.0 ignores
    siblings of ``$ref``.
    """

    name: str
    nullable: bool = False

    @property
    def ref(self) -> str:
        return f"{REF_PREFIX}{self.name}"

    def to_openapi(self) -> dict[str, object]:
        if self.nullable:
            return {"allOf": [{"$ref": self.ref}], "nullable": True}
        return {"$ref": self.ref}


@dataclass(frozen=True, slots=True)
class OneOfSchema:
    """Union of alternatives in declared order."""

    members: tuple[SchemaNode, ...]
    nullable: bool = False

    def to_openapi(self) -> dict[str, object]:
        rendered: dict[str, object] = {"oneOf": [member.to_openapi() for member in self.members]}
        if self.nullable:
            rendered["nullable"] = True
        return rendered


type SchemaNode = PrimitiveSchema | ArraySchema | ObjectSchema | ReferenceSchema | OneOfSchema


def with_nullable(node: SchemaNode, *, nullable: bool = True) -> SchemaNode:
    """Return ``node`` with its nullable flag set to ``nullable``."""
    if node.nullable == nullable:
        return node
    return replace(node, nullable=nullable)


def generic_object(description: str | None = None) -> ObjectSchema:
    """Return the schema used when a response body shape is unknown."""
    return ObjectSchema(description=description)


def validation_error_schema() -> ObjectSchema:
    """Return the body schema of a 422 validation failure.

    Returns
    -------
    ObjectSchema
        ``{"message": str, "errors": {field: [str, ...]}}``.
    """
    return ObjectSchema(
        properties={
            "message": PrimitiveSchema(type="string"),
            "errors": ObjectSchema(
                additional_properties=ArraySchema(items=PrimitiveSchema(type="string"))
            ),
        },
    )
