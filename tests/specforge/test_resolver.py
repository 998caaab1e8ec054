"""Tests for descriptor resolution."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Any, Literal

import pytest

from specforge.descriptors import (
    UNKNOWN,
    Capability,
    CollectionType,
    NamedType,
    PrimitiveKind,
    PrimitiveType,
)
from specforge.registry import SchemaRegistry
from specforge.resolver import TypeResolver
from specforge.schema import ReferenceSchema
from specforge_common.errors import CapabilityError
from tests.helpers.sample_app.data import AddressData, ProfileModel, TagData


@pytest.mark.parametrize(
    ("annotation", "expected"),
    [
        (str, {"type": "string"}),
        (int, {"type": "integer"}),
        (float, {"type": "number", "format": "float"}),
        (bool, {"type": "boolean"}),
        (dt.date, {"type": "string", "format": "date"}),
        (dt.datetime, {"type": "string", "format": "date-time"}),
        (uuid.UUID, {"type": "string", "format": "uuid"}),
        (dict[str, Any], {"type": "object"}),
        (None, {"type": "string", "nullable": True}),
        (Any, {"type": "string"}),
        (int | None, {"type": "integer", "nullable": True}),
        (int | str, {"oneOf": [{"type": "integer"}, {"type": "string"}]}),
        (
            int | str | None,
            {"oneOf": [{"type": "integer"}, {"type": "string"}], "nullable": True},
        ),
        (list[int], {"type": "array", "items": {"type": "integer"}}),
        (list, {"type": "array", "items": {"type": "string"}}),
        (list[Any], {"type": "array", "items": {"type": "string"}}),
        (Literal["a", "b"] | None, {"type": "string", "nullable": True, "enum": ["a", "b"]}),
    ],
)
def test_resolve_annotation(annotation: object, expected: dict[str, object]) -> None:
    """Annotations resolve to their OpenAPI rendering."""
    resolver = TypeResolver(SchemaRegistry())
    assert resolver.resolve_annotation(annotation).to_openapi() == expected


def test_named_type_becomes_reference(resolver: TypeResolver) -> None:
    """Named types are analyzed once and referenced."""
    node = resolver.resolve_annotation(AddressData)
    assert node == ReferenceSchema("AddressData")
    assert resolver.registry.is_defined(AddressData)


def test_pydantic_model_becomes_reference(resolver: TypeResolver) -> None:
    """Pydantic models resolve to a component reference rather than an array."""
    node = resolver.resolve_annotation(ProfileModel)
    assert node.to_openapi() == {"$ref": "#/components/schemas/ProfileModel"}
    assert resolver.registry.get("ProfileModel").to_openapi() == {
        "type": "object",
        "properties": {
            "website": {"type": "string"},
            "bio": {"type": "string", "nullable": True},
        },
        "required": ["website"],
    }


def test_nullable_named_type(resolver: TypeResolver) -> None:
    """A nullable reference wraps the pointer in allOf."""
    assert resolver.resolve_annotation(AddressData | None).to_openapi() == {
        "allOf": [{"$ref": "#/components/schemas/AddressData"}],
        "nullable": True,
    }


def test_generic_item_fallback(resolver: TypeResolver) -> None:
    """The secondary item type fills in an unknown or missing item type."""
    generic = NamedType(TagData, Capability.DECLARED_FIELDS)
    expected = {"type": "array", "items": {"$ref": "#/components/schemas/TagData"}}

    unknown_item = CollectionType(item_type=UNKNOWN, generic_item_type=generic)
    missing_item = CollectionType(generic_item_type=generic)
    assert resolver.resolve(unknown_item).to_openapi() == expected
    assert resolver.resolve(missing_item).to_openapi() == expected


def test_declared_item_wins_over_generic(resolver: TypeResolver) -> None:
    """A known annotation item type is kept."""
    descriptor = CollectionType(
        item_type=PrimitiveType(PrimitiveKind.INTEGER),
        generic_item_type=NamedType(TagData, Capability.DECLARED_FIELDS),
    )
    assert resolver.resolve(descriptor).to_openapi() == {
        "type": "array",
        "items": {"type": "integer"},
    }
    assert not resolver.registry.contains(TagData)


def test_missing_analyzer() -> None:
    """Resolving a named type without its analyzer is a capability error."""
    resolver = TypeResolver(SchemaRegistry())
    with pytest.raises(CapabilityError) as excinfo:
        resolver.resolve_annotation(AddressData)
    assert excinfo.value.context == {"capability": "declared-fields"}


def test_projection_methods_are_configurable() -> None:
    """The resolver describes with its own projection method names."""
    resolver = TypeResolver(SchemaRegistry(), projection_methods=("serialize",))
    assert resolver.projection_methods == ("serialize",)
