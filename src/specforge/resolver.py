"""Resolution of type descriptors into schema nodes.

Named types are never inlined: the resolver makes sure the type is in the
registry (running its analyzer the first time) and returns a reference.
Because analyzers reserve a name before they resolve any field, a type graph
that refers back to a type under analysis terminates with a reference.

Examples
--------
>>> from specforge.registry import SchemaRegistry
>>> resolver = TypeResolver(SchemaRegistry())
>>> resolver.resolve_annotation(int | None).to_openapi()
{'type': 'integer', 'nullable': True}
>>> resolver.resolve_annotation(int | str).to_openapi()
{'oneOf': [{'type': 'integer'}, {'type': 'string'}]}
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Final

from specforge.catalog import TypeCatalog
from specforge.descriptors import (
    DEFAULT_PROJECTION_METHODS,
    Capability,
    CollectionType,
    NamedType,
    NullableType,
    PrimitiveKind,
    PrimitiveType,
    UnionType,
    describe,
)
from specforge.schema import (
    ArraySchema,
    ObjectSchema,
    OneOfSchema,
    PrimitiveSchema,
    ReferenceSchema,
    with_nullable,
)
from specforge_common.errors import CapabilityError

if TYPE_CHECKING:
    from specforge.analyzers.base import StructuredTypeAnalyzer
    from specforge.descriptors import TypeDescriptor
    from specforge.registry import SchemaRegistry
    from specforge.schema import SchemaNode

__all__ = ["TypeResolver"]

# kind -> (type, format)
_PRIMITIVE_SCHEMAS: Final[dict[PrimitiveKind, tuple[str, str | None]]] = {
    PrimitiveKind.STRING: ("string", None),
    PrimitiveKind.INTEGER: ("integer", None),
    PrimitiveKind.NUMBER: ("number", "float"),
    PrimitiveKind.BOOLEAN: ("boolean", None),
    PrimitiveKind.DATE: ("string", "date"),
    PrimitiveKind.DATETIME: ("string", "date-time"),
    PrimitiveKind.UUID: ("string", "uuid"),
}


class TypeResolver:
    """Turn :class:`~specforge.descriptors.TypeDescriptor` values into schema nodes.

    Parameters
    ----------
    registry : SchemaRegistry
        Registry of the current generation run.
    catalog : TypeCatalog | None, optional
        Short-name lookup used by heuristics that only know a class name.
    projection_methods : Iterable[str], optional
        Method names that mark projected presentation types.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        catalog: TypeCatalog | None = None,
        *,
        projection_methods: Iterable[str] = DEFAULT_PROJECTION_METHODS,
    ) -> None:
        self.registry = registry
        self.catalog = catalog if catalog is not None else TypeCatalog()
        self.projection_methods = tuple(projection_methods)
        self._analyzers: dict[Capability, StructuredTypeAnalyzer] = {}

    def register_analyzer(self, analyzer: StructuredTypeAnalyzer) -> None:
        self._analyzers[analyzer.capability] = analyzer

    def analyzer_for(self, capability: Capability) -> StructuredTypeAnalyzer:
        """Return the analyzer registered for ``capability``.

        Raises
        ------
        CapabilityError
            If no analyzer handles ``capability``.
        """
        try:
            return self._analyzers[capability]
        except KeyError as exc:
            msg = f"No analyzer registered for capability {capability.value!r}"
            raise CapabilityError(msg, cause=exc, context={"capability": capability.value}) from exc

    def describe(self, annotation: object) -> TypeDescriptor:
        return describe(annotation, projection_methods=self.projection_methods)

    def resolve_annotation(self, annotation: object) -> SchemaNode:
        """Describe and resolve ``annotation`` in one step."""
        return self.resolve(self.describe(annotation))

    def resolve(self, descriptor: TypeDescriptor) -> SchemaNode:
        """Return the schema node of ``descriptor``.

        Parameters
        ----------
        descriptor : TypeDescriptor
            Descriptor to resolve.

        Returns
        -------
        SchemaNode
            Primitive kinds map to their type/format pair, unknown kinds to
            ``string``; named types resolve to a :class:`ReferenceSchema`.
        """
        match descriptor:
            case PrimitiveType():
                return self._primitive(descriptor)
            case NullableType(inner=inner):
                return with_nullable(self.resolve(inner))
            case UnionType(members=members):
                return self._union(members)
            case NamedType(identity=identity, capability=capability):
                return self._named(identity, capability)
            case CollectionType(item_type=item_type, generic_item_type=generic_item_type):
                return self._collection(item_type, generic_item_type)
            case _:
                return PrimitiveSchema(type="string")

    def _primitive(self, descriptor: PrimitiveType) -> SchemaNode:
        if descriptor.kind is PrimitiveKind.OBJECT:
            return ObjectSchema()
        if descriptor.kind is PrimitiveKind.NULL:
            return PrimitiveSchema(type="string", nullable=True)
        schema_type, schema_format = _PRIMITIVE_SCHEMAS.get(descriptor.kind, ("string", None))
        return PrimitiveSchema(type=schema_type, format=schema_format, enum=descriptor.enum)

    def _union(self, members: tuple[TypeDescriptor, ...]) -> SchemaNode:
        present = [
            member
            for member in members
            if not (isinstance(member, PrimitiveType) and member.kind is PrimitiveKind.NULL)
        ]
        nullable = len(present) != len(members)
        if not present:
            return PrimitiveSchema(type="string", nullable=True)
        if len(present) == 1:
            node = self.resolve(present[0])
            return with_nullable(node) if nullable else node
        return OneOfSchema(tuple(self.resolve(member) for member in present), nullable=nullable)

    def _named(self, identity: type, capability: Capability) -> ReferenceSchema:
        if not self.registry.contains(identity):
            self.analyzer_for(capability).analyze(identity)
        return self.registry.reference(identity)

    def _collection(
        self, item_type: TypeDescriptor | None, generic_item_type: TypeDescriptor | None
    ) -> ArraySchema:
        chosen = item_type
        if chosen is None or (
            isinstance(chosen, PrimitiveType)
            and chosen.kind is PrimitiveKind.UNKNOWN
            and generic_item_type is not None
        ):
            chosen = generic_item_type
        if chosen is None:
            return ArraySchema(items=PrimitiveSchema(type="string"))
        return ArraySchema(items=self.resolve(chosen))
