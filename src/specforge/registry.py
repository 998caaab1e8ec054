"""Per-run registry of named component schemas.

An identity is reserved (:meth:`SchemaRegistry.register`) before its fields
are resolved and filled in afterwards (:meth:`SchemaRegistry.define`). A
reserved identity already resolves to a name, which is what lets cyclic type
graphs terminate: the back edge becomes a reference to the reserved slot.

Examples
--------
>>> registry = SchemaRegistry()
>>> class User: ...
>>> registry.register(User)
'User'
>>> registry.contains(User)
True
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from specforge.schema import ObjectSchema, ReferenceSchema
from specforge_common.errors import RegistryError
from specforge_common.logging import get_logger

if TYPE_CHECKING:
    from specforge.schema import SchemaNode

__all__ = ["SchemaRegistry", "qualified_name"]

logger = get_logger(__name__)


def qualified_name(identity: type) -> str:
    """Return ``module.QualName`` for ``identity``."""
    return f"{identity.__module__}.{identity.__qualname__}"


class SchemaRegistry:
    """Mapping of type identity to component name and schema.

    Identity to name is injective: when a second, distinct identity shares
    the short name of an already registered one, it is registered under its
    qualified name instead. The first registrant keeps the short name.
    """

    def __init__(self) -> None:
        self._names: dict[type, str] = {}
        self._definitions: dict[str, SchemaNode | None] = {}

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, identity: object) -> bool:
        return identity in self._names

    def register(self, identity: type) -> str:
        """Reserve a component name for ``identity`` and return it.

        Idempotent: registering the same identity again returns the name
        chosen the first time and does not touch its definition.

        Parameters
        ----------
        identity : type
            The class being described.

        Returns
        -------
        str
            Component schema name.
        """
        existing = self._names.get(identity)
        if existing is not None:
            return existing

        name = self._choose_name(identity)
        self._names[identity] = name
        self._definitions[name] = None
        logger.debug(
            "Reserved component schema",
            extra={"operation": "register_schema", "schema": name},
        )
        return name

    def _choose_name(self, identity: type) -> str:
        short = identity.__name__
        if short not in self._definitions:
            return short

        qualified = qualified_name(identity)
        candidate = qualified
        suffix = 2
        while candidate in self._definitions:
            candidate = f"{qualified}_{suffix}"
            suffix += 1
        logger.warning(
            "Schema name collision, using qualified name",
            extra={"operation": "register_schema", "schema": short, "qualified": candidate},
        )
        return candidate

    def define(self, identity: type, node: SchemaNode) -> None:
        """Store the schema of a previously reserved identity.

        Raises
        ------
        RegistryError
            If ``identity`` was never registered.
        """
        name = self._names.get(identity)
        if name is None:
            msg = f"Cannot define schema for unregistered type {qualified_name(identity)}"
            raise RegistryError(msg, context={"identity": qualified_name(identity)})
        self._definitions[name] = node

    def contains(self, identity: type) -> bool:
        """Return True once ``identity`` is reserved, defined or not."""
        return identity in self._names

    def is_defined(self, identity: type) -> bool:
        """Return True when ``identity`` has a stored schema."""
        name = self._names.get(identity)
        return name is not None and self._definitions[name] is not None

    def name_for(self, identity: type) -> str | None:
        return self._names.get(identity)

    def reference(self, identity: type, *, nullable: bool = False) -> ReferenceSchema:
        """Return a reference to ``identity``, reserving it if needed."""
        return ReferenceSchema(self.register(identity), nullable=nullable)

    def get(self, name: str) -> SchemaNode | None:
        return self._definitions.get(name)

    def all_entries(self) -> dict[str, SchemaNode]:
        """Return every component schema in registration order.

        A reservation that was never filled in (its analysis was interrupted)
        is emitted as a generic object so every reference still resolves.
        """
        entries: dict[str, SchemaNode] = {}
        for name, node in self._definitions.items():
            if node is None:
                logger.warning(
                    "Component schema reserved but never defined",
                    extra={"operation": "finalize_components", "schema": name},
                )
                node = ObjectSchema()
            entries[name] = node
        return entries

    def reset(self) -> None:
        """Forget every reservation and definition."""
        self._names.clear()
        self._definitions.clear()
