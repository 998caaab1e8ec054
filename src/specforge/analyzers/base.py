"""Common contract of the structured-type analyzers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

from specforge.descriptors import Capability, classify
from specforge.schema import ObjectSchema
from specforge_common.errors import CapabilityError
from specforge_common.logging import get_logger

if TYPE_CHECKING:
    from specforge.registry import SchemaRegistry
    from specforge.resolver import TypeResolver

__all__ = ["StructuredTypeAnalyzer"]

logger = get_logger(__name__)


class StructuredTypeAnalyzer(ABC):
    """Turn a named structured type into an object schema.

    :meth:`analyze` reserves the type's component name before building its
    schema, so a field that refers back to the type (directly or through other
    types) resolves to a reference instead of recursing. Results are cached:
    analyzing the same class again returns the identical node.

    Parameters
    ----------
    resolver : TypeResolver
        Resolver used for field types; it also owns the registry and catalog.
    """

    capability: ClassVar[Capability]

    def __init__(self, resolver: TypeResolver) -> None:
        self.resolver = resolver
        self._cache: dict[type, ObjectSchema] = {}
        resolver.register_analyzer(self)

    @property
    def registry(self) -> SchemaRegistry:
        return self.resolver.registry

    def supports(self, cls: type) -> bool:
        return classify(cls, self.resolver.projection_methods) is self.capability

    def analyze(self, cls: type) -> ObjectSchema:
        """Return the object schema of ``cls`` and store it in the registry.

        Parameters
        ----------
        cls : type
            Class carrying this analyzer's capability.

        Returns
        -------
        ObjectSchema
            Cached schema; a documented fallback when analysis failed.

        Raises
        ------
        CapabilityError
            If ``cls`` lacks this analyzer's capability.
        """
        if not self.supports(cls):
            msg = f"{type(self).__name__} cannot analyze {cls!r}: not {self.capability.value}"
            raise CapabilityError(
                msg, context={"type": cls.__qualname__, "capability": self.capability.value}
            )
        cached = self._cache.get(cls)
        if cached is not None:
            return cached

        name = self.registry.register(cls)
        try:
            node = self.build(cls)
        except CapabilityError:
            raise
        except Exception as exc:
            logger.log_failure(
                "Type analysis failed, using fallback schema",
                exception=exc,
                operation="analyze_type",
                schema=name,
                capability=self.capability.value,
            )
            node = self.fallback(cls)

        self._cache[cls] = node
        self.registry.define(cls, node)
        return node

    @abstractmethod
    def build(self, cls: type) -> ObjectSchema:
        """Build the schema of ``cls``; called at most once per class."""

    def fallback(self, cls: type) -> ObjectSchema:
        del cls
        return ObjectSchema()

    def reset(self) -> None:
        self._cache.clear()
