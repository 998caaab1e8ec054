"""Analyzer for types validated by a rule table.

The rule table maps field names to rule lists. Dotted names describe nested
input: ``address.city`` is the ``city`` property of the ``address`` object,
``items.*`` describes the elements of the ``items`` array and
``items.*.sku`` a property of those elements.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from specforge.analyzers.base import StructuredTypeAnalyzer
from specforge.descriptors import Capability
from specforge.rules import ConstraintSet, RuleList, translate
from specforge.schema import ArraySchema, ObjectSchema, with_nullable
from specforge_common.errors import AnalysisError
from specforge_common.logging import get_logger

if TYPE_CHECKING:
    from specforge.resolver import TypeResolver
    from specforge.schema import SchemaNode

__all__ = ["RuleSetAnalyzer", "RuleSource", "build_rule_schema", "default_rule_source"]

logger = get_logger(__name__)

type RuleSource = Callable[[type], Mapping[str, RuleList]]


def default_rule_source(cls: type) -> Mapping[str, RuleList]:
    """Call ``cls.rules()`` on an instance created without running ``__init__``.

    Raises
    ------
    AnalysisError
        If ``rules`` is missing or does not return a mapping.
    """
    instance = cls.__new__(cls)
    rules = getattr(instance, "rules", None)
    if not callable(rules):
        msg = f"{cls.__qualname__} has no callable rules()"
        raise AnalysisError(msg, context={"type": cls.__qualname__})
    table = rules()
    if not isinstance(table, Mapping):
        msg = f"{cls.__qualname__}.rules() returned {type(table).__name__}, expected a mapping"
        raise AnalysisError(msg, context={"type": cls.__qualname__})
    return table


@dataclass(slots=True)
class _RuleNode:
    constraints: ConstraintSet | None = None
    children: dict[str, _RuleNode] = field(default_factory=dict)
    items: _RuleNode | None = None

    def child(self, part: str) -> _RuleNode:
        if part == "*":
            if self.items is None:
                self.items = _RuleNode()
            return self.items
        return self.children.setdefault(part, _RuleNode())

    @property
    def required(self) -> bool:
        return self.constraints is not None and self.constraints.required

    def to_schema(self) -> SchemaNode:
        constraints = self.constraints or ConstraintSet()
        if self.items is not None:
            items = self.items.to_schema()
            node = constraints.to_schema(items=items)
            if isinstance(node, ArraySchema):
                return node
            return ArraySchema(items=items, nullable=constraints.nullable)
        if self.children:
            return with_nullable(self._object(), nullable=constraints.nullable)
        return constraints.to_schema()

    def _object(self) -> ObjectSchema:
        return ObjectSchema(
            properties={name: child.to_schema() for name, child in self.children.items()},
            required=tuple(name for name, child in self.children.items() if child.required),
        )


def build_rule_schema(table: Mapping[str, RuleList]) -> ObjectSchema:
    """Build the object schema described by a rule table.

    Examples
    --------
    >>> schema = build_rule_schema({"name": "required|string", "tags.*": "string|max:20"})
    >>> schema.required
    ('name',)
    >>> schema.properties["tags"].to_openapi()["items"]
    {'type': 'string', 'maxLength': 20}
    """
    root = _RuleNode()
    for key, rules in table.items():
        node = root
        for part in str(key).split("."):
            node = node.child(part)
        node.constraints = translate(rules)
    return root._object()


class RuleSetAnalyzer(StructuredTypeAnalyzer):
    """Object schema from a rule table.

    Parameters
    ----------
    resolver : TypeResolver
        Owning resolver.
    rule_source : RuleSource, optional
        Produces the rule table of a class. Defaults to :func:`default_rule_source`.
    """

    capability = Capability.RULE_VALIDATED

    def __init__(
        self, resolver: TypeResolver, rule_source: RuleSource = default_rule_source
    ) -> None:
        super().__init__(resolver)
        self.rule_source = rule_source

    def build(self, cls: type) -> ObjectSchema:
        try:
            table = self.rule_source(cls)
        except Exception as exc:
            logger.log_failure(
                "Rule table unavailable, documenting no fields",
                exception=exc,
                operation="analyze_type",
                type_name=cls.__qualname__,
            )
            table = {}
        return build_rule_schema(table)
