"""Translation of validation rule lists into schema constraints.

A rule list is either a pipe-delimited string (``"required|string|max:255"``)
or a sequence of tokens. Tokens are folded left to right into a
:class:`ConstraintSet`; later tokens overwrite attributes set by earlier ones,
``required`` and ``nullable`` stay set once seen, and ``sometimes`` clears
``required``. Unknown tokens are ignored.

Examples
--------
>>> constraints = translate("required|string|min:2|max:100")
>>> constraints.to_schema().to_openapi()
{'type': 'string', 'minLength': 2, 'maxLength': 100}
>>> constraints.required
True
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Final

from specforge.schema import ArraySchema, PrimitiveSchema, SchemaNode

__all__ = ["ConstraintSet", "Rule", "RuleList", "split_rules", "translate"]

type Rule = str | object
type RuleList = str | Sequence[Rule]

# keyword -> (type, format)
_TYPE_KEYWORDS: Final[dict[str, tuple[str, str | None]]] = {
    "string": ("string", None),
    "integer": ("integer", None),
    "int": ("integer", None),
    "numeric": ("number", None),
    "decimal": ("number", None),
    "boolean": ("boolean", None),
    "bool": ("boolean", None),
    "array": ("array", None),
    "email": ("string", "email"),
    "url": ("string", "uri"),
    "uuid": ("string", "uuid"),
    "date": ("string", "date"),
    "date_format": ("string", "date-time"),
}

_NUMERIC_TYPES: Final[frozenset[str]] = frozenset({"integer", "number"})


@dataclass(frozen=True, slots=True)
class ConstraintSet:
    """Normalized constraints of one validated field."""

    type: str = "string"
    format: str | None = None
    nullable: bool = False
    enum: tuple[str, ...] | None = None
    minimum: int | float | None = None
    maximum: int | float | None = None
    min_length: int | None = None
    max_length: int | None = None
    min_items: int | None = None
    max_items: int | None = None
    required: bool = False

    def to_schema(self, items: SchemaNode | None = None) -> SchemaNode:
        """Render the constraints as a schema node.

        Parameters
        ----------
        items : SchemaNode | None, optional
            Item schema when the constraints describe an array. Defaults to a
            string item schema.

        Returns
        -------
        SchemaNode
            :class:`ArraySchema` for ``array`` constraints, otherwise a
            :class:`PrimitiveSchema`.
        """
        if self.type == "array":
            return ArraySchema(
                items=items if items is not None else PrimitiveSchema(),
                nullable=self.nullable,
                min_items=self.min_items,
                max_items=self.max_items,
            )
        return PrimitiveSchema(
            type=self.type,
            format=self.format,
            nullable=self.nullable,
            enum=_coerce_enum(self.enum, self.type),
            minimum=self.minimum,
            maximum=self.maximum,
            min_length=self.min_length,
            max_length=self.max_length,
        )


def _coerce_enum(values: tuple[str, ...] | None, kind: str) -> tuple[object, ...] | None:
    if values is None or kind not in _NUMERIC_TYPES:
        return values
    coerced: list[object] = []
    for value in values:
        number = _parse_number(value)
        if number is None:
            return values
        coerced.append(number)
    return tuple(coerced)


def _parse_number(text: str) -> int | float | None:
    text = text.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return None


def split_rules(rules: RuleList) -> list[str]:
    """Normalize a rule list to string tokens.

    Rule objects are represented by their class name.
    """
    if isinstance(rules, str):
        raw: Sequence[Rule] = rules.split("|")
    elif isinstance(rules, Sequence):
        raw = rules
    else:
        raw = [rules]
    tokens: list[str] = []
    for rule in raw:
        token = rule.strip() if isinstance(rule, str) else type(rule).__name__
        if token:
            tokens.append(token)
    return tokens


def _apply_bound(constraints: ConstraintSet, bound: int | float, *, upper: bool) -> ConstraintSet:
    if constraints.type in _NUMERIC_TYPES:
        return replace(constraints, **{"maximum" if upper else "minimum": bound})
    size = int(bound)
    if constraints.type == "array":
        return replace(constraints, **{"max_items" if upper else "min_items": size})
    return replace(constraints, **{"max_length" if upper else "min_length": size})


def _fold(constraints: ConstraintSet, token: str) -> ConstraintSet:
    keyword, _, argument = token.partition(":")
    keyword = keyword.strip()

    if keyword in _TYPE_KEYWORDS:
        kind, fmt = _TYPE_KEYWORDS[keyword]
        return replace(constraints, type=kind, format=fmt)
    if keyword == "nullable":
        return replace(constraints, nullable=True)
    if keyword == "required" or "Required" in keyword:
        return replace(constraints, required=True)
    if keyword == "sometimes":
        return replace(constraints, required=False)
    if keyword == "in" and argument:
        values = tuple(value.strip() for value in argument.split(","))
        return replace(constraints, enum=values)
    if keyword in {"min", "max"} and argument:
        bound = _parse_number(argument)
        if bound is None:
            return constraints
        return _apply_bound(constraints, bound, upper=keyword == "max")
    if keyword == "between" and argument:
        low, _, high = argument.partition(",")
        low_bound, high_bound = _parse_number(low), _parse_number(high)
        if low_bound is not None:
            constraints = _apply_bound(constraints, low_bound, upper=False)
        if high_bound is not None:
            constraints = _apply_bound(constraints, high_bound, upper=True)
        return constraints
    return constraints


def translate(rules: RuleList) -> ConstraintSet:
    """Fold a rule list into a :class:`ConstraintSet`.

    Parameters
    ----------
    rules : RuleList
        Pipe-delimited rule string or a sequence of tokens and rule objects.

    Returns
    -------
    ConstraintSet
        The folded constraints. The type defaults to ``string``.

    Examples
    --------
    >>> translate("nullable|integer|min:18|max:120").to_schema().to_openapi()
    {'type': 'integer', 'nullable': True, 'minimum': 18, 'maximum': 120}
    """
    constraints = ConstraintSet()
    for token in split_rules(rules):
        constraints = _fold(constraints, token)
    return constraints
