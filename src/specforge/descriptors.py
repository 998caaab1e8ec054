"""Type descriptors built from Python type annotations.

A :class:`TypeDescriptor` is the immutable, framework-neutral view of one
annotation: a primitive kind, a nullable wrapper, a union, a named structured
type tagged with its :class:`Capability`, or a homogeneous collection. The
resolver turns descriptors into schema nodes; nothing downstream looks at raw
annotations again.

Examples
--------
>>> permits_null(describe(int | None))
True
>>> describe(list[int])
CollectionType(item_type=PrimitiveType(kind=<PrimitiveKind.INTEGER: 'integer'>, enum=None), generic_item_type=None)
"""

from __future__ import annotations

import collections.abc
import dataclasses
import datetime as dt
import decimal
import enum
import inspect
import types
import typing
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Annotated, Any, Final, ForwardRef, Literal, TypeAliasType, get_args, get_origin

import msgspec
import pydantic

from specforge.contracts import FormRequest, JsonResource, Nullable, ResourceCollection

__all__ = [
    "DEFAULT_PROJECTION_METHODS",
    "NULL",
    "UNKNOWN",
    "Capability",
    "CollectionType",
    "NamedType",
    "NullableType",
    "PrimitiveKind",
    "PrimitiveType",
    "TypeDescriptor",
    "UnionType",
    "classify",
    "describe",
    "find_projection_method",
    "permits_null",
]

DEFAULT_PROJECTION_METHODS: Final[tuple[str, ...]] = ("to_dict", "to_array", "to_representation")


class PrimitiveKind(StrEnum):
    """Scalar kinds a descriptor can carry."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    DATE = "date"
    DATETIME = "date-time"
    UUID = "uuid"
    NULL = "null"
    UNKNOWN = "unknown"


class Capability(StrEnum):
    """How a named type exposes its shape.

    Attributes
    ----------
    RULE_VALIDATED
        Shape given by a ``rules()`` table.
    DECLARED_FIELDS
        Shape given by typed field declarations (dataclass, msgspec, pydantic).
    PROJECTED
        Shape produced by a projection method such as ``to_dict``.
    """

    RULE_VALIDATED = "rule-validated"
    DECLARED_FIELDS = "declared-fields"
    PROJECTED = "projected"


@dataclass(frozen=True, slots=True)
class PrimitiveType:
    kind: PrimitiveKind
    enum: tuple[object, ...] | None = None


@dataclass(frozen=True, slots=True)
class NullableType:
    inner: TypeDescriptor


@dataclass(frozen=True, slots=True)
class UnionType:
    members: tuple[TypeDescriptor, ...]


@dataclass(frozen=True, slots=True)
class NamedType:
    identity: type
    capability: Capability


@dataclass(frozen=True, slots=True)
class CollectionType:
    """Homogeneous collection.

    ``item_type`` comes from the annotation itself; ``generic_item_type`` from
    a secondary source such as a docstring. Either may be missing.
    """

    item_type: TypeDescriptor | None = None
    generic_item_type: TypeDescriptor | None = None


type TypeDescriptor = PrimitiveType | NullableType | UnionType | NamedType | CollectionType

NULL: Final[PrimitiveType] = PrimitiveType(PrimitiveKind.NULL)
UNKNOWN: Final[PrimitiveType] = PrimitiveType(PrimitiveKind.UNKNOWN)

_PRIMITIVES: Final[dict[type, PrimitiveKind]] = {
    str: PrimitiveKind.STRING,
    bytes: PrimitiveKind.STRING,
    bool: PrimitiveKind.BOOLEAN,
    int: PrimitiveKind.INTEGER,
    float: PrimitiveKind.NUMBER,
    decimal.Decimal: PrimitiveKind.NUMBER,
    dict: PrimitiveKind.OBJECT,
    dt.datetime: PrimitiveKind.DATETIME,
    dt.date: PrimitiveKind.DATE,
    uuid.UUID: PrimitiveKind.UUID,
}

_COLLECTION_BASES: Final[tuple[type, ...]] = (
    list,
    tuple,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.Set,
    collections.abc.Iterable,
)
_NOT_COLLECTIONS: Final[tuple[type, ...]] = (
    str,
    bytes,
    Mapping,
    pydantic.BaseModel,
    msgspec.Struct,
)


def _is_collection_class(cls: type) -> bool:
    # pydantic models define __iter__ but are declared-field types
    return issubclass(cls, _COLLECTION_BASES) and not issubclass(cls, _NOT_COLLECTIONS)


def find_projection_method(
    cls: type, method_names: Iterable[str] = DEFAULT_PROJECTION_METHODS
) -> typing.Callable[..., object] | None:
    """Return the first projection method ``cls`` defines itself.

    Methods inherited from :class:`JsonResource` or ``object`` do not count:
    they describe no application-specific shape.
    """
    for klass in cls.__mro__:
        if klass in {JsonResource, object}:
            break
        for name in method_names:
            member = klass.__dict__.get(name)
            if callable(member):
                return member
    return None


def classify(
    cls: type, projection_methods: Iterable[str] = DEFAULT_PROJECTION_METHODS
) -> Capability | None:
    """Tag ``cls`` with the capability the resolver dispatches on.

    Rule tables win over field declarations, which win over projections.

    Parameters
    ----------
    cls : type
        Candidate class.
    projection_methods : Iterable[str], optional
        Method names that mark a projected type.

    Returns
    -------
    Capability | None
        ``None`` when ``cls`` is not a structured type.
    """
    if not inspect.isclass(cls):
        return None
    if issubclass(cls, FormRequest) or callable(getattr(cls, "rules", None)):
        return Capability.RULE_VALIDATED
    if (
        dataclasses.is_dataclass(cls)
        or issubclass(cls, msgspec.Struct)
        or issubclass(cls, pydantic.BaseModel)
    ):
        return Capability.DECLARED_FIELDS
    if issubclass(cls, JsonResource) or find_projection_method(cls, projection_methods):
        return Capability.PROJECTED
    return None


def permits_null(descriptor: TypeDescriptor) -> bool:
    """Return True when ``descriptor`` admits ``None``."""
    match descriptor:
        case NullableType():
            return True
        case PrimitiveType(kind=PrimitiveKind.NULL):
            return True
        case UnionType(members=members):
            return any(permits_null(member) for member in members)
        case _:
            return False


def _enum_kind(values: Iterable[object]) -> PrimitiveKind:
    kinds = {_PRIMITIVES.get(type(value), PrimitiveKind.STRING) for value in values}
    if len(kinds) == 1:
        return kinds.pop()
    return PrimitiveKind.STRING


def _describe_collection(
    origin: type, args: tuple[Any, ...], methods: tuple[str, ...]
) -> CollectionType:
    if not args:
        return CollectionType()
    item = args[0]
    if origin is tuple and len(args) > 1 and args[1] is not Ellipsis:
        members = tuple(describe(arg, projection_methods=methods) for arg in args)
        item_type = members[0] if len(set(members)) == 1 else UnionType(members)
        return CollectionType(item_type=item_type)
    return CollectionType(item_type=describe(item, projection_methods=methods))


def describe(
    annotation: object, *, projection_methods: Iterable[str] = DEFAULT_PROJECTION_METHODS
) -> TypeDescriptor:
    """Build the :class:`TypeDescriptor` of a type annotation.

    Unsupported annotations (``Any``, unresolved forward references, plain
    classes without a capability) become :data:`UNKNOWN`; this function never
    raises for benign input.

    Parameters
    ----------
    annotation : object
        Annotation as returned by ``typing.get_type_hints(..., include_extras=True)``.
    projection_methods : Iterable[str], optional
        Method names that mark a projected type.

    Returns
    -------
    TypeDescriptor
        Immutable descriptor.
    """
    methods = tuple(projection_methods)

    if annotation is None or annotation is types.NoneType:
        return NULL
    if annotation is Any or annotation is object or isinstance(annotation, (str, ForwardRef)):
        return UNKNOWN
    if isinstance(annotation, TypeAliasType):
        return describe(annotation.__value__, projection_methods=methods)
    supertype = getattr(annotation, "__supertype__", None)
    if supertype is not None:
        return describe(supertype, projection_methods=methods)

    origin = get_origin(annotation)
    args = get_args(annotation)

    if origin is Annotated:
        inner = describe(args[0], projection_methods=methods)
        if any(isinstance(marker, Nullable) for marker in args[1:]) and not permits_null(inner):
            return NullableType(inner)
        return inner
    if origin is typing.Union or origin is types.UnionType:
        return UnionType(tuple(describe(arg, projection_methods=methods) for arg in args))
    if origin is Literal:
        return PrimitiveType(_enum_kind(args), enum=args)
    if origin is not None:
        if not inspect.isclass(origin):
            return UNKNOWN
        if issubclass(origin, ResourceCollection) or _is_collection_class(origin):
            return _describe_collection(origin, args, methods)
        if issubclass(origin, Mapping):
            return PrimitiveType(PrimitiveKind.OBJECT)
        annotation = origin

    if not inspect.isclass(annotation):
        return UNKNOWN
    if issubclass(annotation, enum.Enum):
        values = tuple(member.value for member in annotation)
        return PrimitiveType(_enum_kind(values), enum=values)
    if annotation in _PRIMITIVES:
        return PrimitiveType(_PRIMITIVES[annotation])
    if issubclass(annotation, ResourceCollection):
        collects = annotation.collects
        if collects is None:
            return CollectionType()
        return CollectionType(item_type=describe(collects, projection_methods=methods))

    capability = classify(annotation, methods)
    if capability is not None:
        return NamedType(annotation, capability)
    if _is_collection_class(annotation):
        return CollectionType()
    if issubclass(annotation, Mapping):
        return PrimitiveType(PrimitiveKind.OBJECT)
    return UNKNOWN
