"""Static scanning of handler and projection source code.

Everything here reads source text with :mod:`inspect` and walks it with
:mod:`ast`; no application code is executed. Each scan tolerates missing or
unparsable source and then returns an empty result.
"""

from __future__ import annotations

import ast
import inspect
import re
import textwrap
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = [
    "HintKind",
    "ValueHint",
    "collection_item_names",
    "looks_like_fetch_or_fail",
    "method_source",
    "projection_shape",
    "self_attribute_names",
]

_FETCH_OR_FAIL_NAME: Final = re.compile(
    r"^(?:get_object_or_404|get_list_or_404|\w*_or_(?:fail|404|raise|abort))$"
)
_FETCH_OR_FAIL_TEXT: Final = re.compile(
    r"\b(?:get_object_or_404|get_list_or_404|\w+_or_(?:fail|404|raise|abort))\s*\("
)
_COLLECTION_TEXT: Final = re.compile(r"\b([A-Z]\w*)\.collection\s*\(")
_CONSTRUCTOR_TEXT: Final = re.compile(r"\b([A-Z]\w*Resource)\s*\(")


class HintKind(StrEnum):
    """Shape of a projected value as far as its expression reveals it."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    ARRAY = "array"
    OBJECT = "object"
    NAMED = "named"
    COLLECTION = "collection"


@dataclass(frozen=True, slots=True)
class ValueHint:
    """What a projection value expression says about its type.

    ``name`` is set for :attr:`HintKind.NAMED` and :attr:`HintKind.COLLECTION`;
    ``fields`` for :attr:`HintKind.OBJECT` literals.
    """

    kind: HintKind
    name: str | None = None
    fields: dict[str, ValueHint | None] = field(default_factory=dict)


def method_source(func: Callable[..., object] | None) -> str | None:
    """Return the dedented source of ``func`` or ``None`` when unavailable."""
    if func is None:
        return None
    try:
        return textwrap.dedent(inspect.getsource(inspect.unwrap(func)))
    except (OSError, TypeError):
        return None


def _parse(source: str | None) -> ast.Module | None:
    if not source:
        return None
    try:
        return ast.parse(source)
    except SyntaxError:
        return None


def _call_name(node: ast.Call) -> str | None:
    if isinstance(node.func, ast.Name):
        return node.func.id
    if isinstance(node.func, ast.Attribute):
        return node.func.attr
    return None


def looks_like_fetch_or_fail(source: str | None) -> bool:
    """Return True when ``source`` calls a fetch-or-fail style lookup.

    Recognized calls are ``get_object_or_404`` and anything named
    ``*_or_fail``, ``*_or_404``, ``*_or_raise`` or ``*_or_abort``, as plain
    functions or methods (``User.objects.find_or_fail(id)``).

    Parameters
    ----------
    source : str | None
        Handler source text.

    Returns
    -------
    bool
        Whether such a call occurs. Unparsable source is scanned textually.

    Examples
    --------
    >>> looks_like_fetch_or_fail("def show(self, id):\\n    return repo.find_or_fail(id)")
    True
    >>> looks_like_fetch_or_fail("def index(self):\\n    return repo.all()")
    False
    """
    if not source:
        return False
    tree = _parse(source)
    if tree is None:
        return bool(_FETCH_OR_FAIL_TEXT.search(source))
    for node in ast.walk(tree):
        if isinstance(node, ast.Call):
            name = _call_name(node)
            if name is not None and _FETCH_OR_FAIL_NAME.match(name):
                return True
    return False


def collection_item_names(source: str | None) -> list[str]:
    """Return class names the handler source wraps into a collection.

    ``Name.collection(...)`` calls come first, then constructor calls of
    capitalized names, each group in source order.
    """
    if not source:
        return []
    tree = _parse(source)
    if tree is None:
        names = _COLLECTION_TEXT.findall(source) + _CONSTRUCTOR_TEXT.findall(source)
        return list(dict.fromkeys(names))

    collections: list[str] = []
    constructors: list[str] = []
    calls = sorted(
        (node for node in ast.walk(tree) if isinstance(node, ast.Call)),
        key=lambda node: (node.lineno, node.col_offset),
    )
    for node in calls:
        func = node.func
        if (
            isinstance(func, ast.Attribute)
            and func.attr == "collection"
            and isinstance(func.value, ast.Name)
        ):
            collections.append(func.value.id)
        elif isinstance(func, ast.Name) and func.id[:1].isupper():
            constructors.append(func.id)
    return list(dict.fromkeys(collections + constructors))


def _function_node(tree: ast.Module | None) -> ast.FunctionDef | ast.AsyncFunctionDef | None:
    if tree is None:
        return None
    for node in tree.body:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            return node
    return None


def _hint(node: ast.expr) -> ValueHint | None:
    match node:
        case ast.Constant(value=bool()):
            return ValueHint(HintKind.BOOLEAN)
        case ast.Constant(value=int()):
            return ValueHint(HintKind.INTEGER)
        case ast.Constant(value=float()):
            return ValueHint(HintKind.NUMBER)
        case ast.Constant(value=str()) | ast.JoinedStr():
            return ValueHint(HintKind.STRING)
        case ast.Constant(value=None):
            return ValueHint(HintKind.NULL)
        case ast.Dict():
            fields = _dict_fields(node)
            return ValueHint(HintKind.OBJECT, fields=fields or {})
        case ast.List() | ast.ListComp() | ast.Tuple() | ast.Set() | ast.SetComp():
            return ValueHint(HintKind.ARRAY)
        case ast.Compare() | ast.BoolOp(op=ast.And() | ast.Or()) | ast.UnaryOp(op=ast.Not()):
            return ValueHint(HintKind.BOOLEAN)
        case ast.Call(func=ast.Attribute(attr="collection", value=ast.Name(id=name))):
            return ValueHint(HintKind.COLLECTION, name=name)
        case ast.Call(func=ast.Name(id=name)) if name[:1].isupper():
            return ValueHint(HintKind.NAMED, name=name)
        case ast.Call(func=ast.Name(id="dict")):
            fields = _dict_fields(node)
            return ValueHint(HintKind.OBJECT, fields=fields or {})
        case ast.Call(func=ast.Name(id="str")):
            return ValueHint(HintKind.STRING)
        case ast.Call(func=ast.Name(id="int" | "len")):
            return ValueHint(HintKind.INTEGER)
        case ast.Call(func=ast.Name(id="float")):
            return ValueHint(HintKind.NUMBER)
        case ast.Call(func=ast.Name(id="bool")):
            return ValueHint(HintKind.BOOLEAN)
        case ast.Call(func=ast.Name(id="list")):
            return ValueHint(HintKind.ARRAY)
        case _:
            return None


def _dict_fields(node: ast.expr) -> dict[str, ValueHint | None] | None:
    """Return the string keys of a dict literal or ``dict(...)`` call with value hints."""
    if isinstance(node, ast.Dict):
        fields: dict[str, ValueHint | None] = {}
        for key, value in zip(node.keys, node.values, strict=True):
            if isinstance(key, ast.Constant) and isinstance(key.value, str):
                fields[key.value] = _hint(value)
        return fields
    if isinstance(node, ast.Call) and isinstance(node.func, ast.Name) and node.func.id == "dict":
        return {
            keyword.arg: _hint(keyword.value) for keyword in node.keywords if keyword.arg
        }
    return None


def projection_shape(func: Callable[..., object] | None) -> dict[str, ValueHint | None]:
    """Extract the keys a projection method returns.

    The first ``return`` of a dict literal or ``dict(...)`` call with string
    keys defines the shape. A returned name counts too when it was bound to
    such a literal (``{}`` included); keys assigned later through
    ``name["key"] = ...`` are appended to it.

    Parameters
    ----------
    func : Callable[..., object] | None
        The projection method.

    Returns
    -------
    dict[str, ValueHint | None]
        Keys in source order with what their value expressions reveal; empty
        when no literal shape is found.
    """
    function = _function_node(_parse(method_source(func)))
    if function is None:
        return {}

    statements = sorted(
        (node for node in ast.walk(function) if isinstance(node, (ast.Assign, ast.Return))),
        key=lambda node: (node.lineno, node.col_offset),
    )
    bound: dict[str, ast.expr] = {}
    filled: dict[str, dict[str, ValueHint | None]] = {}
    for node in statements:
        if isinstance(node, ast.Assign) and len(node.targets) == 1:
            match node.targets[0]:
                case ast.Name(id=name):
                    bound.setdefault(name, node.value)
                case ast.Subscript(
                    value=ast.Name(id=name), slice=ast.Constant(value=str() as key)
                ) if name in bound:
                    filled.setdefault(name, {})[key] = _hint(node.value)
        elif isinstance(node, ast.Return) and node.value is not None:
            value = node.value
            assigned: dict[str, ValueHint | None] = {}
            if isinstance(value, ast.Name) and value.id in bound:
                assigned = filled.get(value.id, {})
                value = bound[value.id]
            fields = _dict_fields(value)
            if fields is not None and (fields or assigned):
                return {**fields, **assigned}
    return {}


def self_attribute_names(func: Callable[..., object] | None) -> list[str]:
    """Return attribute names read from ``self`` in source order.

    ``self.resource.<name>`` counts as ``<name>``; method calls on ``self`` and
    private names are skipped.
    """
    function = _function_node(_parse(method_source(func)))
    if function is None:
        return []

    called: set[int] = {
        id(node.func) for node in ast.walk(function) if isinstance(node, ast.Call)
    }
    found: list[tuple[int, int, str]] = []
    for node in ast.walk(function):
        if not isinstance(node, ast.Attribute) or id(node) in called:
            continue
        owner = node.value
        if isinstance(owner, ast.Name) and owner.id == "self" and node.attr != "resource":
            found.append((node.lineno, node.col_offset, node.attr))
        elif (
            isinstance(owner, ast.Attribute)
            and owner.attr == "resource"
            and isinstance(owner.value, ast.Name)
            and owner.value.id == "self"
        ):
            found.append((node.lineno, node.col_offset, node.attr))
    names = [name for _, _, name in sorted(found) if not name.startswith("_")]
    return list(dict.fromkeys(names))
