"""Docstring annotations of route handlers and structured types.

Handlers document themselves with ordinary prose plus optional tag lines.
Both the ``@tag value`` and the reST ``:tag arg: value`` spellings are read::

    Show a single user.

    Loads the user with its roles.

    @response 404 User not found
    :response 409: Email already taken
    @return UserResource
    @deprecated

Numpydoc ``Returns`` and ``Attributes`` sections are honored as well: the
first line of ``Returns`` is taken as the return type expression, and the
``name : type`` entries of ``Attributes`` as field type hints.
"""

from __future__ import annotations

import inspect
import re
from dataclasses import dataclass
from typing import Final

__all__ = [
    "DocAnnotations",
    "ResponseAnnotation",
    "attribute_hints",
    "is_collection_expression",
    "parse_docstring",
    "type_names",
]

_TAG_AT: Final = re.compile(r"^@(?P<tag>[A-Za-z_]+)\b\s*(?P<value>.*)$")
_TAG_REST: Final = re.compile(r"^:(?P<tag>[A-Za-z_]+)(?P<arg>[^:]*):\s*(?P<value>.*)$")
_SECTION_RULE: Final = re.compile(r"^-{3,}\s*$")
_STATUS: Final = re.compile(r"^(?P<status>[1-5]\d\d)\b[\s:-]*(?P<description>.*)$")
_ATTRIBUTE: Final = re.compile(r"^(?P<name>[A-Za-z_]\w*)\s*:\s*(?P<type>\S.*)$")
_IDENTIFIER: Final = re.compile(r"[A-Za-z_][\w.]*")

# ":returns:" in reST describes the value, only ":rtype:" names its type
_RETURN_TAGS: Final = frozenset({"return", "returns", ":rtype"})
_CONTAINER_NAMES: Final = frozenset(
    {
        "list",
        "List",
        "tuple",
        "Tuple",
        "set",
        "Set",
        "frozenset",
        "Sequence",
        "Iterable",
        "Collection",
        "ResourceCollection",
        "array",
    }
)
_NON_TYPE_NAMES: Final = _CONTAINER_NAMES | {
    "dict",
    "Dict",
    "Mapping",
    "Optional",
    "Union",
    "None",
    "str",
    "int",
    "float",
    "bool",
    "object",
    "Any",
    "typing",
}


@dataclass(frozen=True, slots=True)
class ResponseAnnotation:
    """An explicitly documented response."""

    status: int
    description: str


@dataclass(frozen=True, slots=True)
class DocAnnotations:
    """Everything read from one docstring.

    Attributes
    ----------
    summary : str | None
        First prose line.
    description : str | None
        Remaining prose, paragraphs preserved.
    responses : tuple[ResponseAnnotation, ...]
        Explicit responses in document order.
    returns : str | None
        Return type expression, verbatim.
    deprecated : bool
        Whether a deprecation marker was present.
    """

    summary: str | None = None
    description: str | None = None
    responses: tuple[ResponseAnnotation, ...] = ()
    returns: str | None = None
    deprecated: bool = False

    @property
    def has_explicit_success(self) -> bool:
        return any(200 <= response.status < 300 for response in self.responses)


def _split_sections(lines: list[str]) -> tuple[list[str], dict[str, list[str]]]:
    """Split numpydoc section bodies from the leading prose."""
    prose: list[str] = []
    sections: dict[str, list[str]] = {}
    current: list[str] = prose
    index = 0
    while index < len(lines):
        line = lines[index]
        following = lines[index + 1] if index + 1 < len(lines) else ""
        if line.strip() and _SECTION_RULE.match(following.strip()):
            current = sections.setdefault(line.strip(), [])
            index += 2
            continue
        current.append(line)
        index += 1
    return prose, sections


def _parse_tag(line: str) -> tuple[str, str, str] | None:
    """Return ``(tag, arg, value)``; reST tags are prefixed with a colon."""
    match = _TAG_AT.match(line)
    if match:
        return match["tag"].lower(), "", match["value"].strip()
    match = _TAG_REST.match(line)
    if match:
        return ":" + match["tag"].lower(), match["arg"].strip(), match["value"].strip()
    return None


def _response_from_tag(arg: str, value: str) -> ResponseAnnotation | None:
    text = f"{arg} {value}".strip()
    match = _STATUS.match(text)
    if match is None:
        return None
    return ResponseAnnotation(int(match["status"]), match["description"].strip())


def _collapse(lines: list[str]) -> str | None:
    paragraphs: list[str] = []
    current: list[str] = []
    for line in lines:
        if line.strip():
            current.append(line.strip())
        elif current:
            paragraphs.append(" ".join(current))
            current = []
    if current:
        paragraphs.append(" ".join(current))
    return "\n\n".join(paragraphs) or None


def parse_docstring(doc: str | None) -> DocAnnotations:
    """Parse a handler docstring into :class:`DocAnnotations`.

    Parameters
    ----------
    doc : str | None
        Raw docstring.

    Returns
    -------
    DocAnnotations
        Parsed annotations; empty when ``doc`` is empty.

    Examples
    --------
    >>> parsed = parse_docstring('''Delete a user.
    ...
    ... @response 404 User not found
    ... ''')
    >>> parsed.summary, parsed.responses[0].status
    ('Delete a user.', 404)
    """
    if not doc or not doc.strip():
        return DocAnnotations()

    prose_lines, sections = _split_sections(inspect.cleandoc(doc).splitlines())
    prose: list[str] = []
    responses: list[ResponseAnnotation] = []
    returns: str | None = None
    deprecated = False

    for line in prose_lines:
        stripped = line.strip()
        if stripped.startswith(".. deprecated::"):
            deprecated = True
            continue
        tag = _parse_tag(stripped)
        if tag is None:
            prose.append(line)
            continue
        name, arg, value = tag
        if name in {"response", ":response"}:
            response = _response_from_tag(arg, value)
            if response is not None:
                responses.append(response)
        elif name in _RETURN_TAGS and value and returns is None:
            returns = value
        elif name in {"deprecated", ":deprecated"}:
            deprecated = True

    if returns is None:
        for line in sections.get("Returns", []):
            if line.strip() and not line.startswith((" ", "\t")):
                returns = line.strip()
                break

    summary_index = next((i for i, line in enumerate(prose) if line.strip()), None)
    if summary_index is None:
        summary = None
        description = None
    else:
        summary = prose[summary_index].strip()
        description = _collapse(prose[summary_index + 1 :])

    return DocAnnotations(
        summary=summary,
        description=description,
        responses=tuple(responses),
        returns=returns,
        deprecated=deprecated,
    )


def attribute_hints(doc: str | None) -> dict[str, str]:
    """Return ``name -> type expression`` from a numpydoc ``Attributes`` section."""
    if not doc:
        return {}
    _, sections = _split_sections(inspect.cleandoc(doc).splitlines())
    hints: dict[str, str] = {}
    for line in sections.get("Attributes", []):
        if line.startswith((" ", "\t")):
            continue
        match = _ATTRIBUTE.match(line.strip())
        if match:
            hints[match["name"]] = match["type"].strip()
    return hints


def type_names(expression: str) -> list[str]:
    """Return the class names mentioned in a type expression.

    Builtins and container names are skipped; dotted names keep only their
    last component.

    Examples
    --------
    >>> type_names("list[UserResource] | None")
    ['UserResource']
    >>> type_names("PostResource[]")
    ['PostResource']
    """
    names: list[str] = []
    for token in _IDENTIFIER.findall(expression):
        short = token.rsplit(".", 1)[-1]
        if short not in _NON_TYPE_NAMES and short not in names:
            names.append(short)
    return names


def is_collection_expression(expression: str) -> bool:
    """Return True when a type expression denotes a collection."""
    head = expression.strip()
    if head.endswith("[]"):
        return True
    container = head.split("[", 1)[0].rsplit(".", 1)[-1].strip()
    return container in _CONTAINER_NAMES
