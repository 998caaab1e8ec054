"""RFC 9457 Problem Details helpers with schema validation.

Payloads are validated against a JSON Schema 2020-12 description of the
Problem Details object before they are handed out.

Examples
--------
>>> from specforge_common.problem_details import build_problem_details, render_problem
>>> problem = build_problem_details(
...     problem_type="https://specforge.dev/problems/analysis-failed",
...     title="AnalysisError",
...     status=500,
...     detail="Projection source unavailable",
...     instance="urn:specforge:analysis",
... )
>>> assert "analysis-failed" in render_problem(problem)
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, TypedDict, cast

from jsonschema import Draft202012Validator

if TYPE_CHECKING:
    from collections.abc import Mapping

type JsonPrimitive = str | int | float | bool | None
type JsonValue = JsonPrimitive | list[JsonValue] | dict[str, JsonValue]

__all__ = [
    "PROBLEM_DETAILS_SCHEMA",
    "JsonValue",
    "ProblemDetails",
    "ProblemDetailsParams",
    "ProblemDetailsValidationError",
    "build_problem_details",
    "render_problem",
    "validate_problem_details",
]

PROBLEM_DETAILS_SCHEMA: Final[dict[str, object]] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Problem Details",
    "type": "object",
    "required": ["type", "title", "status", "detail", "instance"],
    "properties": {
        "type": {"type": "string", "minLength": 1},
        "title": {"type": "string", "minLength": 1},
        "status": {"type": "integer", "minimum": 100, "maximum": 599},
        "detail": {"type": "string"},
        "instance": {"type": "string", "minLength": 1},
        "code": {"type": "string"},
        "extensions": {"type": "object"},
    },
    "additionalProperties": False,
}


class ProblemDetails(TypedDict, total=False):
    """TypedDict for RFC 9457 Problem Details payloads."""

    type: str
    title: str
    status: int
    detail: str
    instance: str
    code: str
    extensions: dict[str, JsonValue]


@dataclass(slots=True)
class ProblemDetailsParams:
    """Parameters used to construct a Problem Details payload."""

    problem_type: str
    title: str
    status: int
    detail: str
    instance: str
    code: str | None = None
    extensions: Mapping[str, JsonValue] | None = None


class ProblemDetailsValidationError(Exception):
    """Raised when a Problem Details payload fails schema validation.

    Parameters
    ----------
    message : str
        Human-readable error message.
    validation_errors : list[str] | None, optional
        Individual validator messages. Defaults to None.
    """

    def __init__(self, message: str, validation_errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.validation_errors = validation_errors or []


_VALIDATOR = Draft202012Validator(PROBLEM_DETAILS_SCHEMA)


def validate_problem_details(payload: Mapping[str, object]) -> None:
    """Validate a Problem Details payload against :data:`PROBLEM_DETAILS_SCHEMA`.

    Parameters
    ----------
    payload : Mapping[str, object]
        Payload to validate.

    Raises
    ------
    ProblemDetailsValidationError
        If the payload does not conform. ``validation_errors`` lists each
        violation together with its JSON path.
    """
    errors: list[str] = []
    for error in _VALIDATOR.iter_errors(dict(payload)):
        location = ".".join(str(part) for part in error.absolute_path)
        errors.append(f"{error.message} at path: {location}" if location else error.message)
    if errors:
        msg = f"Problem Details validation failed: {'; '.join(errors)}"
        raise ProblemDetailsValidationError(msg, validation_errors=errors)


def build_problem_details(
    params: ProblemDetailsParams | None = None,
    /,
    **fields: object,
) -> ProblemDetails:
    """Build and validate an RFC 9457 Problem Details payload.

    Parameters
    ----------
    params : ProblemDetailsParams | None, optional
        Complete parameter set. When omitted, ``fields`` must carry the
        :class:`ProblemDetailsParams` attributes as keywords.
    **fields : object
        Keyword form of :class:`ProblemDetailsParams`.

    Returns
    -------
    ProblemDetails
        Validated payload.

    Raises
    ------
    TypeError
        If both ``params`` and keyword fields are supplied.
    ProblemDetailsValidationError
        If the resulting payload does not validate.
    """
    if params is None:
        params = ProblemDetailsParams(**fields)  # type: ignore[arg-type]
    elif fields:
        msg = "build_problem_details() accepts either params or keyword fields, not both"
        raise TypeError(msg)

    payload: dict[str, object] = {
        "type": params.problem_type,
        "title": params.title,
        "status": params.status,
        "detail": params.detail,
        "instance": params.instance,
    }
    if params.code is not None:
        payload["code"] = params.code
    if params.extensions:
        payload["extensions"] = dict(params.extensions)

    validate_problem_details(payload)
    return cast("ProblemDetails", payload)


def render_problem(problem: ProblemDetails | Mapping[str, object]) -> str:
    """Render Problem Details as a minified JSON string."""
    return json.dumps(problem, default=str, ensure_ascii=False)
