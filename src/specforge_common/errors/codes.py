"""Error code registry and type URIs for Problem Details.

Codes and URIs are stable: clients may match on them.

Examples
--------
>>> from specforge_common.errors.codes import ErrorCode, get_type_uri
>>> get_type_uri(ErrorCode.CAPABILITY_MISMATCH)
'https://specforge.dev/problems/capability-mismatch'
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

__all__ = [
    "BASE_TYPE_URI",
    "ErrorCode",
    "get_type_uri",
]

BASE_TYPE_URI: Final[str] = "https://specforge.dev/problems"


class ErrorCode(StrEnum):
    """Stable error codes for specforge exceptions.

    Attributes
    ----------
    CAPABILITY_MISMATCH
        An analyzer was asked to analyze a type lacking its capability.
    ANALYSIS_FAILED
        Static analysis of a type or handler failed.
    ROUTE_RESOLUTION_ERROR
        A route descriptor is invalid or its handler cannot be imported.
    REGISTRY_ERROR
        A schema registry operation was misused.
    CONFIGURATION_ERROR
        Settings failed validation or could not be loaded.
    RUNTIME_ERROR
        Unclassified runtime failure.
    """

    CAPABILITY_MISMATCH = "capability-mismatch"
    ANALYSIS_FAILED = "analysis-failed"
    ROUTE_RESOLUTION_ERROR = "route-resolution-error"
    REGISTRY_ERROR = "registry-error"
    CONFIGURATION_ERROR = "configuration-error"
    RUNTIME_ERROR = "runtime-error"

    def __str__(self) -> str:
        return self.value


def get_type_uri(code: ErrorCode) -> str:
    """Get the RFC 9457 type URI for an error code.

    Parameters
    ----------
    code : ErrorCode
        Error code enum value.

    Returns
    -------
    str
        Complete type URI.
    """
    return f"{BASE_TYPE_URI}/{code.value}"
