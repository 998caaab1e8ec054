"""Exception hierarchy and Problem Details support.

Examples
--------
>>> from specforge_common.errors import SpecForgeError, ErrorCode
>>> error = SpecForgeError("Generation failed", code=ErrorCode.RUNTIME_ERROR)
>>> details = error.to_problem_details(instance="urn:specforge:generate")
>>> assert details["type"] == "https://specforge.dev/problems/runtime-error"
"""

from __future__ import annotations

from specforge_common.errors.codes import BASE_TYPE_URI, ErrorCode, get_type_uri
from specforge_common.errors.exceptions import (
    AnalysisError,
    CapabilityError,
    ConfigurationError,
    RegistryError,
    RouteResolutionError,
    SettingsError,
    SpecForgeError,
    SpecForgeErrorConfig,
)

__all__ = [
    "BASE_TYPE_URI",
    "AnalysisError",
    "CapabilityError",
    "ConfigurationError",
    "ErrorCode",
    "RegistryError",
    "RouteResolutionError",
    "SettingsError",
    "SpecForgeError",
    "SpecForgeErrorConfig",
    "get_type_uri",
]
