"""Shared infrastructure for specforge.

Structured logging, the error hierarchy with RFC 9457 Problem Details, and
typed settings used by the generator packages.
"""

from __future__ import annotations

from specforge_common import errors, logging, problem_details, settings

__all__ = [
    "errors",
    "logging",
    "problem_details",
    "settings",
]
