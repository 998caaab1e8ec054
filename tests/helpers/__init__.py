"""Shared test helpers for specforge.

The ``sample_app`` package is a small host application scanned by the
generator; the modules here hold assertion utilities used across the suite.
"""

from __future__ import annotations

from tests.helpers.immutability import assert_frozen_attribute, assert_frozen_attributes
from tests.helpers.openapi import component_validator, resolve_ref

__all__ = [
    "assert_frozen_attribute",
    "assert_frozen_attributes",
    "component_validator",
    "resolve_ref",
]
