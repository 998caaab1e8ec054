"""Assertions that frozen value objects reject mutation.

Schema nodes, type descriptors and route descriptors are immutable; dataclasses
raise ``FrozenInstanceError`` and frozen ``msgspec`` structs ``AttributeError``
on assignment.

Example
-------
>>> from specforge.schema import PrimitiveSchema
>>> assert_frozen_attributes(PrimitiveSchema(), type="integer", nullable=True)
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

__all__ = ["assert_frozen_attribute", "assert_frozen_attributes"]


def assert_frozen_attribute(obj: object, attr: str, value: object) -> None:
    """Assert that assigning ``value`` to ``attr`` is rejected."""
    with pytest.raises((FrozenInstanceError, AttributeError)):
        setattr(obj, attr, value)


def assert_frozen_attributes(obj: object, **updates: object) -> None:
    """Assert that each attribute in ``updates`` rejects reassignment."""
    for name, value in updates.items():
        assert_frozen_attribute(obj, name, value)
