"""Imports a module that does not exist."""

from __future__ import annotations

import tests.helpers.no_such_module  # noqa: F401


class Gadget:
    pass
