"""Tests for short-name type lookup."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from specforge.catalog import TypeCatalog
from specforge_common.errors import ConfigurationError
from tests.helpers.sample_app import controllers
from tests.helpers.sample_app.billing import data as billing
from tests.helpers.sample_app.data import AddressData, UserData
from tests.helpers.sample_app.resources import UserResource

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable


def test_add_and_find() -> None:
    """Classes are found by short or dotted name."""
    catalog = TypeCatalog([UserResource])
    assert catalog.find("UserResource") is UserResource
    assert catalog.find("app.http.resources.UserResource") is UserResource
    assert catalog.find("TeamResource") is None
    assert len(catalog) == 1


def test_first_registration_kept() -> None:
    """A second class with the same short name does not replace the first."""
    catalog = TypeCatalog([AddressData, billing.AddressData])
    assert catalog.find("AddressData") is AddressData
    assert list(catalog) == [AddressData]


def test_near_module_searched_first(catalog: TypeCatalog) -> None:
    """The defining module of ``near`` wins over the catalog."""
    assert catalog.find("AddressData", near=billing.InvoiceData) is billing.AddressData
    assert catalog.find("AddressData", near=UserData) is AddressData


def test_near_module_sees_imports() -> None:
    """Names imported into the handler module resolve without registration."""
    catalog = TypeCatalog()
    assert catalog.find("UserResource", near=controllers.UserController) is UserResource
    assert catalog.find("Missing", near=controllers.UserController) is None


def test_near_ignores_non_classes() -> None:
    """Module attributes that are not classes are skipped."""
    catalog = TypeCatalog()
    assert catalog.find("users", near=controllers.UserController) is None


def test_add_module_recursive(catalog: TypeCatalog) -> None:
    """Submodules are scanned and only classes defined there are added."""
    assert catalog.find("UserResource") is UserResource
    assert catalog.find("InvoiceData") is billing.InvoiceData
    assert catalog.find("StoreUserRequest") is not None
    assert catalog.find("JsonResource") is None


def test_add_module_not_recursive() -> None:
    """Without recursion only the named module is scanned."""
    catalog = TypeCatalog()
    catalog.add_module("tests.helpers.sample_app", recursive=False)
    assert len(catalog) == 0
    catalog.add_module(controllers, recursive=False)
    assert catalog.find("UserController") is controllers.UserController
    assert catalog.find("UserResource") is None


def test_add_module_missing() -> None:
    """An unimportable module is a configuration error."""
    with pytest.raises(ConfigurationError, match="Cannot import catalog module") as excinfo:
        TypeCatalog().add_module("tests.helpers.no_such_module")
    assert excinfo.value.context == {"module": "tests.helpers.no_such_module"}


def test_add_module_skips_broken_submodule(
    operation_records: Callable[[str], list[logging.LogRecord]],
) -> None:
    """A submodule failing to import is logged and skipped; its siblings are still added."""
    catalog = TypeCatalog()
    catalog.add_module("tests.helpers.partial_pkg")

    assert catalog.find("Widget") is not None
    assert catalog.find("Gadget") is None
    (record,) = operation_records("catalog_add")
    assert record.status == "degraded"
    assert record.module_name == "tests.helpers.partial_pkg.sub.broken"
    assert record.error_type == "ModuleNotFoundError"
