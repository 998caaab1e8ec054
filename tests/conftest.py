"""Shared pytest fixtures.

This module provides reusable fixtures for:
- A fresh registry, catalog and resolver wired with all analyzers
- Generator settings and a generator over the sample application
- The sample route table and the document generated from it
- Log record lookup by structured ``operation`` field
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from typing import TYPE_CHECKING

import pytest

from specforge.analyzers import DeclaredFieldAnalyzer, ProjectionAnalyzer, RuleSetAnalyzer
from specforge.catalog import TypeCatalog
from specforge.generator import OpenApiGenerator
from specforge.registry import SchemaRegistry
from specforge.resolver import TypeResolver
from specforge.responses import ResponseInferencer
from specforge_common.settings import GeneratorSettings
from tests.helpers.sample_app.routes import ROUTES

if TYPE_CHECKING:
    from _pytest.logging import LogCaptureFixture

    from specforge.document import OpenApiDocument
    from specforge.routes import RouteDescriptor


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ``SPECFORGE_*`` variables of the host shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("SPECFORGE_"):
            monkeypatch.delenv(key)


@pytest.fixture
def registry() -> SchemaRegistry:
    return SchemaRegistry()


@pytest.fixture
def catalog() -> TypeCatalog:
    """Catalog holding every class of the sample application."""
    catalog = TypeCatalog()
    catalog.add_module("tests.helpers.sample_app")
    return catalog


@pytest.fixture
def resolver(registry: SchemaRegistry, catalog: TypeCatalog) -> TypeResolver:
    """Resolver with the rule-set, declared-field and projection analyzers registered."""
    resolver = TypeResolver(registry, catalog)
    RuleSetAnalyzer(resolver)
    DeclaredFieldAnalyzer(resolver)
    ProjectionAnalyzer(resolver)
    return resolver


@pytest.fixture
def inferencer(resolver: TypeResolver) -> ResponseInferencer:
    return ResponseInferencer(resolver)


@pytest.fixture
def settings() -> GeneratorSettings:
    return GeneratorSettings(info={"title": "Sample API", "version": "2.1.0"})


@pytest.fixture
def generator(settings: GeneratorSettings, catalog: TypeCatalog) -> OpenApiGenerator:
    return OpenApiGenerator(settings, catalog=catalog)


@pytest.fixture
def sample_routes() -> list[RouteDescriptor]:
    return list(ROUTES)


@pytest.fixture
def document(generator: OpenApiGenerator, sample_routes: list[RouteDescriptor]) -> OpenApiDocument:
    return generator.generate(sample_routes)


@pytest.fixture
def rendered(document: OpenApiDocument) -> dict[str, object]:
    return document.to_dict()


@pytest.fixture
def operation_records(caplog: LogCaptureFixture) -> Callable[[str], list[logging.LogRecord]]:
    """Return a lookup of captured log records by their ``operation`` field.

    Parameters
    ----------
    caplog : LogCaptureFixture
        Pytest fixture for capturing log records.

    Returns
    -------
    Callable[[str], list[logging.LogRecord]]
        Function returning the records logged so far for one operation.
    """
    caplog.set_level(logging.DEBUG)

    def records_for(operation: str) -> list[logging.LogRecord]:
        return [
            record for record in caplog.records if getattr(record, "operation", None) == operation
        ]

    return records_for
