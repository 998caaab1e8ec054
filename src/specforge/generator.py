"""Generator facade.

Each :meth:`OpenApiGenerator.generate` call builds a fresh
:class:`GenerationRun`: its own registry, resolver, analyzers and response
inferencer. Nothing produced by one run is visible to the next.

Examples
--------
>>> from specforge import OpenApiGenerator
>>> generator = OpenApiGenerator()
>>> document = generator.generate([])
>>> document.to_dict()["openapi"]
'3.0.3'
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

from specforge.analyzers import (
    DeclaredFieldAnalyzer,
    ProjectionAnalyzer,
    RuleSetAnalyzer,
    default_rule_source,
)
from specforge.catalog import TypeCatalog
from specforge.descriptors import Capability, NamedType, classify
from specforge.document import DocumentAssembler
from specforge.operations import OperationAssembler
from specforge.registry import SchemaRegistry
from specforge.resolver import TypeResolver
from specforge.responses import ResponseInferencer
from specforge.routes import filter_routes, load_routes
from specforge_common.logging import (
    CorrelationContext,
    get_correlation_id,
    get_logger,
    measure_duration,
    with_fields,
)
from specforge_common.settings import GeneratorSettings

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from specforge.analyzers import RuleSource, StructuredTypeAnalyzer
    from specforge.document import OpenApiDocument
    from specforge.routes import RouteDescriptor

__all__ = ["GenerationRun", "OpenApiGenerator"]

logger = get_logger(__name__)


@dataclass(slots=True)
class GenerationRun:
    """Collaborators of one generation run."""

    registry: SchemaRegistry
    resolver: TypeResolver
    analyzers: tuple[StructuredTypeAnalyzer, ...]
    documents: DocumentAssembler

    @classmethod
    def create(
        cls, settings: GeneratorSettings, catalog: TypeCatalog, rule_source: RuleSource
    ) -> GenerationRun:
        registry = SchemaRegistry()
        resolver = TypeResolver(
            registry, catalog, projection_methods=settings.analysis.projection_methods
        )
        analyzers = (
            RuleSetAnalyzer(resolver, rule_source),
            DeclaredFieldAnalyzer(resolver),
            ProjectionAnalyzer(resolver),
        )
        inferencer = ResponseInferencer(resolver, default_responses=settings.default_responses)
        operations = OperationAssembler(
            resolver,
            inferencer,
            ignored_parameter_types=settings.analysis.ignored_parameter_types,
            parse_docstrings=settings.analysis.parse_docstrings,
        )
        documents = DocumentAssembler(
            registry,
            operations,
            info=settings.info.model_dump(),
            servers=[server.model_dump(exclude_none=True) for server in settings.servers],
            openapi_version=settings.openapi_version,
        )
        return cls(registry, resolver, analyzers, documents)

    def preload(self, catalog: TypeCatalog) -> None:
        """Analyze every projected type in ``catalog``, referenced or not."""
        for cls in catalog:
            if classify(cls, self.resolver.projection_methods) is Capability.PROJECTED:
                self.resolver.resolve(NamedType(cls, Capability.PROJECTED))

    def reset(self) -> None:
        self.registry.reset()
        for analyzer in self.analyzers:
            analyzer.reset()


class OpenApiGenerator:
    """Generate OpenAPI documents from route descriptors.

    Parameters
    ----------
    settings : GeneratorSettings | None, optional
        Configuration; defaults to settings loaded from the environment.
    rule_source : RuleSource | None, optional
        Produces rule tables of rule-validated types. Defaults to calling
        ``rules()`` on an uninitialised instance.
    catalog : TypeCatalog | None, optional
        Short-name type lookup; the modules listed in
        ``settings.analysis.catalog_modules`` are added to it.

    Raises
    ------
    ConfigurationError
        If a configured catalog module cannot be imported.
    """

    def __init__(
        self,
        settings: GeneratorSettings | None = None,
        *,
        rule_source: RuleSource | None = None,
        catalog: TypeCatalog | None = None,
    ) -> None:
        self.settings = settings if settings is not None else GeneratorSettings()
        self.rule_source = rule_source if rule_source is not None else default_rule_source
        self.catalog = catalog if catalog is not None else TypeCatalog()
        for module in self.settings.analysis.catalog_modules:
            self.catalog.add_module(module)
        self._run: GenerationRun | None = None

    @property
    def last_run(self) -> GenerationRun | None:
        return self._run

    def generate(self, routes: Iterable[RouteDescriptor]) -> OpenApiDocument:
        """Generate the document for ``routes``.

        Log entries of the run carry the correlation id already bound in the
        calling context, or a fresh one.

        Parameters
        ----------
        routes : Iterable[RouteDescriptor]
            Route table in the order operations should be processed.

        Returns
        -------
        OpenApiDocument
            The assembled document.

        Raises
        ------
        CapabilityError
            If a type reached an analyzer that cannot handle it.
        """
        run = GenerationRun.create(self.settings, self.catalog, self.rule_source)
        self._run = run
        filters = self.settings.routes

        correlation_id = get_correlation_id() or uuid.uuid4().hex
        with CorrelationContext(correlation_id), with_fields(logger, operation="generate") as log:
            start = measure_duration()
            selected = filter_routes(
                routes, filters.include, filters.exclude, filters.middleware
            )
            if self.settings.analysis.preload_catalog:
                run.preload(self.catalog)
            document = run.documents.assemble(selected)

            statistics = document.statistics()
            log.log_success(
                "Generated OpenAPI document",
                duration_ms=(measure_duration() - start) * 1000,
                route_count=len(selected),
                operation_count=statistics["operations"],
                schema_count=statistics["schemas"],
            )
        return document

    def generate_from_manifest(self, path: str | Path) -> OpenApiDocument:
        """Generate the document for the routes of a JSON manifest file."""
        return self.generate(load_routes(path))

    def reset(self) -> None:
        """Discard the state of the last run."""
        if self._run is not None:
            self._run.reset()
            self._run = None
