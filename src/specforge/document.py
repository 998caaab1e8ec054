"""Assembly of the final OpenAPI document.

Operations are keyed by normalized path and lower-case HTTP method; the
components section is the registry snapshot taken after every route was
processed, so each reference emitted by an operation has a target.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from specforge.routes import normalize_uri, resolve_handler
from specforge_common.errors import CapabilityError, RouteResolutionError
from specforge_common.logging import get_logger

if TYPE_CHECKING:
    from specforge.operations import OperationAssembler, OperationDescriptor
    from specforge.registry import SchemaRegistry
    from specforge.routes import RouteDescriptor
    from specforge.schema import SchemaNode

__all__ = ["DocumentAssembler", "OpenApiDocument"]

logger = get_logger(__name__)


@dataclass(slots=True)
class OpenApiDocument:
    """In-memory OpenAPI document.

    Attributes
    ----------
    version : str
        OpenAPI version string.
    info : dict[str, str]
        ``title``, ``version`` and ``description``.
    servers : list[dict[str, str]]
        Server entries.
    paths : dict[str, dict[str, OperationDescriptor]]
        Normalized path to lower-case method to operation.
    schemas : dict[str, SchemaNode]
        Component schemas by name.
    """

    version: str
    info: dict[str, str]
    servers: list[dict[str, str]] = field(default_factory=list)
    paths: dict[str, dict[str, OperationDescriptor]] = field(default_factory=dict)
    schemas: dict[str, SchemaNode] = field(default_factory=dict)

    def operations(self) -> Iterable[tuple[str, str, OperationDescriptor]]:
        """Yield ``(path, method, operation)`` in document order."""
        for path, item in self.paths.items():
            for method, operation in item.items():
                yield path, method, operation

    def to_dict(self) -> dict[str, object]:
        """Render the document as plain JSON-compatible data."""
        rendered: dict[str, object] = {"openapi": self.version, "info": dict(self.info)}
        if self.servers:
            rendered["servers"] = [dict(server) for server in self.servers]
        rendered["paths"] = {
            path: {method: operation.to_openapi() for method, operation in item.items()}
            for path, item in self.paths.items()
        }
        rendered["components"] = {
            "schemas": {name: node.to_openapi() for name, node in self.schemas.items()}
        }
        return rendered

    def statistics(self) -> dict[str, int]:
        """Return path, operation and schema counts."""
        return {
            "paths": len(self.paths),
            "operations": sum(len(item) for item in self.paths.values()),
            "schemas": len(self.schemas),
        }


class DocumentAssembler:
    """Drive operation assembly over a route table.

    Parameters
    ----------
    registry : SchemaRegistry
        Registry of the current run.
    operations : OperationAssembler
        Assembler producing each operation.
    info : Mapping[str, str]
        Document ``info`` block.
    servers : Sequence[Mapping[str, str]], optional
        Document ``servers`` list.
    openapi_version : str, optional
        Version string emitted as ``openapi``.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        operations: OperationAssembler,
        *,
        info: Mapping[str, str],
        servers: Sequence[Mapping[str, str]] = (),
        openapi_version: str = "3.0.3",
    ) -> None:
        self.registry = registry
        self.operations = operations
        self.info = dict(info)
        self.servers = [dict(server) for server in servers]
        self.openapi_version = openapi_version

    def assemble(self, routes: Iterable[RouteDescriptor]) -> OpenApiDocument:
        """Build the document for ``routes`` in the order given.

        A route whose handler cannot be imported and an operation whose
        assembly fails are logged and left out; neither aborts the run.

        Raises
        ------
        CapabilityError
            If a type reached an analyzer that cannot handle it.
        """
        paths: dict[str, dict[str, OperationDescriptor]] = {}
        for route in routes:
            try:
                resolved = resolve_handler(route)
            except RouteResolutionError as exc:
                logger.log_failure(
                    "Skipping route with unresolvable handler",
                    exception=exc,
                    operation="assemble_document",
                    uri=route.uri,
                )
                continue

            path = normalize_uri(route.uri)
            for method in route.operation_methods():
                try:
                    operation = self.operations.assemble(
                        route, method, resolved.handler, controller=resolved.controller
                    )
                except CapabilityError:
                    raise
                except Exception as exc:
                    logger.log_failure(
                        "Skipping operation that failed to assemble",
                        exception=exc,
                        operation="assemble_document",
                        uri=path,
                        method=method,
                    )
                    continue
                paths.setdefault(path, {})[method.lower()] = operation

        return OpenApiDocument(
            version=self.openapi_version,
            info=self.info,
            servers=self.servers,
            paths=paths,
            schemas=self.registry.all_entries(),
        )
