"""Generator settings with typed configuration and fail-fast validation.

Settings come from keyword overrides, an optional YAML file and
``SPECFORGE_*`` environment variables (nested with ``__``), in that order of
precedence.

Examples
--------
>>> from specforge_common.settings import load_settings
>>> settings = load_settings(info={"title": "Shop API"})
>>> settings.info.title
'Shop API'
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from specforge_common.errors import ConfigurationError, SettingsError
from specforge_common.logging import get_logger

__all__ = [
    "AnalysisConfig",
    "GeneratorSettings",
    "InfoConfig",
    "RouteFilterConfig",
    "ServerConfig",
    "load_settings",
]

logger = get_logger(__name__)


class InfoConfig(BaseSettings):
    """Document ``info`` block (``SPECFORGE_INFO_*``)."""

    model_config = SettingsConfigDict(env_prefix="SPECFORGE_INFO_", extra="forbid")

    title: str = Field(default="API Documentation", description="API title")
    version: str = Field(default="1.0.0", description="API version string")
    description: str = Field(
        default="Auto-generated API documentation", description="API description"
    )


class ServerConfig(BaseModel):
    """One entry of the document ``servers`` list."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    url: str = Field(description="Base URL of the server")
    description: str | None = Field(default=None, description="Human readable label")


class RouteFilterConfig(BaseSettings):
    """Route selection (``SPECFORGE_ROUTES_*``).

    Patterns are shell-style globs matched against the normalized URI without
    its leading slash.
    """

    model_config = SettingsConfigDict(env_prefix="SPECFORGE_ROUTES_", extra="forbid")

    include: list[str] = Field(
        default_factory=lambda: ["*"], description="URI patterns to document"
    )
    exclude: list[str] = Field(default_factory=list, description="URI patterns to skip")
    middleware: list[str] = Field(
        default_factory=list,
        description="When set, only routes carrying one of these middleware are documented",
    )


class AnalysisConfig(BaseSettings):
    """Static analysis knobs (``SPECFORGE_ANALYSIS_*``)."""

    model_config = SettingsConfigDict(env_prefix="SPECFORGE_ANALYSIS_", extra="forbid")

    projection_methods: list[str] = Field(
        default_factory=lambda: ["to_dict", "to_array", "to_representation"],
        description="Method names that mark a class as a projected presentation type",
    )
    ignored_parameter_types: list[str] = Field(
        default_factory=lambda: ["Request", "HttpRequest"],
        description="Handler parameter type names never documented as query parameters",
    )
    catalog_modules: list[str] = Field(
        default_factory=list,
        description="Modules scanned for types named by the response heuristics",
    )
    preload_catalog: bool = Field(
        default=False,
        description="Analyze every projected type in the catalog, referenced or not",
    )
    parse_docstrings: bool = Field(
        default=True, description="Read summaries and tags from handler docstrings"
    )


class GeneratorSettings(BaseSettings):
    """Aggregate generator configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SPECFORGE_",
        env_nested_delimiter="__",
        extra="forbid",
        case_sensitive=False,
    )

    openapi_version: str = Field(default="3.0.3", description="OpenAPI version emitted")
    info: InfoConfig = Field(default_factory=InfoConfig, description="Document info block")
    servers: list[ServerConfig] = Field(default_factory=list, description="Document servers")
    routes: RouteFilterConfig = Field(
        default_factory=RouteFilterConfig, description="Route selection"
    )
    analysis: AnalysisConfig = Field(
        default_factory=AnalysisConfig, description="Static analysis configuration"
    )
    default_responses: dict[int, str] = Field(
        default_factory=dict,
        description="Status code to description added to every operation when absent",
    )

    def __init__(self, **overrides: object) -> None:
        """Initialise settings, converting validation failures to :class:`SettingsError`."""
        try:
            super().__init__(**overrides)  # type: ignore[arg-type]
        except ValidationError as exc:
            errors: list[dict[str, object]] = [
                {
                    "loc": ".".join(str(part) for part in error["loc"]),
                    "msg": error["msg"],
                    "type": error["type"],
                }
                for error in exc.errors()
            ]
            logger.exception(
                "Settings validation failed",
                extra={"operation": "load_settings", "error_type": type(exc).__name__},
            )
            msg = f"Configuration validation failed: {exc.error_count()} error(s)"
            raise SettingsError(msg, errors=errors, cause=exc) from exc


def _read_yaml(path: Path) -> dict[str, object]:
    try:
        with path.open(encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Cannot read settings file {path}"
        raise ConfigurationError(msg, cause=exc, context={"path": str(path)}) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Settings file {path} must contain a mapping, got {type(data).__name__}"
        raise ConfigurationError(msg, context={"path": str(path)})
    return data


def load_settings(path: str | Path | None = None, **overrides: object) -> GeneratorSettings:
    """Load :class:`GeneratorSettings` from an optional YAML file plus overrides.

    Parameters
    ----------
    path : str | Path | None, optional
        YAML file whose top-level keys mirror :class:`GeneratorSettings`.
        Defaults to None.
    **overrides : object
        Field values that take precedence over the file.

    Returns
    -------
    GeneratorSettings
        Validated settings.

    Raises
    ------
    ConfigurationError
        If the file cannot be read or is not a mapping.
    SettingsError
        If the merged values fail validation.
    """
    values: dict[str, object] = {}
    if path is not None:
        values.update(_read_yaml(Path(path)))
        logger.debug(
            "Loaded settings file",
            extra={"operation": "load_settings", "path": str(path)},
        )
    values.update(overrides)
    return GeneratorSettings(**values)
