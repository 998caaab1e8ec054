"""Typed exception hierarchy with Problem Details support.

All specforge exceptions inherit from :class:`SpecForgeError`, which carries a
stable :class:`~specforge_common.errors.codes.ErrorCode`, an HTTP status and a
context mapping, and converts itself to an RFC 9457 Problem Details payload.

Examples
--------
>>> from specforge_common.errors import CapabilityError, ErrorCode
>>> try:
...     raise CapabilityError("UserResource has no declared fields")
... except CapabilityError as e:
...     assert e.code == ErrorCode.CAPABILITY_MISMATCH
...     details = e.to_problem_details(instance="urn:specforge:analyzer")
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, cast

from specforge_common.errors.codes import ErrorCode, get_type_uri
from specforge_common.problem_details import build_problem_details

if TYPE_CHECKING:
    from specforge_common.problem_details import JsonValue, ProblemDetails

__all__ = [
    "AnalysisError",
    "CapabilityError",
    "ConfigurationError",
    "RegistryError",
    "RouteResolutionError",
    "SettingsError",
    "SpecForgeError",
    "SpecForgeErrorConfig",
]


@dataclass(slots=True)
class SpecForgeErrorConfig:
    """Configuration options used when instantiating :class:`SpecForgeError`."""

    code: ErrorCode = ErrorCode.RUNTIME_ERROR
    http_status: int = 500
    log_level: int = logging.ERROR
    cause: BaseException | None = None
    context: Mapping[str, object] | None = None


class SpecForgeError(Exception):
    """Base exception for all specforge errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    config : SpecForgeErrorConfig | None, optional
        Structured configuration (code, status, log level, cause, context).
        Defaults to None.
    **kwargs : object
        Keyword form of the :class:`SpecForgeErrorConfig` fields. Cannot be
        combined with ``config``.

    Attributes
    ----------
    message : str
        Human-readable error message.
    code : ErrorCode
        Error code enum value.
    http_status : int
        HTTP status for Problem Details.
    log_level : int
        Level at which the error should be logged.
    context : dict[str, object]
        Additional structured details.

    Raises
    ------
    TypeError
        If ``config`` and keyword fields are both given, or a keyword is unknown.
    """

    def __init__(
        self,
        message: str,
        *,
        config: SpecForgeErrorConfig | None = None,
        **kwargs: object,
    ) -> None:
        if config is not None and kwargs:
            unexpected = ", ".join(sorted(kwargs))
            msg = f"SpecForgeError received both 'config' and keyword arguments: {unexpected}"
            raise TypeError(msg)
        if config is None:
            try:
                config = SpecForgeErrorConfig(**kwargs)  # type: ignore[arg-type]
            except TypeError as exc:
                msg = f"SpecForgeError got unexpected keyword arguments: {exc}"
                raise TypeError(msg) from exc

        super().__init__(message)
        self.message = message
        self.code = config.code
        self.http_status = config.http_status
        self.log_level = config.log_level
        self.context = dict(config.context) if config.context else {}
        if config.cause is not None:
            self.__cause__ = config.cause

    def to_problem_details(
        self,
        instance: str | None = None,
        title: str | None = None,
    ) -> ProblemDetails:
        """Convert to RFC 9457 Problem Details.

        Parameters
        ----------
        instance : str | None, optional
            URI identifying the occurrence. Defaults to ``urn:specforge:error``.
        title : str | None, optional
            Short summary. Defaults to the exception class name.

        Returns
        -------
        ProblemDetails
            Validated Problem Details payload; ``context`` becomes ``extensions``.
        """
        return build_problem_details(
            problem_type=get_type_uri(self.code),
            title=title or type(self).__name__,
            status=self.http_status,
            detail=self.message,
            instance=instance or "urn:specforge:error",
            code=self.code.value,
            extensions=cast("Mapping[str, JsonValue] | None", self.context or None),
        )

    def __str__(self) -> str:
        base = f"{type(self).__name__}[{self.code.value}]: {self.message}"
        if self.__cause__:
            base += f" (caused by: {type(self.__cause__).__name__})"
        return base


class CapabilityError(SpecForgeError):
    """A type was handed to an analyzer that cannot analyze it.

    This is a contract violation at the call site, not a property of the
    analyzed application, so it is never degraded to a fallback schema.
    """

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.CAPABILITY_MISMATCH,
            http_status=500,
            cause=cause,
            context=context,
        )


class AnalysisError(SpecForgeError):
    """Static analysis of a type or handler failed.

    Raised inside the analyzers; the generator catches it at the boundary of a
    single type or operation and substitutes the documented fallback.
    """

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.ANALYSIS_FAILED,
            http_status=422,
            log_level=logging.WARNING,
            cause=cause,
            context=context,
        )


class RouteResolutionError(SpecForgeError):
    """A route descriptor is malformed or names a handler that does not exist."""

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.ROUTE_RESOLUTION_ERROR,
            http_status=404,
            log_level=logging.WARNING,
            cause=cause,
            context=context,
        )


class RegistryError(SpecForgeError):
    """A schema registry operation was misused (e.g. defining an unreserved identity)."""

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.REGISTRY_ERROR,
            http_status=500,
            cause=cause,
            context=context,
        )


class ConfigurationError(SpecForgeError):
    """Configuration could not be read or is structurally invalid."""

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.CONFIGURATION_ERROR,
            http_status=500,
            log_level=logging.CRITICAL,
            cause=cause,
            context=context,
        )


class SettingsError(SpecForgeError):
    """Settings validation failed.

    Parameters
    ----------
    message : str
        Human-readable error message.
    errors : list[dict[str, object]] | None, optional
        Validation error entries (``loc``/``msg``/``type``). Merged into the
        context under ``errors``. Defaults to None.
    cause : BaseException | None, optional
        Underlying exception. Defaults to None.
    context : Mapping[str, object] | None, optional
        Additional context. Defaults to None.
    """

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, object]] | None = None,
        cause: BaseException | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        merged: dict[str, object] = dict(context) if context else {}
        if errors:
            merged["errors"] = errors
        super().__init__(
            message,
            code=ErrorCode.CONFIGURATION_ERROR,
            http_status=500,
            cause=cause,
            context=merged,
        )
