"""Tests for the exception hierarchy and RFC 9457 Problem Details helpers."""

from __future__ import annotations

import json
import logging

import pytest

from specforge_common.errors import (
    AnalysisError,
    CapabilityError,
    ConfigurationError,
    ErrorCode,
    RegistryError,
    RouteResolutionError,
    SettingsError,
    SpecForgeError,
    SpecForgeErrorConfig,
    get_type_uri,
)
from specforge_common.problem_details import (
    ProblemDetailsParams,
    ProblemDetailsValidationError,
    build_problem_details,
    render_problem,
    validate_problem_details,
)


class TestErrorCodes:
    """Tests for ErrorCode and type URIs."""

    def test_type_uri(self) -> None:
        """Type URIs are built from the stable code value."""
        assert (
            get_type_uri(ErrorCode.ROUTE_RESOLUTION_ERROR)
            == "https://specforge.dev/problems/route-resolution-error"
        )

    def test_str_is_value(self) -> None:
        """Codes render as their value."""
        assert str(ErrorCode.CAPABILITY_MISMATCH) == "capability-mismatch"


class TestSpecForgeError:
    """Tests for the base exception."""

    def test_defaults(self) -> None:
        """The base error is an unclassified runtime error."""
        error = SpecForgeError("boom")
        assert error.code is ErrorCode.RUNTIME_ERROR
        assert error.http_status == 500
        assert error.log_level == logging.ERROR
        assert error.context == {}

    def test_config_object(self) -> None:
        """A config object supplies every field at once."""
        config = SpecForgeErrorConfig(
            code=ErrorCode.ANALYSIS_FAILED, http_status=422, context={"type": "User"}
        )
        error = SpecForgeError("bad type", config=config)
        assert error.code is ErrorCode.ANALYSIS_FAILED
        assert error.http_status == 422
        assert error.context == {"type": "User"}

    def test_config_and_keywords_conflict(self) -> None:
        """Passing both a config and keywords is rejected."""
        with pytest.raises(TypeError, match="both 'config' and keyword"):
            SpecForgeError("x", config=SpecForgeErrorConfig(), http_status=400)

    def test_unknown_keyword(self) -> None:
        """Unknown keyword fields are rejected."""
        with pytest.raises(TypeError, match="unexpected keyword"):
            SpecForgeError("x", colour="red")

    def test_str_includes_code_and_cause(self) -> None:
        """String form names the class, code and cause type."""
        cause = KeyError("rules")
        error = AnalysisError("rule table missing", cause=cause)
        assert str(error) == (
            "AnalysisError[analysis-failed]: rule table missing (caused by: KeyError)"
        )
        assert error.__cause__ is cause

    @pytest.mark.parametrize(
        ("error_type", "code", "status"),
        [
            (CapabilityError, ErrorCode.CAPABILITY_MISMATCH, 500),
            (AnalysisError, ErrorCode.ANALYSIS_FAILED, 422),
            (RouteResolutionError, ErrorCode.ROUTE_RESOLUTION_ERROR, 404),
            (RegistryError, ErrorCode.REGISTRY_ERROR, 500),
            (ConfigurationError, ErrorCode.CONFIGURATION_ERROR, 500),
        ],
    )
    def test_subclass_codes(
        self, error_type: type[SpecForgeError], code: ErrorCode, status: int
    ) -> None:
        """Each subclass carries its own code and HTTP status."""
        error = error_type("failure")
        assert isinstance(error, SpecForgeError)
        assert error.code is code
        assert error.http_status == status

    def test_settings_error_merges_errors(self) -> None:
        """Validation entries are stored in the context under ``errors``."""
        entries: list[dict[str, object]] = [{"loc": "info.title", "msg": "bad", "type": "x"}]
        error = SettingsError("invalid", errors=entries, context={"path": "a.yaml"})
        assert error.code is ErrorCode.CONFIGURATION_ERROR
        assert error.context == {"path": "a.yaml", "errors": entries}


class TestProblemDetailsConversion:
    """Tests for SpecForgeError.to_problem_details."""

    def test_capability_error(self) -> None:
        """Context becomes the extensions member."""
        error = CapabilityError("not projected", context={"type": "UserData"})
        problem = error.to_problem_details(instance="urn:specforge:analyzer")

        assert problem["type"] == "https://specforge.dev/problems/capability-mismatch"
        assert problem["title"] == "CapabilityError"
        assert problem["status"] == 500
        assert problem["detail"] == "not projected"
        assert problem["instance"] == "urn:specforge:analyzer"
        assert problem["code"] == "capability-mismatch"
        assert problem["extensions"] == {"type": "UserData"}

    def test_defaults_without_context(self) -> None:
        """Instance defaults and empty context leaves out extensions."""
        problem = RegistryError("unregistered").to_problem_details(title="Registry misuse")
        assert problem["instance"] == "urn:specforge:error"
        assert problem["title"] == "Registry misuse"
        assert "extensions" not in problem


class TestBuildProblemDetails:
    """Tests for build_problem_details and validation."""

    def test_keyword_fields(self) -> None:
        """Keyword fields build a validated payload."""
        problem = build_problem_details(
            problem_type="https://specforge.dev/problems/runtime-error",
            title="Runtime Error",
            status=500,
            detail="Generation failed",
            instance="urn:specforge:generate",
        )
        assert problem == {
            "type": "https://specforge.dev/problems/runtime-error",
            "title": "Runtime Error",
            "status": 500,
            "detail": "Generation failed",
            "instance": "urn:specforge:generate",
        }

    def test_params_and_fields_conflict(self) -> None:
        """A params object excludes keyword fields."""
        params = ProblemDetailsParams(
            problem_type="https://specforge.dev/problems/x",
            title="X",
            status=500,
            detail="x",
            instance="urn:x",
        )
        with pytest.raises(TypeError, match="either params or keyword fields"):
            build_problem_details(params, title="Y")

    def test_invalid_status_rejected(self) -> None:
        """Statuses outside 100-599 fail validation."""
        with pytest.raises(ProblemDetailsValidationError) as excinfo:
            build_problem_details(
                problem_type="https://specforge.dev/problems/x",
                title="X",
                status=99,
                detail="x",
                instance="urn:x",
            )
        assert any("status" in message for message in excinfo.value.validation_errors)

    def test_unknown_member_rejected(self) -> None:
        """Members outside the schema are rejected."""
        payload = {
            "type": "https://specforge.dev/problems/x",
            "title": "X",
            "status": 500,
            "detail": "x",
            "instance": "urn:x",
            "trace": "abc",
        }
        with pytest.raises(ProblemDetailsValidationError):
            validate_problem_details(payload)

    def test_render_problem(self) -> None:
        """Rendering produces JSON that round-trips to the same payload."""
        problem = RouteResolutionError("missing handler").to_problem_details()
        assert json.loads(render_problem(problem)) == dict(problem)
