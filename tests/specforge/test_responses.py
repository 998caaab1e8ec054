"""Tests for response inference."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import pytest

from specforge.annotations import parse_docstring
from specforge.catalog import TypeCatalog
from specforge.registry import SchemaRegistry
from specforge.resolver import TypeResolver
from specforge.responses import (
    STANDARD_ERROR_DESCRIPTIONS,
    ResponseDescriptor,
    ResponseInferencer,
    success_description,
    success_status,
)
from specforge.schema import PrimitiveSchema
from specforge_common.errors import CapabilityError
from tests.helpers.sample_app.controllers import (
    AuthorController,
    CommentController,
    PostController,
    ProfileController,
    ReportController,
    SearchController,
    UserController,
    health,
    ping,
)

if TYPE_CHECKING:
    from collections.abc import Callable


class ArchiveController:
    def show(self, id: int) -> Any:
        return None

    def payload(self) -> object:
        return {}

    def destroy(self, id: int) -> None:
        """@response 409 Archive locked"""


def _infer(
    inferencer: ResponseInferencer, handler: Callable[..., object], controller: type | None = None
) -> dict[int, dict[str, object]]:
    responses = inferencer.infer(
        handler, controller=controller, annotations=parse_docstring(handler.__doc__)
    )
    return {status: response.to_openapi() for status, response in responses.items()}


def _json_schema(response: dict[str, object]) -> object:
    content = response["content"]
    assert isinstance(content, dict)
    return content["application/json"]["schema"]


def _ref(name: str) -> dict[str, str]:
    return {"$ref": f"#/components/schemas/{name}"}


@pytest.mark.parametrize(
    ("action", "status", "description"),
    [
        ("index", 200, "List retrieved successfully"),
        ("list_archived", 200, "List retrieved successfully"),
        ("show", 200, "Resource retrieved successfully"),
        ("store", 201, "Resource created successfully"),
        ("createDraft", 201, "Resource created successfully"),
        ("update", 200, "Resource updated successfully"),
        ("destroy", 204, "Resource deleted successfully"),
        ("bulk_delete", 204, "Resource deleted successfully"),
        ("export", 200, "Successful response"),
    ],
)
def test_success_conventions(action: str, status: int, description: str) -> None:
    """Action names pick the success status and description."""
    assert success_status(action) == status
    assert success_description(action) == description


class TestSuccessSchema:
    """Tests for the success response body."""

    def test_named_return_type(self, inferencer: ResponseInferencer) -> None:
        """A structured return annotation becomes a reference."""
        responses = _infer(inferencer, UserController.show, UserController)
        assert responses[200]["description"] == "Resource retrieved successfully"
        assert _json_schema(responses[200]) == _ref("UserResource")

    def test_store_is_created(self, inferencer: ResponseInferencer) -> None:
        """Store handlers answer 201 with the resource."""
        responses = _infer(inferencer, UserController.store, UserController)
        assert list(responses) == [201, 400, 401, 403, 422, 500]
        assert _json_schema(responses[201]) == _ref("UserResource")

    def test_destroy_has_no_content(self, inferencer: ResponseInferencer) -> None:
        """A None return documents an empty 204."""
        responses = _infer(inferencer, UserController.destroy, UserController)
        assert list(responses) == [204, 400, 401, 403, 404, 500]
        assert responses[204] == {"description": "Resource deleted successfully"}

    def test_collection_from_source(self, inferencer: ResponseInferencer) -> None:
        """A bare collection takes its item type from ``X.collection(...)`` in the body."""
        responses = _infer(inferencer, UserController.index, UserController)
        assert list(responses) == [200, 400, 401, 500]
        assert _json_schema(responses[200]) == {"type": "array", "items": _ref("UserResource")}

    def test_collection_from_docstring(self, inferencer: ResponseInferencer) -> None:
        """A documented return type supplies the item type of a bare list."""
        responses = _infer(inferencer, PostController.index, PostController)
        assert _json_schema(responses[200]) == {"type": "array", "items": _ref("PostResource")}

    def test_collection_from_controller_name(self, inferencer: ResponseInferencer) -> None:
        """``CommentController`` falls back to ``CommentResource``."""
        responses = _infer(inferencer, CommentController.index, CommentController)
        assert _json_schema(responses[200]) == {
            "type": "array",
            "items": _ref("CommentResource"),
        }

    def test_collection_without_item_type(self, inferencer: ResponseInferencer) -> None:
        """Without any item hint the items are generic objects."""
        responses = _infer(inferencer, CommentController.index)
        assert _json_schema(responses[200]) == {"type": "array", "items": {"type": "object"}}

    def test_typed_list(self, inferencer: ResponseInferencer) -> None:
        """Parameterized lists resolve directly."""
        responses = _infer(inferencer, SearchController.search, SearchController)
        assert _json_schema(responses[200]) == {"type": "array", "items": _ref("UserResource")}
        assert 422 in responses

    def test_declared_fields_return(self, inferencer: ResponseInferencer) -> None:
        """Declared-field types are referenced like resources."""
        responses = _infer(inferencer, AuthorController.show, AuthorController)
        assert _json_schema(responses[200]) == _ref("AuthorData")
        assert 404 in responses

    def test_raw_response_is_generic(self, inferencer: ResponseInferencer) -> None:
        """Raw responses document a generic object."""
        responses = _infer(inferencer, health)
        assert _json_schema(responses[200]) == {"type": "object"}

    @pytest.mark.parametrize("handler", [ArchiveController.show, ArchiveController.payload])
    def test_untyped_return_is_generic(
        self, inferencer: ResponseInferencer, handler: Callable[..., object]
    ) -> None:
        """``Any`` and ``object`` returns document a generic object body."""
        responses = _infer(inferencer, handler, ArchiveController)
        assert _json_schema(responses[200]) == {"type": "object"}

    def test_raw_response_with_documented_type(self, inferencer: ResponseInferencer) -> None:
        """A return tag refines a raw response."""
        responses = _infer(inferencer, ProfileController.preview, ProfileController)
        assert _json_schema(responses[200]) == _ref("UserResource")

    def test_mapping_return_is_raw(self, inferencer: ResponseInferencer) -> None:
        """Mapping return types are raw responses."""
        responses = _infer(inferencer, ProfileController.lookup, ProfileController)
        assert _json_schema(responses[200]) == {"type": "object"}

    def test_unannotated_handler(self, inferencer: ResponseInferencer) -> None:
        """No annotation and no documented type means no body."""
        responses = _infer(inferencer, ping)
        assert responses[200] == {"description": "Successful response"}
        assert list(responses) == [200, 400, 401, 500]


class TestExplicitResponses:
    """Tests for ``@response`` tags."""

    def test_explicit_replaces_default_success(self, inferencer: ResponseInferencer) -> None:
        """Explicit success responses suppress the inferred one."""
        responses = _infer(inferencer, ReportController.export, ReportController)
        assert list(responses) == [202, 400, 401, 409, 500]
        assert responses[202] == {"description": "Export queued"}
        assert responses[409] == {"description": "Export already running"}

    def test_explicit_type_token(self, inferencer: ResponseInferencer) -> None:
        """A leading type name documents the body schema."""
        responses = _infer(inferencer, ReportController.create, ReportController)
        assert list(responses) == [201, 400, 401, 500]
        assert responses[201]["description"] == "User created"
        assert _json_schema(responses[201]) == _ref("UserResource")

    def test_explicit_error_wins_over_standard(self, inferencer: ResponseInferencer) -> None:
        """Standard errors never overwrite documented ones."""

        def show(self: object, id: int) -> None:
            """Show.

            @response 404 User not found
            """
            del self, id

        responses = _infer(inferencer, show)
        assert responses[404] == {"description": "User not found"}


class TestStandardErrors:
    """Tests for error augmentation."""

    def test_always_present(self, inferencer: ResponseInferencer) -> None:
        """400, 401 and 500 are documented for every handler."""
        responses = _infer(inferencer, ping)
        for status in (400, 401, 500):
            assert responses[status] == {"description": STANDARD_ERROR_DESCRIPTIONS[status]}

    def test_not_found_from_source(self, inferencer: ResponseInferencer) -> None:
        """Fetch-or-fail lookups imply 404."""
        responses = _infer(inferencer, ProfileController.lookup, ProfileController)
        assert responses[404] == {"description": "Resource not found"}

    def test_validation_error_body(self, inferencer: ResponseInferencer) -> None:
        """Validated input implies a 422 with the validation error body."""
        responses = _infer(inferencer, ProfileController.store, ProfileController)
        assert list(responses) == [201, 400, 401, 403, 422, 500]
        assert responses[422]["description"] == "Validation error"
        assert _json_schema(responses[422]) == {
            "type": "object",
            "properties": {
                "message": {"type": "string"},
                "errors": {
                    "type": "object",
                    "additionalProperties": {"type": "array", "items": {"type": "string"}},
                },
            },
        }

    def test_default_responses(self, resolver: TypeResolver) -> None:
        """Configured defaults are added without replacing inferred entries."""
        inferencer = ResponseInferencer(
            resolver, default_responses={429: "Too Many Requests", 400: "Custom"}
        )
        responses = _infer(inferencer, ping)
        assert responses[429] == {"description": "Too Many Requests"}
        assert responses[400] == {"description": "Bad Request"}
        assert list(responses) == sorted(responses)


class TestFailurePolicy:
    """Tests for degraded inference."""

    def test_failure_degrades_to_generic_success(
        self,
        inferencer: ResponseInferencer,
        monkeypatch: pytest.MonkeyPatch,
        operation_records: Callable[[str], list[logging.LogRecord]],
    ) -> None:
        """An inference failure documents a generic 200 plus standard errors."""

        def boom(*args: object, **kwargs: object) -> None:
            raise RuntimeError("source unavailable")

        monkeypatch.setattr(inferencer, "_success_schema", boom)
        responses = _infer(inferencer, UserController.show, UserController)

        assert list(responses) == [200, 400, 401, 404, 500]
        assert _json_schema(responses[200]) == {"type": "object"}
        records = operation_records("infer_responses")
        assert [getattr(record, "status", None) for record in records] == ["degraded"]

    def test_failure_keeps_explicit_responses(
        self, inferencer: ResponseInferencer, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Documented responses survive a failure; the fallback uses the conventional status."""

        def boom(*args: object, **kwargs: object) -> None:
            raise RuntimeError("source unavailable")

        monkeypatch.setattr(inferencer, "_success_schema", boom)
        responses = _infer(inferencer, ArchiveController.destroy, ArchiveController)

        assert list(responses) == [204, 400, 401, 403, 404, 409, 500]
        assert responses[204] == {"description": "Resource deleted successfully"}
        assert responses[409] == {"description": "Archive locked"}

    def test_capability_error_propagates(self) -> None:
        """Contract violations are not degraded."""
        inferencer = ResponseInferencer(TypeResolver(SchemaRegistry(), TypeCatalog()))
        with pytest.raises(CapabilityError):
            _infer(inferencer, UserController.show, UserController)


def test_response_descriptor_rendering() -> None:
    """Bodies render under application/json."""
    assert ResponseDescriptor("OK", PrimitiveSchema(type="integer")).to_openapi() == {
        "description": "OK",
        "content": {"application/json": {"schema": {"type": "integer"}}},
    }
    assert ResponseDescriptor("Gone").to_openapi() == {"description": "Gone"}
