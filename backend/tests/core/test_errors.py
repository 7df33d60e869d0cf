"""Error Hierarchy — tests for HTTP mapping and the REST envelope."""

from app.core.errors import (
    LinkupError, ErrorContext, ErrorCategory,
    InvalidOperationError, ConflictError, ForbiddenError,
    ResourceNotFoundError, NotAuthenticatedError, DatabaseError, EmailDeliveryError,
)


def test_status_codes_per_kind():
    assert InvalidOperationError("x").http_status == 400
    assert ConflictError("x").http_status == 400
    assert NotAuthenticatedError().http_status == 401
    assert ForbiddenError("x").http_status == 403
    assert ResourceNotFoundError("Thing", "1").http_status == 404
    assert DatabaseError("x", "commit").http_status == 503


def test_all_errors_share_base():
    for error in (
        InvalidOperationError("x"), ConflictError("x"), ForbiddenError("x"),
        ResourceNotFoundError("T", "1"), DatabaseError("x", "q"),
        EmailDeliveryError("x", "timeout"),
    ):
        assert isinstance(error, LinkupError)


def test_to_response_envelope():
    error = ConflictError(
        "A connection request already exists", ErrorContext(request_id="r-1"),
    )
    body = error.to_response()["error"]
    assert body["code"] == "CONFLICT"
    assert body["message"] == "A connection request already exists"
    assert body["category"] == ErrorCategory.CONFLICT.value
    assert body["context"]["request_id"] == "r-1"
    assert "timestamp" in body


def test_email_delivery_error_records_retry_after():
    error = EmailDeliveryError("slow down", "rate_limit", retry_after_ms=2000)
    assert error.context.retry_after_ms == 2000
    assert error.failure_type == "rate_limit"
