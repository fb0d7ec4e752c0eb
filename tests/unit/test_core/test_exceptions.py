"""Unit tests for the application error taxonomy."""
from __future__ import annotations

import pytest

from marketplace_bff.core.exceptions import (
    AppException,
    ForbiddenError,
    InvalidCursorError,
    MalformedRequestError,
    NotFoundError,
    PersistedQueryNotFoundError,
    ShapeRejectedError,
    UnauthenticatedError,
    UpstreamUnavailableError,
    ValidationError,
)


@pytest.mark.parametrize(
    ("error", "code", "status_code"),
    [
        (MalformedRequestError("bad"), "BAD_REQUEST", 400),
        (InvalidCursorError(), "INVALID_CURSOR", 400),
        (ValidationError("bad input"), "VALIDATION_ERROR", 400),
        (UnauthenticatedError(), "UNAUTHENTICATED", 401),
        (ForbiddenError(), "FORBIDDEN", 403),
        (NotFoundError("missing"), "NOT_FOUND", 404),
        (PersistedQueryNotFoundError("abc"), "PERSISTED_QUERY_NOT_FOUND", 404),
        (ShapeRejectedError("too deep"), "SHAPE_REJECTED", 400),
        (UpstreamUnavailableError(), "UPSTREAM_UNAVAILABLE", 503),
    ],
)
def test_error_codes(error: AppException, code: str, status_code: int):
    """Every exception kind maps to a stable client-visible code."""
    assert error.code == code
    assert error.status_code == status_code
    assert error.extensions["code"] == code


def test_extensions_carry_extra_context():
    error = NotFoundError("Product not found", extra={"product_id": "p1"})

    assert error.extensions == {"code": "NOT_FOUND", "product_id": "p1"}
    assert str(error) == "Product not found"
    assert error.title == "Not Found"


def test_code_override_is_per_instance():
    overridden = MalformedRequestError("PersistedQueryNotSupported", code="PERSISTED_QUERY_NOT_SUPPORTED")

    assert overridden.code == "PERSISTED_QUERY_NOT_SUPPORTED"
    assert MalformedRequestError("other").code == "BAD_REQUEST"


def test_persisted_query_not_found_message():
    """Apollo clients match on this exact message."""
    error = PersistedQueryNotFoundError("abc")

    assert error.detail == "PersistedQueryNotFound"
    assert error.extensions["hash"] == "abc"


def test_validation_error_is_malformed_request():
    assert isinstance(ValidationError("x"), MalformedRequestError)
    assert isinstance(InvalidCursorError(), MalformedRequestError)
