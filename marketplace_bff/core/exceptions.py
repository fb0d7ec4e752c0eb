"""Custom exception classes for the application.

Every exception carries an HTTP-style status, a problem ``type`` and a
machine readable ``code``. The code is surfaced to GraphQL clients through
``extensions`` so the storefront can branch on it without parsing messages.
"""

from __future__ import annotations

from typing import Any


class AppException(Exception):
    """Base application exception.

    All custom exceptions should inherit from this class.
    Follows RFC 7807 Problem Details for HTTP APIs.

    Attributes:
        status_code: HTTP status code for the error.
        detail: Human-readable error message.
        code: GraphQL error code exposed in ``extensions.code``.
        type: Error type identifier (used in RFC 7807 problem details).
        title: Short, human-readable summary of the problem type.
        extra: Additional context-specific information about the error.

    Example:
        raise AppException(
            status_code=404,
            detail="Product not found",
            code="NOT_FOUND",
            extra={"product_id": "p1"},
        )
    """

    code: str = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        status_code: int,
        detail: str,
        code: str | None = None,
        type: str = "about:blank",
        title: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application exception.

        Args:
            status_code: HTTP status code.
            detail: Human-readable error message.
            code: GraphQL error code, defaults to the class level code.
            type: Error type identifier.
            title: Short summary of the problem type.
            extra: Additional context about the error.
        """
        self.status_code = status_code
        self.detail = detail
        if code is not None:
            self.code = code
        self.type = type
        self.title = title or self._default_title(status_code)
        self.extra = extra or {}
        super().__init__(detail)

    @property
    def extensions(self) -> dict[str, Any]:
        """GraphQL error extensions, picked up by graphql-core's located errors."""
        return {"code": self.code, **self.extra}

    @staticmethod
    def _default_title(status_code: int) -> str:
        titles = {
            400: "Bad Request",
            401: "Unauthorized",
            403: "Forbidden",
            404: "Not Found",
            422: "Unprocessable Entity",
            500: "Internal Server Error",
            503: "Service Unavailable",
        }
        return titles.get(status_code, "Error")


class MalformedRequestError(AppException):
    """Raised when a request cannot be interpreted.

    Example:
        raise MalformedRequestError("Unsupported persisted query version")
    """

    code = "BAD_REQUEST"

    def __init__(
        self,
        detail: str,
        code: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=400,
            detail=detail,
            code=code,
            type="bad-request",
            extra=extra,
        )


class InvalidCursorError(MalformedRequestError):
    """Raised when a pagination cursor does not decode to a valid position."""

    code = "INVALID_CURSOR"

    def __init__(self, detail: str = "Invalid cursor", extra: dict[str, Any] | None = None) -> None:
        super().__init__(detail, extra=extra)


class ValidationError(MalformedRequestError):
    """Raised when mutation input violates a business rule."""

    code = "VALIDATION_ERROR"


class UnauthenticatedError(AppException):
    """Raised when an operation needs an identity and the request has none."""

    code = "UNAUTHENTICATED"

    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(status_code=401, detail=detail, type="unauthenticated")


class ForbiddenError(AppException):
    """Raised when the identity is neither the owner nor privileged.

    Example:
        raise ForbiddenError(
            "Not allowed to modify this order",
            extra={"resource": "order"},
        )
    """

    code = "FORBIDDEN"

    def __init__(
        self,
        detail: str = "Access denied",
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(status_code=403, detail=detail, type="forbidden", extra=extra)


class NotFoundError(AppException):
    """Raised when a required entity does not exist."""

    code = "NOT_FOUND"

    def __init__(
        self,
        detail: str,
        code: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=404,
            detail=detail,
            code=code,
            type="not-found",
            extra=extra,
        )


class PersistedQueryNotFoundError(NotFoundError):
    """Raised when a hash-only request names a query this service never saw.

    Apollo clients react to the code by resending the request with the full
    query body attached.
    """

    code = "PERSISTED_QUERY_NOT_FOUND"

    def __init__(self, query_hash: str) -> None:
        super().__init__("PersistedQueryNotFound", extra={"hash": query_hash})


class ShapeRejectedError(AppException):
    """Raised when a query exceeds the configured depth or cost limits."""

    code = "SHAPE_REJECTED"

    def __init__(
        self,
        detail: str,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(status_code=400, detail=detail, type="shape-rejected", extra=extra)


class UpstreamUnavailableError(AppException):
    """Raised when a backing store call fails.

    Every field waiting on the failed batch receives the same instance.
    """

    code = "UPSTREAM_UNAVAILABLE"

    def __init__(
        self,
        detail: str = "Upstream store unavailable",
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=503,
            detail=detail,
            type="upstream-unavailable",
            extra=extra,
        )
