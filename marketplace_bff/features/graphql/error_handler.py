"""GraphQL error logging, coding and production masking.

Every error leaving the endpoint carries ``extensions.code``. Application
exceptions bring their own code; graphql-core syntax and validation errors
get ``GRAPHQL_VALIDATION_FAILED``; anything unexpected is
``INTERNAL_SERVER_ERROR`` and, in production, loses its message.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from marketplace_bff.core.exceptions import AppException
from marketplace_bff.infra.metrics.prometheus import graphql_errors_total

if TYPE_CHECKING:
    from graphql import GraphQLError

logger = logging.getLogger(__name__)

__all__ = ["error_code", "format_errors", "is_user_facing_error", "log_errors"]

INTERNAL_ERROR_CODE = "INTERNAL_SERVER_ERROR"
GRAPHQL_VALIDATION_CODE = "GRAPHQL_VALIDATION_FAILED"
INPUT_VALIDATION_CODE = "VALIDATION_ERROR"
MASKED_MESSAGE = "Internal server error"


def error_code(error: GraphQLError) -> str:
    """Classify an error into its client-visible code."""
    code = (error.extensions or {}).get("code")
    if isinstance(code, str):
        return code
    original = error.original_error
    if original is None:
        return GRAPHQL_VALIDATION_CODE
    if isinstance(original, PydanticValidationError):
        return INPUT_VALIDATION_CODE
    return INTERNAL_ERROR_CODE


def is_user_facing_error(error: GraphQLError) -> bool:
    """Whether the message is safe to show as-is.

    Application exceptions, invalid input and errors raised by graphql-core
    itself (syntax, validation) are intentional feedback; everything else is
    an internal failure.
    """
    original = error.original_error
    return original is None or isinstance(original, (AppException, PydanticValidationError))


def log_errors(errors: list[GraphQLError], operation_name: str | None = None) -> None:
    """Log each error once, with a traceback for internal failures."""
    for error in errors:
        code = error_code(error)
        graphql_errors_total.labels(error_code=code).inc()
        extra: dict[str, Any] = {
            "operation_name": operation_name,
            "error_code": code,
            "path": error.path,
        }
        if is_user_facing_error(error):
            logger.info("GraphQL error: %s", error.message, extra=extra)
        else:
            logger.error(
                "Unhandled error while resolving %s",
                error.path,
                extra=extra,
                exc_info=error.original_error,
            )


def format_errors(errors: list[GraphQLError], *, mask_internal: bool) -> list[dict[str, Any]]:
    """Format errors for the response body.

    Args:
        errors: Errors from parsing, validation or execution.
        mask_internal: Replace messages of internal failures (production).
    """
    formatted_errors = []
    for error in errors:
        formatted: dict[str, Any] = dict(error.formatted)
        code = error_code(error)
        extensions = dict(formatted.get("extensions") or {})
        extensions["code"] = code

        original = error.original_error
        if isinstance(original, PydanticValidationError):
            extensions["fields"] = [
                {"loc": [str(part) for part in item["loc"]], "msg": item["msg"]}
                for item in original.errors()
            ]
        elif not is_user_facing_error(error):
            if mask_internal:
                formatted["message"] = MASKED_MESSAGE
                extensions = {"code": code}
            elif original is not None:
                extensions["debug"] = {
                    "exception_type": type(original).__name__,
                    "exception_message": str(original),
                }

        formatted["extensions"] = extensions
        formatted_errors.append(formatted)
    return formatted_errors
