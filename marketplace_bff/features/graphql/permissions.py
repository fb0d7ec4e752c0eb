"""Authorization guard for resolvers.

Ownership-sensitive reads and every mutation call one of the ``require_*``
helpers before touching a store. Only the explicit privileged flag on the
identity bypasses ownership.

Usage:
    identity = require_owner_or_privileged(info.context, order.user_id)

Or at the field level:
    @strawberry.field(permission_classes=[IsAuthenticated])
    async def me(self, info: Info) -> User: ...
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from strawberry.permission import BasePermission

from marketplace_bff.core.exceptions import ForbiddenError, UnauthenticatedError

if TYPE_CHECKING:
    from strawberry.types import Info

    from marketplace_bff.core.schemas.auth import Identity
    from marketplace_bff.features.graphql.context import GraphQLContext

logger = logging.getLogger(__name__)

__all__ = [
    "IsAuthenticated",
    "require_identity",
    "require_owner_or_privileged",
    "require_privileged",
]


def require_identity(context: GraphQLContext) -> Identity:
    """The request's identity.

    Raises:
        UnauthenticatedError: If the request is anonymous.
    """
    if context.identity is None:
        raise UnauthenticatedError
    return context.identity


def require_owner_or_privileged(
    context: GraphQLContext,
    owner_id: str | None,
    resource: str = "resource",
) -> Identity:
    """The identity, if it owns the resource or is privileged.

    Raises:
        UnauthenticatedError: If the request is anonymous.
        ForbiddenError: If the identity is neither owner nor privileged.
    """
    identity = require_identity(context)
    if identity.is_privileged or identity.owns(owner_id):
        return identity
    logger.warning(
        "Ownership check failed",
        extra={"subject_id": identity.subject_id, "resource": resource},
    )
    raise ForbiddenError(f"Not allowed to access this {resource}", extra={"resource": resource})


def require_privileged(context: GraphQLContext) -> Identity:
    """The identity, if privileged.

    Raises:
        UnauthenticatedError: If the request is anonymous.
        ForbiddenError: If the identity is not privileged.
    """
    identity = require_identity(context)
    if not identity.is_privileged:
        logger.warning("Privileged operation denied", extra={"subject_id": identity.subject_id})
        raise ForbiddenError("Administrator privileges required")
    return identity


class IsAuthenticated(BasePermission):
    """Require an authenticated identity.

    Example:
        @strawberry.field(permission_classes=[IsAuthenticated])
        async def cart(self, info: Info) -> list[CartItem]: ...
    """

    message = "Authentication required"
    error_extensions = {"code": UnauthenticatedError.code}

    def has_permission(self, _source: Any, info: Info[GraphQLContext, None], **_kwargs: Any) -> bool:
        if info.context.identity is None:
            logger.info(
                "Unauthenticated access attempt",
                extra={"field": info.field_name},
            )
            return False
        return True
