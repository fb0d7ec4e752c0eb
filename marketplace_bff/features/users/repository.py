"""Store adapter for users."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from sqlalchemy import select

from marketplace_bff.core.database import order_by_keys
from marketplace_bff.core.settings import get_db_settings
from marketplace_bff.features.users.models import User
from marketplace_bff.features.users.schemas import UserRecord, UserUpdate
from marketplace_bff.utils.retry import retry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)
db_settings = get_db_settings()

transient = retry(
    max_attempts=db_settings.max_retries,
    initial_delay=db_settings.retry_delay,
)


class UserStore(Protocol):
    """Access to users."""

    async def find_by_id(self, user_id: str) -> UserRecord | None: ...

    async def find_by_ids(self, user_ids: Sequence[str]) -> list[UserRecord | None]:
        """Users in the order of ``user_ids``; unknown ids map to ``None``."""
        ...

    async def update(self, user_id: str, data: UserUpdate) -> UserRecord | None: ...


class SqlUserStore:
    """SQLAlchemy implementation of ``UserStore``.

    Each call opens its own short-lived session, so loaders for different
    kinds can run concurrently within one request.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @transient
    async def find_by_id(self, user_id: str) -> UserRecord | None:
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
        return UserRecord.model_validate(user) if user else None

    @transient
    async def find_by_ids(self, user_ids: Sequence[str]) -> list[UserRecord | None]:
        async with self._session_factory() as session:
            result = await session.execute(select(User).where(User.id.in_(user_ids)))
            rows = [UserRecord.model_validate(user) for user in result.scalars()]
        logger.debug("db.users.find_by_ids", extra={"requested": len(user_ids), "found": len(rows)})
        return order_by_keys(rows, user_ids, lambda row: row.id)

    async def update(self, user_id: str, data: UserUpdate) -> UserRecord | None:
        async with self._session_factory() as session, session.begin():
            user = await session.get(User, user_id, with_for_update=True)
            if user is None:
                return None
            for field, value in data.model_dump(exclude_unset=True).items():
                setattr(user, field, value)
            await session.flush()
            await session.refresh(user)
            return UserRecord.model_validate(user)
