"""SQLAlchemy models for the users feature."""

from __future__ import annotations

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from marketplace_bff.core.database import Base, StringPKMixin, TimestampMixin


class User(Base, StringPKMixin, TimestampMixin):
    """Marketplace account. Any user may sell as well as buy."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    is_admin: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="Privileged accounts bypass ownership checks",
    )
