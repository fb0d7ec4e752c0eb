"""Database engine lifecycle."""

from __future__ import annotations

from .session import check_database, close_database, init_database

__all__ = ["check_database", "close_database", "init_database"]
