"""Which database errors are worth another attempt."""

from __future__ import annotations

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError


def is_transient(exc: BaseException) -> bool:
    """Whether ``exc`` is a connection-level failure a fresh session may clear.

    Operational and interface errors qualify, as does any DBAPI error that
    invalidated its connection. Integrity, data and programming errors are
    deterministic and never retried.
    """
    if isinstance(exc, (OperationalError, InterfaceError)):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated
