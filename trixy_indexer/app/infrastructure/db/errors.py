from __future__ import annotations

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError


def is_systemic_db_error(exc: BaseException) -> bool:
    """
    True for failures that affect every statement, not just the current row:
    lost/refused connections, pool timeouts, invalidated connections.
    """
    if isinstance(exc, (OperationalError, InterfaceError, OSError)):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    return False
