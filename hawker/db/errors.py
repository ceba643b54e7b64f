from __future__ import annotations

from sqlalchemy.exc import DBAPIError

LOCK_NOT_AVAILABLE_SQLSTATE = "55P03"


def sqlstate_of(exc: DBAPIError) -> str | None:
    orig = exc.orig
    if orig is None:
        return None
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_lock_timeout(exc: DBAPIError) -> bool:
    return sqlstate_of(exc) == LOCK_NOT_AVAILABLE_SQLSTATE
