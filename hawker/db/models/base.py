from __future__ import annotations

from sqlalchemy import JSON, BigInteger, Integer, event
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Session

ID_TYPE = BigInteger().with_variant(Integer, "sqlite")
JSON_TYPE = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    pass


class AppendOnly:
    """Marker mixin: rows may be inserted but never updated or deleted through the ORM."""


@event.listens_for(Session, "before_flush")
def _reject_append_only_mutations(session: Session, flush_context, instances) -> None:
    for obj in session.dirty:
        if isinstance(obj, AppendOnly) and session.is_modified(obj, include_collections=False):
            raise ValueError(f"{obj.__tablename__} is append-only")
    for obj in session.deleted:
        if isinstance(obj, AppendOnly):
            raise ValueError(f"{obj.__tablename__} is append-only")
