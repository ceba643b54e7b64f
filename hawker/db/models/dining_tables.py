from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BOOLEAN,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    SmallInteger,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from hawker.db.models.base import ID_TYPE, Base


class DiningTable(Base):
    __tablename__ = "dining_tables"
    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_dining_tables_capacity_positive"),
        CheckConstraint("table_number > 0", name="ck_dining_tables_number_positive"),
        UniqueConstraint("venue_id", "table_number", name="uq_dining_tables_venue_number"),
    )

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True)
    venue_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("venues.id"), nullable=False)
    table_number: Mapped[int] = mapped_column(Integer, nullable=False)
    capacity: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        BOOLEAN, nullable=False, default=True, server_default=text("true")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
