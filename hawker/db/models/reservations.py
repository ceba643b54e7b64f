from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from hawker.db.models.base import ID_TYPE, Base

RESERVATION_STATUS_CONFIRMED = "CONFIRMED"
RESERVATION_STATUS_CANCELLED = "CANCELLED"


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("status IN ('CONFIRMED','CANCELLED')", name="ck_reservations_status"),
        CheckConstraint(
            "start_minute >= 0 AND end_minute <= 1440 AND end_minute > start_minute",
            name="ck_reservations_interval",
        ),
        CheckConstraint("party_size > 0", name="ck_reservations_party_size_positive"),
        Index("idx_reservations_table_date", "table_id", "reservation_date"),
        Index("idx_reservations_user_date", "user_id", "reservation_date"),
        Index("idx_reservations_venue_date", "venue_id", "reservation_date"),
    )

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    venue_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("venues.id"), nullable=False)
    table_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("dining_tables.id"), nullable=False
    )
    table_number: Mapped[int] = mapped_column(Integer, nullable=False)
    reservation_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    start_minute: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    end_minute: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    party_size: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
