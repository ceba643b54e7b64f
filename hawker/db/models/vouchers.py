from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BOOLEAN, CheckConstraint, DateTime, Integer, Numeric, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from hawker.db.models.base import ID_TYPE, Base


class Voucher(Base):
    __tablename__ = "vouchers"
    __table_args__ = (
        CheckConstraint("points_required > 0", name="ck_vouchers_points_required_positive"),
        CheckConstraint("validity_days > 0", name="ck_vouchers_validity_days_positive"),
        CheckConstraint(
            "discount_type IN ('percentage','fixed')", name="ck_vouchers_discount_type"
        ),
        CheckConstraint("discount_value > 0", name="ck_vouchers_discount_value_positive"),
    )

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    points_required: Mapped[int] = mapped_column(Integer, nullable=False)
    discount_type: Mapped[str] = mapped_column(String(16), nullable=False)
    discount_value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    min_spend: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    validity_days: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        BOOLEAN, nullable=False, default=True, server_default=text("true")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
