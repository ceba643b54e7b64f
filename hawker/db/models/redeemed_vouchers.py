from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BOOLEAN,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from hawker.db.models.base import ID_TYPE, Base


class RedeemedVoucher(Base):
    __tablename__ = "redeemed_vouchers"
    __table_args__ = (
        CheckConstraint(
            "(is_used AND used_date IS NOT NULL) OR (NOT is_used AND used_date IS NULL)",
            name="ck_redeemed_vouchers_used_date_consistency",
        ),
        Index("idx_redeemed_vouchers_user_redeemed", "user_id", "redeemed_at"),
        UniqueConstraint("voucher_code", name="uq_redeemed_vouchers_voucher_code"),
    )

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    voucher_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("vouchers.id"), nullable=False)
    voucher_code: Mapped[str] = mapped_column(String(32), nullable=False)
    redeemed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expiry_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_used: Mapped[bool] = mapped_column(
        BOOLEAN, nullable=False, default=False, server_default=text("false")
    )
    used_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    order_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
