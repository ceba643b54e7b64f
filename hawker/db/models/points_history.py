from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from hawker.db.models.base import ID_TYPE, JSON_TYPE, AppendOnly, Base

TRANSACTION_TYPES = ("upload", "upvote", "redeem", "adjust")


class PointsHistoryEntry(AppendOnly, Base):
    __tablename__ = "points_history"
    __table_args__ = (
        CheckConstraint(
            "transaction_type IN ('upload','upvote','redeem','adjust')",
            name="ck_points_history_transaction_type",
        ),
        CheckConstraint("points <> 0", name="ck_points_history_points_non_zero"),
        Index("idx_points_history_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    transaction_type: Mapped[str] = mapped_column(String(16), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    metadata_: Mapped[dict[str, object]] = mapped_column(
        "metadata",
        JSON_TYPE,
        nullable=False,
        default=dict,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
