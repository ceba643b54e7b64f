from __future__ import annotations

from datetime import datetime

from sqlalchemy import BOOLEAN, DateTime, String, text
from sqlalchemy.orm import Mapped, mapped_column

from hawker.db.models.base import ID_TYPE, Base


class Venue(Base):
    __tablename__ = "venues"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(
        BOOLEAN, nullable=False, default=True, server_default=text("true")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
