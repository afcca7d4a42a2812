from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class SnapshotRow(Base):
    """One aggregate snapshot per normalized postcode (latest write wins)."""

    __tablename__ = "snapshots"

    postcode: Mapped[str] = mapped_column(String(16), primary_key=True)
    payload_json: Mapped[str] = mapped_column(
        Text, nullable=False
    )  # TODO: Use JSONB when the store moves to PostgreSQL.
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
