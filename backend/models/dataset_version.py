from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class DatasetVersion(Base):
    """Current dataset generation per metric, advanced by successful or partial syncs."""

    __tablename__ = "dataset_versions"

    metric: Mapped[str] = mapped_column(String(16), primary_key=True)
    version: Mapped[str] = mapped_column(String(64), nullable=False)
    source_name: Mapped[str] = mapped_column(String(100), nullable=False)
    ttl_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    last_synced_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    next_sync_after: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
