from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.snapshot import SnapshotRow
from .base import BaseRepository


class SnapshotRepository(BaseRepository[SnapshotRow]):
    """Repository for SnapshotRow entities (keyed by normalized postcode)."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def get(self, postcode: str) -> Optional[SnapshotRow]:
        return await super().get_by_id(SnapshotRow, postcode)

    async def upsert(self, postcode: str, payload_json: str, updated_at: datetime) -> None:
        """Insert or replace the snapshot row for postcode."""
        await self.upsert_values(
            SnapshotRow,
            {"postcode": postcode, "payload_json": payload_json, "updated_at": updated_at},
            conflict_columns=["postcode"],
        )

    async def list_all(self) -> List[SnapshotRow]:
        """Return every snapshot ordered by postcode (deterministic batch order)."""
        stmt = select(SnapshotRow).order_by(SnapshotRow.postcode)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
