from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.sync_run import DatasetSyncRun
from .base import BaseRepository


class SyncRunRepository(BaseRepository[DatasetSyncRun]):
    """Repository for DatasetSyncRun audit records (append, then finalize)."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def create_running(self, metric: str, started_at: datetime) -> DatasetSyncRun:
        """Insert a running sync run and flush so the id is assigned."""
        run = DatasetSyncRun(
            metric=metric,
            status="running",
            started_at=started_at,
            records_upserted=0,
            rate_limited_count=0,
            error_count=0,
        )
        await self.add(run)
        await self.session.flush()
        return run

    async def get_by_id(self, id: int) -> Optional[DatasetSyncRun]:
        return await super().get_by_id(DatasetSyncRun, id)

    async def finalize(
        self,
        run_id: int,
        *,
        status: str,
        completed_at: datetime,
        records_upserted: int,
        rate_limited_count: int,
        error_count: int,
        error_message: Optional[str] = None,
    ) -> DatasetSyncRun:
        run = await self.get_by_id(run_id)
        if run is None:
            raise LookupError(f"Sync run {run_id} not found")
        run.status = status
        run.completed_at = completed_at
        run.records_upserted = records_upserted
        run.rate_limited_count = rate_limited_count
        run.error_count = error_count
        run.error_message = error_message
        self.session.add(run)
        return run

    async def list_recent(self, metric: str, limit: int = 20) -> List[DatasetSyncRun]:
        """List recent runs for metric (newest first)."""
        stmt = (
            select(DatasetSyncRun)
            .where(DatasetSyncRun.metric == metric)
            .order_by(desc(DatasetSyncRun.id))
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
