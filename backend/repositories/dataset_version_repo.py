from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from models.dataset_version import DatasetVersion
from .base import BaseRepository


class DatasetVersionRepository(BaseRepository[DatasetVersion]):
    """Repository for the per-metric current DatasetVersion."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def get(self, metric: str) -> Optional[DatasetVersion]:
        return await super().get_by_id(DatasetVersion, metric)

    async def commit_version(
        self,
        metric: str,
        version: str,
        source_name: str,
        ttl_seconds: int,
        last_synced_at: datetime,
        next_sync_after: datetime,
    ) -> None:
        """Upsert the current version for metric."""
        await self.upsert_values(
            DatasetVersion,
            {
                "metric": metric,
                "version": version,
                "source_name": source_name,
                "ttl_seconds": ttl_seconds,
                "last_synced_at": last_synced_at,
                "next_sync_after": next_sync_after,
            },
            conflict_columns=["metric"],
        )
