from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from models.metric_layer import MetricLayerRow
from .base import BaseRepository


class MetricLayerRepository(BaseRepository[MetricLayerRow]):
    """Repository for MetricLayerRow entities (keyed by postcode + metric)."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def get(self, postcode: str, metric: str) -> Optional[MetricLayerRow]:
        return await super().get_by_id(MetricLayerRow, (postcode, metric))

    async def upsert(
        self,
        postcode: str,
        metric: str,
        payload_json: str,
        source_name: Optional[str],
        dataset_version: str,
        fetched_at: datetime,
        expires_at: datetime,
    ) -> None:
        """Insert or fully replace the layer row for (postcode, metric)."""
        await self.upsert_values(
            MetricLayerRow,
            {
                "postcode": postcode,
                "metric": metric,
                "payload_json": payload_json,
                "source_name": source_name,
                "dataset_version": dataset_version,
                "fetched_at": fetched_at,
                "expires_at": expires_at,
                "updated_at": fetched_at,
            },
            conflict_columns=["postcode", "metric"],
        )

