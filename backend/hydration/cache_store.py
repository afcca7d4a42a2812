"""
Cache store: upsert-by-key persistence for snapshots and metric layers.

A lookup miss returns None (expected; triggers hydration). Any store fault is
logged and raised as PersistenceFailure. Each upsert commits on its own so the
snapshot and layer writes stay independent.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import PersistenceFailure
from core.time_utils import ensure_utc
from repositories.metric_layer_repo import MetricLayerRepository
from repositories.snapshot_repo import SnapshotRepository

from .schema import CachedLayer, CachedSnapshot, MetricLayerPayload, SnapshotPayload

logger = logging.getLogger(__name__)


def _stable_json(obj: object) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"))


class CacheStore:
    """Snapshot (key: postcode) and metric layer (key: postcode + metric) storage."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self._snapshots = SnapshotRepository(session)
        self._layers = MetricLayerRepository(session)

    async def get_snapshot(self, postcode: str) -> Optional[CachedSnapshot]:
        try:
            row = await self._snapshots.get(postcode)
        except SQLAlchemyError as e:
            logger.exception("Snapshot lookup failed for %s", postcode)
            raise PersistenceFailure("Failed to fetch snapshot data.") from e
        if row is None:
            return None
        try:
            payload = json.loads(row.payload_json)
        except ValueError as e:
            logger.error("Snapshot row for %s holds invalid JSON", postcode)
            raise PersistenceFailure("Failed to fetch snapshot data.") from e
        return CachedSnapshot(
            postcode=row.postcode,
            payload=payload if isinstance(payload, dict) else {},
            updated_at=ensure_utc(row.updated_at),
        )

    async def upsert_snapshot(
        self,
        postcode: str,
        payload: SnapshotPayload,
        updated_at: datetime,
    ) -> None:
        payload_json = _stable_json(payload.model_dump(mode="json"))
        try:
            await self._snapshots.upsert(postcode, payload_json, updated_at)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Snapshot upsert failed for %s", postcode)
            raise PersistenceFailure("Failed to persist snapshot data.") from e

    async def get_layer(self, postcode: str, metric: str) -> Optional[CachedLayer]:
        try:
            row = await self._layers.get(postcode, metric)
        except SQLAlchemyError as e:
            logger.exception("Layer lookup failed for %s/%s", postcode, metric)
            raise PersistenceFailure("Failed to fetch layer data.") from e
        if row is None:
            return None
        try:
            payload = MetricLayerPayload.model_validate_json(row.payload_json)
        except ValidationError as e:
            logger.error("Layer row for %s/%s does not match the layer schema", postcode, metric)
            raise PersistenceFailure("Failed to fetch layer data.") from e
        return CachedLayer(
            payload=payload,
            dataset_version=row.dataset_version,
            fetched_at=ensure_utc(row.fetched_at),
            expires_at=ensure_utc(row.expires_at),
        )

    async def upsert_layer(
        self,
        postcode: str,
        metric: str,
        payload: MetricLayerPayload,
        dataset_version: str,
        fetched_at: datetime,
        expires_at: datetime,
    ) -> None:
        payload_json = _stable_json(payload.to_json_dict())
        try:
            await self._layers.upsert(
                postcode=postcode,
                metric=metric,
                payload_json=payload_json,
                source_name=payload.source_name,
                dataset_version=dataset_version,
                fetched_at=fetched_at,
                expires_at=expires_at,
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Layer upsert failed for %s/%s", postcode, metric)
            raise PersistenceFailure(f"Failed to persist {metric} layer data.") from e

    async def list_snapshots(self) -> List[CachedSnapshot]:
        """Every stored snapshot, ordered by postcode. Rows with invalid JSON are skipped."""
        try:
            rows = await self._snapshots.list_all()
        except SQLAlchemyError as e:
            logger.exception("Snapshot listing failed")
            raise PersistenceFailure("Failed to list snapshots.") from e
        snapshots: List[CachedSnapshot] = []
        for row in rows:
            try:
                payload = json.loads(row.payload_json)
            except ValueError:
                logger.warning("Skipping snapshot %s with invalid JSON", row.postcode)
                continue
            snapshots.append(
                CachedSnapshot(
                    postcode=row.postcode,
                    payload=payload if isinstance(payload, dict) else {},
                    updated_at=ensure_utc(row.updated_at),
                )
            )
        return snapshots
