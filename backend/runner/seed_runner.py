"""
Seed snapshots so a fresh store has postcodes for the batch sync to refresh.
Seeds are upserted by postcode; re-running overwrites them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from core.time_utils import utc_now
from hydration.cache_store import CacheStore
from hydration.schema import SnapshotPayload

SNAPSHOT_SEEDS: List[Dict[str, Any]] = [
    {
        "postcode": "SW1A 1AA",
        "centroid": {"lat": 51.501, "lng": -0.141},
        "metrics": {
            "crime": {
                "total_incidents": 142,
                "trend": "down",
                "primary_type": "Anti-social behaviour",
                "last_updated": "2023-11",
            },
            "price": {
                "median_value": 1250000,
                "trend": "up",
                "property_type": "Flat",
                "last_updated": "2023-10",
            },
            "flood": {
                "risk_level": "Low",
                "primary_source": "Surface Water",
                "last_updated": "2024-01",
            },
        },
    },
]


async def seed_snapshots(
    session: AsyncSession,
    seeds: Optional[Sequence[Dict[str, Any]]] = None,
    *,
    now: Optional[datetime] = None,
) -> List[str]:
    """Upsert seed snapshot payloads; returns the seeded postcodes in order."""
    store = CacheStore(session)
    updated_at = now or utc_now()
    seeded: List[str] = []
    for seed in SNAPSHOT_SEEDS if seeds is None else seeds:
        payload = SnapshotPayload.model_validate(seed)
        await store.upsert_snapshot(payload.postcode, payload, updated_at)
        seeded.append(payload.postcode)
    return seeded
