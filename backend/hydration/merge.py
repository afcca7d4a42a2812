"""
Snapshot merge: fold fresh crime metrics into an existing snapshot.

Only ``metrics.crime``, ``centroid`` and ``postcode`` change. Existing price
and flood summaries are carried over as raw mappings; a first snapshot gets
placeholder summaries so the payload shape is always complete.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .schema import (
    Centroid,
    CrimeMetric,
    FloodMetric,
    PriceMetric,
    SnapshotMetrics,
    SnapshotPayload,
)


def default_price_metric(month: Optional[str]) -> Dict[str, Any]:
    return PriceMetric(
        median_value=0,
        trend="stable",
        property_type="Data unavailable",
        last_updated=month,
    ).model_dump()


def default_flood_metric(month: Optional[str]) -> Dict[str, Any]:
    return FloodMetric(
        risk_level="Unknown",
        primary_source="Data unavailable",
        last_updated=month,
    ).model_dump()


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _existing_metrics(existing: Any) -> Dict[str, Any]:
    if isinstance(existing, SnapshotPayload):
        return existing.metrics.model_dump(mode="json")
    return _as_dict(_as_dict(existing).get("metrics"))


def _carry_over(default: Dict[str, Any], existing: Any) -> Dict[str, Any]:
    """Stored keys spread over the placeholder; values are never coerced or dropped.

    ``last_updated`` falls back to the placeholder's month unless the stored
    value is a non-empty string.
    """
    merged = {**default, **_as_dict(existing)}
    stored = merged.get("last_updated")
    if not (isinstance(stored, str) and stored):
        merged["last_updated"] = default["last_updated"]
    return merged


def merge_snapshot(
    existing: Any,
    crime: CrimeMetric,
    centroid: Centroid,
    postcode: str,
) -> SnapshotPayload:
    """Build the next snapshot from the stored one (dict, model, or None)."""
    metrics = _existing_metrics(existing)
    existing_crime = _as_dict(metrics.get("crime"))
    month = crime.last_updated

    trend = existing_crime.get("trend")
    next_crime = crime.model_copy(
        update={"trend": trend if isinstance(trend, str) and trend else "stable"}
    )

    return SnapshotPayload(
        postcode=postcode,
        centroid=centroid,
        metrics=SnapshotMetrics(
            crime=next_crime,
            price=_carry_over(default_price_metric(month), metrics.get("price")),
            flood=_carry_over(default_flood_metric(month), metrics.get("flood")),
        ),
    )



def read_centroid(payload: Any) -> Optional[Centroid]:
    """Centroid from a stored snapshot payload, or None when missing or not finite."""
    centroid = _as_dict(_as_dict(payload).get("centroid"))
    try:
        parsed = Centroid.model_validate(centroid)
    except ValidationError:
        return None
    if not (math.isfinite(parsed.lat) and math.isfinite(parsed.lng)):
        return None
    return parsed
