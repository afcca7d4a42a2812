"""
Typed payloads for snapshots and metric layers.

Field names follow the stored JSON: snapshot fields are snake_case, layer
fields are camelCase on the wire (aliases) and snake_case in Python.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Centroid(BaseModel):
    """Postcode centroid in WGS84."""

    lat: float
    lng: float


class CategoryCount(BaseModel):
    category: str
    count: int


class CrimeMetric(BaseModel):
    total_incidents: int = Field(..., ge=0)
    trend: str = "stable"
    primary_type: str = "Unknown"
    last_updated: Optional[str] = None
    top_categories: List[CategoryCount] = Field(default_factory=list, max_length=5)


class PriceMetric(BaseModel):
    """Placeholder price summary for a snapshot that has none yet."""

    median_value: Union[int, float] = 0
    trend: str = "stable"
    property_type: str = "Data unavailable"
    last_updated: Optional[str] = None


class FloodMetric(BaseModel):
    """Placeholder flood summary for a snapshot that has none yet."""

    risk_level: str = "Unknown"
    primary_source: str = "Data unavailable"
    last_updated: Optional[str] = None


class SnapshotMetrics(BaseModel):
    """``price`` and ``flood`` are owned by other pipelines and kept as raw mappings."""

    crime: CrimeMetric
    price: Dict[str, Any]
    flood: Dict[str, Any]


class SnapshotPayload(BaseModel):
    """Aggregate per-postcode record: centroid plus independent metric summaries."""

    postcode: str
    centroid: Centroid
    metrics: SnapshotMetrics


class LegendBucket(BaseModel):
    id: str
    label: str
    color: str
    count: int


class PointFeature(BaseModel):
    id: str
    type: Literal["point"] = "point"
    lat: float
    lng: float
    category: str


class MetricLayerPayload(BaseModel):
    """Map overlay for one (postcode, metric)."""

    model_config = ConfigDict(populate_by_name=True)

    metric: Literal["crime", "price", "flood"]
    postcode: str
    status: Literal["available", "unavailable"]
    reason: Optional[str] = None
    source_name: Optional[str] = Field(None, alias="sourceName")
    last_updated: Optional[str] = Field(None, alias="lastUpdated")
    legend: List[LegendBucket] = Field(default_factory=list)
    features: List[PointFeature] = Field(default_factory=list)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CachedSnapshot(BaseModel):
    """Stored snapshot row. ``payload`` is served verbatim."""

    postcode: str
    payload: Dict[str, Any]
    updated_at: datetime


class CachedLayer(BaseModel):
    """Stored layer row with its cache metadata."""

    payload: MetricLayerPayload
    dataset_version: str
    fetched_at: datetime
    expires_at: datetime


class HydrationResult(BaseModel):
    """Successful hydration: both payloads plus the layer cache metadata."""

    snapshot: SnapshotPayload
    layer: MetricLayerPayload
    dataset_version: str
    fetched_at: datetime
    expires_at: datetime
    states: List[str] = Field(default_factory=list)

    def cached_layer(self) -> CachedLayer:
        return CachedLayer(
            payload=self.layer,
            dataset_version=self.dataset_version,
            fetched_at=self.fetched_at,
            expires_at=self.expires_at,
        )
