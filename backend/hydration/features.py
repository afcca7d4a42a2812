"""
Crime feed normalisation: raw records -> point features, ranked legend, and
snapshot crime summary.

Features are capped with a round-robin sampler over the top categories so a
single dominant category cannot crowd the others off the map.
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Deque, Dict, Iterable, List, Optional, Sequence, Tuple

from core.time_utils import iso_month

from .schema import CategoryCount, CrimeMetric, LegendBucket, MetricLayerPayload, PointFeature

MAX_CRIME_FEATURES = 250
TOP_CATEGORY_LIMIT = 5
OTHER_CATEGORY = "other-crime"
CRIME_SOURCE_NAME = "UK Police Data"

BASE_COLORS = (
    "#0A8A4B",
    "#1F77B4",
    "#FF7F0E",
    "#D62728",
    "#9467BD",
    "#8C564B",
    "#17BECF",
    "#BCBD22",
)


def normalize_category(category: Any) -> str:
    if not isinstance(category, str):
        return OTHER_CATEGORY
    value = category.strip()
    return value or OTHER_CATEGORY


def humanize_category(category: str) -> str:
    return category.replace("-", " ")


def legend_color(rank: int) -> str:
    """Palette color by rank; past the palette, rotate hue by 47 degrees per rank."""
    if rank < len(BASE_COLORS):
        return BASE_COLORS[rank]
    hue = (rank * 47) % 360
    return f"hsl({hue} 68% 42%)"


def rank_categories(records: Iterable[Dict[str, Any]]) -> List[Tuple[str, int]]:
    """(category, count) by descending count; ties keep first-seen order."""
    counts: Dict[str, int] = {}
    for record in records:
        key = normalize_category(record.get("category"))
        counts[key] = counts.get(key, 0) + 1
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)


def build_legend(ranked: Sequence[Tuple[str, int]]) -> List[LegendBucket]:
    return [
        LegendBucket(
            id=category,
            label=f"{humanize_category(category)} ({count})",
            color=legend_color(rank),
            count=count,
        )
        for rank, (category, count) in enumerate(ranked)
    ]


def _coordinate(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def normalize_features(records: Sequence[Dict[str, Any]]) -> List[PointFeature]:
    """Point features for records with finite coordinates; ids keep the raw index."""
    features: List[PointFeature] = []
    for index, record in enumerate(records):
        location = record.get("location")
        if not isinstance(location, dict):
            continue
        lat = _coordinate(location.get("latitude"))
        lng = _coordinate(location.get("longitude"))
        if lat is None or lng is None:
            continue
        raw_id = record.get("id")
        features.append(
            PointFeature(
                id=f"{'crime' if raw_id is None else raw_id}-{index}",
                lat=lat,
                lng=lng,
                category=normalize_category(record.get("category")),
            )
        )
    return features


def sample_features(
    features: Sequence[PointFeature],
    top_category_ids: Sequence[str],
    cap: int = MAX_CRIME_FEATURES,
) -> List[PointFeature]:
    """Cap features, interleaving top categories round-robin before backfilling the rest."""
    if len(features) <= cap:
        return list(features)

    top_set = set(top_category_ids)
    top_features = [f for f in features if f.category in top_set]
    other_features = [f for f in features if f.category not in top_set]
    if not top_features:
        return list(features[:cap])

    by_category: Dict[str, Deque[PointFeature]] = {}
    for feature in top_features:
        by_category.setdefault(feature.category, deque()).append(feature)

    queues = list(by_category.values())
    selected: List[PointFeature] = []
    index = 0
    while len(selected) < cap and queues:
        queue = queues[index]
        selected.append(queue.popleft())
        if not queue:
            # The next queue slides into this slot.
            queues.pop(index)
            if index >= len(queues):
                index = 0
            continue
        index = (index + 1) % len(queues)

    for feature in other_features:
        if len(selected) >= cap:
            break
        selected.append(feature)

    return selected[:cap]


def provider_month(records: Sequence[Dict[str, Any]], now: datetime) -> str:
    """Month reported by the feed (first record), else the current UTC month."""
    if records:
        month = records[0].get("month")
        if isinstance(month, str) and month:
            return month
    return iso_month(now)


@dataclass(frozen=True)
class CrimeLayerBuild:
    """Everything derived from one crime feed response."""

    layer: MetricLayerPayload
    crime_metric: CrimeMetric
    provider_month: str


def build_crime_layer(
    postcode: str,
    records: Sequence[Dict[str, Any]],
    now: datetime,
) -> CrimeLayerBuild:
    month = provider_month(records, now)
    ranked = rank_categories(records)
    top = ranked[:TOP_CATEGORY_LIMIT]
    top_categories = [
        CategoryCount(category=humanize_category(category), count=count) for category, count in top
    ]
    features = sample_features(normalize_features(records), [category for category, _ in top])

    layer = MetricLayerPayload(
        metric="crime",
        postcode=postcode,
        status="available",
        source_name=CRIME_SOURCE_NAME,
        last_updated=month,
        legend=build_legend(ranked),
        features=features,
    )
    crime_metric = CrimeMetric(
        total_incidents=len(records),
        primary_type=top_categories[0].category if top_categories else "Unknown",
        last_updated=month,
        top_categories=top_categories,
    )
    return CrimeLayerBuild(layer=layer, crime_metric=crime_metric, provider_month=month)


def unavailable_layer(metric: str, postcode: str, reason: str) -> MetricLayerPayload:
    return MetricLayerPayload(
        metric=metric,
        postcode=postcode,
        status="unavailable",
        reason=reason,
    )
