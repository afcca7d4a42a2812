"""
Provider contracts used by the hydration pipeline and the sync job.
Implementations raise typed errors from core.errors; they never retry.
"""

from __future__ import annotations

from typing import Any, Dict, List, Protocol

from hydration.schema import Centroid

# data.police.uk street-level crime: {id, month, category, location{latitude, longitude}, ...}
RawCrimeRecord = Dict[str, Any]


class GeocodingResolver(Protocol):
    """Postcode -> centroid. Raises NotFound or UpstreamUnavailable."""

    async def resolve(self, postcode: str) -> Centroid:
        ...


class CrimeFeedFetcher(Protocol):
    """Centroid -> raw incident records. Raises RateLimited or UpstreamError."""

    async def fetch_incidents(self, centroid: Centroid) -> List[RawCrimeRecord]:
        ...
