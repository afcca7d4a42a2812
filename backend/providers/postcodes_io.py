"""
Geocoding resolver backed by postcodes.io.
GET {base}/postcodes/{postcode} -> {"result": {"latitude": .., "longitude": ..}}
"""

from __future__ import annotations

import logging
import math
from typing import Any, Optional
from urllib.parse import quote

import httpx

from core.errors import NotFound, UpstreamUnavailable
from hydration.schema import Centroid
from ops.ops_events import log_upstream_failure

logger = logging.getLogger(__name__)

PROVIDER_NAME = "postcodes.io"


def _finite(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class PostcodesIoResolver:
    """Resolve a normalized postcode to its centroid. Not cached; one call per miss."""

    def __init__(self, client: httpx.AsyncClient, base_url: str = "https://api.postcodes.io") -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")

    async def resolve(self, postcode: str) -> Centroid:
        url = f"{self._base_url}/postcodes/{quote(postcode, safe='')}"
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            log_upstream_failure(PROVIDER_NAME, postcode, "transport", None)
            raise UpstreamUnavailable("Postcode lookup is unavailable right now.") from e

        if response.status_code == 404:
            raise NotFound("Postcode not found. Please enter a valid UK postcode.")
        if not response.is_success:
            log_upstream_failure(PROVIDER_NAME, postcode, "http_status", response.status_code)
            raise UpstreamUnavailable(
                f"Postcode lookup is unavailable right now (HTTP {response.status_code})."
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamUnavailable("Postcode lookup returned an invalid response.") from e

        result = payload.get("result") if isinstance(payload, dict) else None
        if not isinstance(result, dict):
            result = {}
        lat = _finite(result.get("latitude"))
        lng = _finite(result.get("longitude"))
        if lat is None or lng is None:
            log_upstream_failure(PROVIDER_NAME, postcode, "missing_coordinates", response.status_code)
            raise UpstreamUnavailable("Postcode lookup did not return coordinates.")
        logger.debug("Resolved %s to (%s, %s)", postcode, lat, lng)
        return Centroid(lat=lat, lng=lng)
