"""
Crime feed fetcher backed by data.police.uk street-level crimes.
GET {base}/crimes-street/all-crime?lat=..&lng=.. -> list of incident records.
429 is surfaced as RateLimited with the provider's Retry-After; no retries here.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

import httpx

from core.errors import DEFAULT_RETRY_AFTER_SECONDS, RateLimited, UpstreamError
from hydration.schema import Centroid
from ops.ops_events import log_upstream_failure

from .base import RawCrimeRecord

_LEADING_INT = re.compile(r"\s*\+?(\d+)")

logger = logging.getLogger(__name__)

PROVIDER_NAME = "data.police.uk"
SOURCE_NAME = "UK Police Data"


def parse_retry_after(value: Optional[str]) -> int:
    """Seconds from the leading digits of a Retry-After header; 60 when there are none or they are zero."""
    match = _LEADING_INT.match(value or "")
    if match is None:
        return DEFAULT_RETRY_AFTER_SECONDS
    seconds = int(match.group(1))
    return seconds if seconds > 0 else DEFAULT_RETRY_AFTER_SECONDS


class PoliceUkCrimeFetcher:
    """Fetch raw incidents around a centroid."""

    def __init__(self, client: httpx.AsyncClient, base_url: str = "https://data.police.uk/api") -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")

    async def fetch_incidents(self, centroid: Centroid) -> List[RawCrimeRecord]:
        url = f"{self._base_url}/crimes-street/all-crime"
        params = {"lat": str(centroid.lat), "lng": str(centroid.lng)}
        location = f"{centroid.lat},{centroid.lng}"
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as e:
            log_upstream_failure(PROVIDER_NAME, location, "transport", None)
            raise UpstreamError("Live crime data is temporarily unavailable. Please try again shortly.") from e

        if response.status_code == 429:
            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            log_upstream_failure(PROVIDER_NAME, location, "rate_limited", 429)
            raise RateLimited(
                "Live crime data provider is temporarily rate-limiting requests. "
                f"Please try again in {retry_after} seconds.",
                retry_after_seconds=retry_after,
            )
        if not response.is_success:
            log_upstream_failure(PROVIDER_NAME, location, "http_status", response.status_code)
            raise UpstreamError(
                f"Live crime data provider is unavailable (HTTP {response.status_code}).",
                upstream_status=response.status_code,
            )

        try:
            records = response.json()
        except ValueError as e:
            raise UpstreamError("Live crime data provider returned an invalid response.") from e
        if not isinstance(records, list):
            logger.warning("Crime feed returned %s instead of a list; treating as empty", type(records).__name__)
            return []
        return [r for r in records if isinstance(r, dict)]
