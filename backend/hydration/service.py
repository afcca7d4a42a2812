"""
Request-path hydration: opens a privileged (writer) session per hydration and
coalesces concurrent misses for the same (postcode, metric).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from core.database import DatabaseManager
from core.time_utils import utc_now
from providers.base import CrimeFeedFetcher, GeocodingResolver

from .cache_store import CacheStore
from .orchestrator import DEFAULT_TTL_SECONDS, HydrationOrchestrator
from .schema import HydrationResult
from .single_flight import SingleFlight

logger = logging.getLogger(__name__)


class HydrationService:
    """Hydrates crime data on demand using the writer database."""

    def __init__(
        self,
        write_manager: DatabaseManager,
        resolver: GeocodingResolver,
        fetcher: CrimeFeedFetcher,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        single_flight: Optional[SingleFlight] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._write_manager = write_manager
        self._resolver = resolver
        self._fetcher = fetcher
        self._ttl_seconds = ttl_seconds
        self._single_flight = single_flight
        self._clock = clock

    async def hydrate_crime(self, postcode: str) -> HydrationResult:
        if self._single_flight is None:
            return await self._hydrate(postcode)
        key = (postcode, "crime")
        if self._single_flight.in_flight(key):
            logger.info("Joining in-flight hydration for %s", postcode)
        return await self._single_flight.run(key, lambda: self._hydrate(postcode))

    async def _hydrate(self, postcode: str) -> HydrationResult:
        async with self._write_manager.session() as session:
            orchestrator = HydrationOrchestrator(
                self._resolver,
                self._fetcher,
                CacheStore(session),
                ttl_seconds=self._ttl_seconds,
                clock=self._clock,
            )
            return await orchestrator.hydrate(postcode)
