"""
Hydration orchestrator: cache miss -> centroid -> crime feed -> layer + merged
snapshot -> two independent upserts.

MISS > RESOLVING_CENTROID > FETCHING_FEED > NORMALIZING > MERGING > PERSISTING > DONE
Any typed failure moves to ERROR and is re-raised unchanged. A failed second
upsert leaves the first in place; rerunning the hydration converges.
"""

from __future__ import annotations

import time
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

from core.errors import HydrationError
from core.time_utils import add_seconds, utc_now
from ops.ops_events import log_hydration_end, log_hydration_start
from providers.base import CrimeFeedFetcher, GeocodingResolver

from .cache_store import CacheStore
from .features import build_crime_layer
from .merge import merge_snapshot
from .schema import HydrationResult

DEFAULT_TTL_SECONDS = 24 * 60 * 60


class HydrationState(str, Enum):
    MISS = "MISS"
    RESOLVING_CENTROID = "RESOLVING_CENTROID"
    FETCHING_FEED = "FETCHING_FEED"
    NORMALIZING = "NORMALIZING"
    MERGING = "MERGING"
    PERSISTING = "PERSISTING"
    DONE = "DONE"
    ERROR = "ERROR"


def crime_dataset_version(month: str) -> str:
    return f"crime-{month}"


class HydrationOrchestrator:
    """Runs the crime hydration pipeline for one postcode against one store."""

    def __init__(
        self,
        resolver: GeocodingResolver,
        fetcher: CrimeFeedFetcher,
        store: CacheStore,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._resolver = resolver
        self._fetcher = fetcher
        self._store = store
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    async def hydrate(self, postcode: str) -> HydrationResult:
        """Hydrate snapshot and crime layer for a normalized postcode.

        Raises NotFound, RateLimited, UpstreamError, UpstreamUnavailable or
        PersistenceFailure.
        """
        states: List[str] = [HydrationState.MISS.value]
        started = log_hydration_start(postcode, "crime")
        error: Optional[HydrationError] = None

        def enter(state: HydrationState) -> None:
            states.append(state.value)

        try:
            now = self._clock()

            enter(HydrationState.RESOLVING_CENTROID)
            centroid = await self._resolver.resolve(postcode)

            enter(HydrationState.FETCHING_FEED)
            records = await self._fetcher.fetch_incidents(centroid)

            enter(HydrationState.NORMALIZING)
            build = build_crime_layer(postcode, records, now)
            dataset_version = crime_dataset_version(build.provider_month)
            expires_at = add_seconds(now, self._ttl_seconds)

            enter(HydrationState.MERGING)
            existing = await self._store.get_snapshot(postcode)
            snapshot = merge_snapshot(
                existing.payload if existing is not None else None,
                build.crime_metric,
                centroid,
                postcode,
            )

            enter(HydrationState.PERSISTING)
            await self._store.upsert_snapshot(postcode, snapshot, now)
            await self._store.upsert_layer(
                postcode,
                "crime",
                build.layer,
                dataset_version,
                now,
                expires_at,
            )

            enter(HydrationState.DONE)
            return HydrationResult(
                snapshot=snapshot,
                layer=build.layer,
                dataset_version=dataset_version,
                fetched_at=now,
                expires_at=expires_at,
                states=list(states),
            )
        except HydrationError as e:
            error = e
            enter(HydrationState.ERROR)
            raise
        finally:
            log_hydration_end(
                postcode,
                "crime",
                time.perf_counter() - started,
                states,
                error=error.code if error is not None else None,
            )
