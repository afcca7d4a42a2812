"""
Batch crime sync: refresh the crime layer (and the crime summary in the
snapshot) for every stored postcode, one postcode at a time.

A sync run row is created as ``running`` and finalized exactly once:
``success`` (no provider issues), ``partial`` (some postcodes rate-limited or
errored) or ``failed`` (uncaught exception, recorded then re-raised). Success
and partial both commit a new dataset version for the metric.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import HydrationError, RateLimited, UpstreamError
from core.time_utils import add_seconds, iso_date, to_iso, utc_now
from hydration.cache_store import CacheStore
from hydration.features import CRIME_SOURCE_NAME, build_crime_layer, unavailable_layer
from hydration.merge import merge_snapshot, read_centroid
from hydration.orchestrator import DEFAULT_TTL_SECONDS
from hydration.schema import Centroid
from ops.ops_events import log_sync_run_end, log_sync_run_start
from providers.base import CrimeFeedFetcher, GeocodingResolver
from repositories.dataset_version_repo import DatasetVersionRepository
from repositories.sync_run_repo import SyncRunRepository

logger = logging.getLogger(__name__)

METRIC = "crime"
CENTROID_MISSING_REASON = "Snapshot centroid is missing. Cannot build crime layer cache."
RATE_LIMITED_REASON = "Live crime provider rate-limited the sync run. Last cached data may be stale."


def sync_dataset_version(started_at: datetime) -> str:
    return f"crime-{iso_date(started_at)}"


def provider_error_reason(error: UpstreamError) -> str:
    if error.upstream_status is None:
        return "Live crime provider is unavailable."
    return f"Live crime provider is unavailable (HTTP {error.upstream_status})."


async def _centroid_for(
    postcode: str,
    payload: Dict[str, Any],
    resolver: GeocodingResolver,
) -> Optional[Centroid]:
    """Stored centroid when usable, else a fresh lookup; None when both fail."""
    centroid = read_centroid(payload)
    if centroid is not None:
        return centroid
    try:
        return await resolver.resolve(postcode)
    except HydrationError as e:
        logger.warning("Centroid lookup failed for %s during sync: %s", postcode, e.message)
        return None


async def run_crime_sync(
    session: AsyncSession,
    resolver: GeocodingResolver,
    fetcher: CrimeFeedFetcher,
    *,
    ttl_seconds: int = DEFAULT_TTL_SECONDS,
    pause_seconds: float = 0.0,
    clock: Callable[[], datetime] = utc_now,
) -> Dict[str, Any]:
    """
    Run one sync over every stored snapshot using a writer session.
    Returns a summary dict: run_id, status, dataset_version, records_upserted,
    rate_limited_count, error_count.
    """
    started_at = clock()
    dataset_version = sync_dataset_version(started_at)
    runs = SyncRunRepository(session)
    store = CacheStore(session)

    run = await runs.create_running(METRIC, started_at)
    run_id = run.id
    await session.commit()
    log_sync_run_start(run_id, METRIC, dataset_version)

    records_upserted = 0
    rate_limited_count = 0
    error_count = 0

    try:
        snapshots = await store.list_snapshots()
        for position, snapshot in enumerate(snapshots):
            if position and pause_seconds > 0:
                await asyncio.sleep(pause_seconds)

            postcode = snapshot.postcode
            fetched_at = clock()
            expires_at = add_seconds(fetched_at, ttl_seconds)

            centroid = await _centroid_for(postcode, snapshot.payload, resolver)
            if centroid is None:
                await store.upsert_layer(
                    postcode,
                    METRIC,
                    unavailable_layer(METRIC, postcode, CENTROID_MISSING_REASON),
                    dataset_version,
                    fetched_at,
                    expires_at,
                )
                records_upserted += 1
                continue

            try:
                records = await fetcher.fetch_incidents(centroid)
            except RateLimited:
                rate_limited_count += 1
                layer = unavailable_layer(METRIC, postcode, RATE_LIMITED_REASON)
                await store.upsert_layer(postcode, METRIC, layer, dataset_version, fetched_at, expires_at)
                records_upserted += 1
                continue
            except UpstreamError as e:
                error_count += 1
                layer = unavailable_layer(METRIC, postcode, provider_error_reason(e))
                await store.upsert_layer(postcode, METRIC, layer, dataset_version, fetched_at, expires_at)
                records_upserted += 1
                continue

            build = build_crime_layer(postcode, records, fetched_at)
            await store.upsert_layer(postcode, METRIC, build.layer, dataset_version, fetched_at, expires_at)
            merged = merge_snapshot(snapshot.payload, build.crime_metric, centroid, postcode)
            await store.upsert_snapshot(postcode, merged, fetched_at)
            records_upserted += 1

        completed_at = clock()
        status = "partial" if rate_limited_count or error_count else "success"
        await DatasetVersionRepository(session).commit_version(
            METRIC,
            dataset_version,
            CRIME_SOURCE_NAME,
            ttl_seconds,
            last_synced_at=completed_at,
            next_sync_after=add_seconds(completed_at, ttl_seconds),
        )
        await runs.finalize(
            run_id,
            status=status,
            completed_at=completed_at,
            records_upserted=records_upserted,
            rate_limited_count=rate_limited_count,
            error_count=error_count,
        )
        await session.commit()
    except Exception as e:
        await session.rollback()
        await runs.finalize(
            run_id,
            status="failed",
            completed_at=clock(),
            records_upserted=records_upserted,
            rate_limited_count=rate_limited_count,
            error_count=error_count,
            error_message=getattr(e, "message", None) or str(e),
        )
        await session.commit()
        log_sync_run_end(run_id, "failed", records_upserted, rate_limited_count, error_count)
        raise

    log_sync_run_end(run_id, status, records_upserted, rate_limited_count, error_count)
    return {
        "run_id": run_id,
        "status": status,
        "dataset_version": dataset_version,
        "records_upserted": records_upserted,
        "rate_limited_count": rate_limited_count,
        "error_count": error_count,
    }


async def sync_status(session: AsyncSession, limit: int = 5) -> Dict[str, Any]:
    """Current crime dataset version and the most recent sync runs (newest first)."""
    version = await DatasetVersionRepository(session).get(METRIC)
    runs = await SyncRunRepository(session).list_recent(METRIC, limit=limit)
    return {
        "dataset_version": version.version if version else None,
        "next_sync_after": to_iso(version.next_sync_after) if version else None,
        "recent_runs": [
            {
                "run_id": run.id,
                "status": run.status,
                "started_at": to_iso(run.started_at),
                "records_upserted": run.records_upserted,
                "rate_limited_count": run.rate_limited_count,
                "error_count": run.error_count,
            }
            for run in runs
        ],
    }
