"""Hydration orchestrator and service against in-memory SQLite and mocked upstreams."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from core.errors import NotFound, PersistenceFailure, RateLimited
from hydration.cache_store import CacheStore
from hydration.orchestrator import HydrationOrchestrator, HydrationState
from hydration.service import HydrationService
from hydration.single_flight import SingleFlight
from providers.police_uk import PoliceUkCrimeFetcher
from providers.postcodes_io import PostcodesIoResolver
from runner.seed_runner import seed_snapshots

NOW = datetime(2024, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


def _providers(client):
    return PostcodesIoResolver(client), PoliceUkCrimeFetcher(client)


@pytest.mark.asyncio
async def test_hydrate_writes_snapshot_and_layer(db_manager, mock_http, upstream, make_crime_records) -> None:
    records = make_crime_records({"anti-social-behaviour": 80, "violent-crime": 62}, month="2023-11")
    resolver, fetcher = _providers(mock_http(upstream(crimes=records)))

    async with db_manager.session() as session:
        orchestrator = HydrationOrchestrator(resolver, fetcher, CacheStore(session), clock=lambda: NOW)
        result = await orchestrator.hydrate("SW1A 1AA")

    assert result.states == [
        HydrationState.MISS.value,
        HydrationState.RESOLVING_CENTROID.value,
        HydrationState.FETCHING_FEED.value,
        HydrationState.NORMALIZING.value,
        HydrationState.MERGING.value,
        HydrationState.PERSISTING.value,
        HydrationState.DONE.value,
    ]
    assert result.dataset_version == "crime-2023-11"
    assert result.fetched_at == NOW
    assert result.expires_at == NOW + timedelta(days=1)
    assert result.snapshot.metrics.crime.total_incidents == 142

    async with db_manager.session() as session:
        store = CacheStore(session)
        snapshot = await store.get_snapshot("SW1A 1AA")
        layer = await store.get_layer("SW1A 1AA", "crime")
    assert snapshot is not None and layer is not None
    assert snapshot.payload["metrics"]["crime"]["total_incidents"] == 142
    assert snapshot.payload["centroid"] == {"lat": 51.501, "lng": -0.141}
    assert layer.payload.status == "available"
    assert len(layer.payload.features) == 142
    assert layer.dataset_version == "crime-2023-11"


@pytest.mark.asyncio
async def test_hydrate_merges_into_existing_snapshot(db_manager, mock_http, upstream, make_crime_records) -> None:
    async with db_manager.session() as session:
        await seed_snapshots(session, now=NOW)

    resolver, fetcher = _providers(mock_http(upstream(crimes=make_crime_records({"drugs": 3}))))
    async with db_manager.session() as session:
        await HydrationOrchestrator(resolver, fetcher, CacheStore(session), clock=lambda: NOW).hydrate("SW1A 1AA")

    async with db_manager.session() as session:
        snapshot = await CacheStore(session).get_snapshot("SW1A 1AA")
    metrics = snapshot.payload["metrics"]
    assert metrics["crime"]["total_incidents"] == 3
    assert metrics["crime"]["trend"] == "down"
    assert metrics["price"] == {
        "median_value": 1250000,
        "trend": "up",
        "property_type": "Flat",
        "last_updated": "2023-10",
    }
    assert metrics["flood"]["primary_source"] == "Surface Water"


@pytest.mark.asyncio
async def test_geocode_not_found_writes_nothing(db_manager, mock_http, upstream) -> None:
    calls = []
    resolver, fetcher = _providers(mock_http(upstream(geocode_status=404, calls=calls)))
    async with db_manager.session() as session:
        with pytest.raises(NotFound):
            await HydrationOrchestrator(resolver, fetcher, CacheStore(session)).hydrate("ZZ9 9ZZ")

    assert calls == ["/postcodes/ZZ9 9ZZ"]
    async with db_manager.session() as session:
        assert await CacheStore(session).get_snapshot("ZZ9 9ZZ") is None
        assert await CacheStore(session).get_layer("ZZ9 9ZZ", "crime") is None


@pytest.mark.asyncio
async def test_rate_limit_propagates_without_writes(db_manager, mock_http, upstream) -> None:
    resolver, fetcher = _providers(
        mock_http(upstream(crime_status=429, crime_headers={"Retry-After": "75"}))
    )
    async with db_manager.session() as session:
        with pytest.raises(RateLimited) as exc:
            await HydrationOrchestrator(resolver, fetcher, CacheStore(session)).hydrate("SW1A 1AA")
    assert exc.value.retry_after_seconds == 75
    async with db_manager.session() as session:
        assert await CacheStore(session).get_layer("SW1A 1AA", "crime") is None


@pytest.mark.asyncio
async def test_failed_layer_write_keeps_snapshot(db_manager, mock_http, upstream, make_crime_records) -> None:
    resolver, fetcher = _providers(mock_http(upstream(crimes=make_crime_records({"drugs": 2}))))
    async with db_manager.session() as session:
        store = CacheStore(session)

        async def fail_layer(*args, **kwargs):
            raise PersistenceFailure("Failed to persist crime layer data.")

        store.upsert_layer = fail_layer
        with pytest.raises(PersistenceFailure):
            await HydrationOrchestrator(resolver, fetcher, store, clock=lambda: NOW).hydrate("SW1A 1AA")

    async with db_manager.session() as session:
        assert await CacheStore(session).get_snapshot("SW1A 1AA") is not None
        assert await CacheStore(session).get_layer("SW1A 1AA", "crime") is None


@pytest.mark.asyncio
async def test_service_coalesces_concurrent_misses(db_manager, mock_http, upstream, make_crime_records) -> None:
    calls = []
    resolver, fetcher = _providers(
        mock_http(upstream(crimes=make_crime_records({"drugs": 4}), calls=calls))
    )
    service = HydrationService(db_manager, resolver, fetcher, single_flight=SingleFlight(), clock=lambda: NOW)

    first, second = await asyncio.gather(
        service.hydrate_crime("SW1A 1AA"),
        service.hydrate_crime("SW1A 1AA"),
    )
    assert first is second
    assert calls.count("/postcodes/SW1A 1AA") == 1
