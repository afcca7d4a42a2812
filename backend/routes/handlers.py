"""
Framework-free request handlers for the snapshot and layer endpoints.

Each handler takes a typed request plus explicit dependencies and returns a
typed response; FastAPI routes only translate to and from these types.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Protocol

from core.errors import HydrationError, RateLimited
from core.time_utils import http_date, to_iso, utc_now
from hydration.cache_store import CacheStore
from hydration.features import unavailable_layer
from hydration.postcode import parse_metric, require_postcode
from hydration.schema import CachedLayer, HydrationResult

from .http_cache import (
    NO_STORE,
    NOT_FOUND_CACHE_CONTROL,
    NOT_READY_CACHE_CONTROL,
    PLACEHOLDER_CACHE_CONTROL,
    RATE_LIMITED_CACHE_CONTROL,
    SNAPSHOT_CACHE_CONTROL,
    UPSTREAM_FAILURE_CACHE_CONTROL,
    etag_matches,
    is_stale,
    layer_cache_control,
    layer_etag,
)

logger = logging.getLogger(__name__)

UNAVAILABLE_REASONS = {
    "price": "Property-price map layer is not available yet. We need monthly Land Registry ingest first.",
    "flood": "Flood-risk map layer is not available yet. We need Environment Agency polygon ingest first.",
}
CRIME_NOT_READY_REASON = "Crime layer cache is not ready for this postcode yet. Please try again later."
SNAPSHOT_NOT_READY_MESSAGE = "No snapshot available for this postcode yet."


class CrimeHydrator(Protocol):
    async def hydrate_crime(self, postcode: str) -> HydrationResult:
        ...


@dataclass(frozen=True)
class LayerRequest:
    postcode: Optional[str]
    metric: Optional[str]
    if_none_match: Optional[str] = None


@dataclass(frozen=True)
class SnapshotRequest:
    postcode: Optional[str]


@dataclass
class HandlerResponse:
    status_code: int
    body: Optional[Dict[str, Any]]
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class HandlerDeps:
    """``hydrator`` is None when no write credential is configured."""

    store: CacheStore
    hydrator: Optional[CrimeHydrator] = None
    clock: Callable[[], datetime] = utc_now


def error_response(error: HydrationError) -> HandlerResponse:
    """Map a typed failure to status, body, and headers."""
    body: Dict[str, Any] = {"error": error.message}
    headers: Dict[str, str] = {"Cache-Control": NO_STORE}
    if isinstance(error, RateLimited):
        body["retryAfterSeconds"] = error.retry_after_seconds
        headers = {
            "Retry-After": str(error.retry_after_seconds),
            "Cache-Control": RATE_LIMITED_CACHE_CONTROL,
        }
    elif error.status_code == 404:
        headers["Cache-Control"] = NOT_FOUND_CACHE_CONTROL
    elif error.status_code == 502:
        headers["Cache-Control"] = UPSTREAM_FAILURE_CACHE_CONTROL
    if error.status_code == 500:
        logger.error("Request failed with %s: %s", error.code, error.message)
    return HandlerResponse(status_code=error.status_code, body=body, headers=headers)


def _layer_response(cached: CachedLayer, if_none_match: Optional[str], now: datetime) -> HandlerResponse:
    payload = cached.payload
    stale = is_stale(cached.expires_at, now)
    etag = layer_etag(payload.metric, payload.postcode, cached.dataset_version, cached.fetched_at)
    headers = {
        "ETag": etag,
        "Cache-Control": layer_cache_control(stale),
        "X-Data-Version": cached.dataset_version,
        "X-Data-Stale": "true" if stale else "false",
        "Last-Modified": http_date(cached.fetched_at),
    }
    if etag_matches(if_none_match, etag):
        return HandlerResponse(status_code=304, body=None, headers=headers)

    body = payload.to_json_dict()
    body.update(
        {
            "datasetVersion": cached.dataset_version,
            "cacheFetchedAt": to_iso(cached.fetched_at),
            "cacheExpiresAt": to_iso(cached.expires_at),
            "cacheStale": stale,
        }
    )
    return HandlerResponse(status_code=200, body=body, headers=headers)


async def handle_layer(request: LayerRequest, deps: HandlerDeps) -> HandlerResponse:
    """GET layer?postcode=&metric= with conditional GET and miss hydration for crime."""
    try:
        postcode = require_postcode(request.postcode)
        metric = parse_metric(request.metric)

        cached = await deps.store.get_layer(postcode, metric)
        if cached is None:
            if metric != "crime":
                placeholder = unavailable_layer(metric, postcode, UNAVAILABLE_REASONS[metric])
                return HandlerResponse(
                    status_code=200,
                    body=placeholder.to_json_dict(),
                    headers={"Cache-Control": PLACEHOLDER_CACHE_CONTROL},
                )
            if deps.hydrator is None:
                placeholder = unavailable_layer(metric, postcode, CRIME_NOT_READY_REASON)
                return HandlerResponse(
                    status_code=200,
                    body=placeholder.to_json_dict(),
                    headers={"Cache-Control": NOT_READY_CACHE_CONTROL},
                )
            result = await deps.hydrator.hydrate_crime(postcode)
            cached = result.cached_layer()

        return _layer_response(cached, request.if_none_match, deps.clock())
    except HydrationError as e:
        return error_response(e)


async def handle_snapshot(request: SnapshotRequest, deps: HandlerDeps) -> HandlerResponse:
    """GET snapshot?postcode= returning the stored payload, hydrating on a miss."""
    try:
        postcode = require_postcode(request.postcode)

        cached = await deps.store.get_snapshot(postcode)
        if cached is not None:
            return HandlerResponse(
                status_code=200,
                body=cached.payload,
                headers={"Cache-Control": SNAPSHOT_CACHE_CONTROL},
            )
        if deps.hydrator is None:
            return HandlerResponse(
                status_code=404,
                body={"error": SNAPSHOT_NOT_READY_MESSAGE},
                headers={"Cache-Control": NOT_FOUND_CACHE_CONTROL},
            )
        result = await deps.hydrator.hydrate_crime(postcode)
        return HandlerResponse(
            status_code=200,
            body=result.snapshot.model_dump(mode="json"),
            headers={"Cache-Control": SNAPSHOT_CACHE_CONTROL},
        )
    except HydrationError as e:
        return error_response(e)
