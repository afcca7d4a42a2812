"""HTTP caching helpers: weak ETags, conditional matching, and Cache-Control policy."""

from __future__ import annotations

import hashlib
from datetime import datetime
from typing import Optional

from core.time_utils import ensure_utc, to_iso

FRESH_LAYER_CACHE_CONTROL = "public, max-age=300, s-maxage=3600, stale-while-revalidate=86400"
STALE_LAYER_CACHE_CONTROL = "public, max-age=60, s-maxage=60, stale-while-revalidate=300"
SNAPSHOT_CACHE_CONTROL = "public, s-maxage=3600, stale-while-revalidate=86400"
PLACEHOLDER_CACHE_CONTROL = "public, s-maxage=3600, stale-while-revalidate=86400"
NOT_READY_CACHE_CONTROL = "public, max-age=60"
NOT_FOUND_CACHE_CONTROL = "public, max-age=300"
RATE_LIMITED_CACHE_CONTROL = "public, max-age=30, s-maxage=30"
UPSTREAM_FAILURE_CACHE_CONTROL = "public, max-age=60"
NO_STORE = "no-store"


def layer_etag(metric: str, postcode: str, dataset_version: str, fetched_at: datetime) -> str:
    """Weak ETag over the identity of one cached layer generation."""
    material = "|".join((metric, postcode, dataset_version, to_iso(fetched_at)))
    digest = hashlib.sha256(material.encode("utf-8")).hexdigest()[:32]
    return f'W/"{digest}"'


def _opaque(tag: str) -> str:
    tag = tag.strip()
    if tag.startswith("W/"):
        tag = tag[2:]
    return tag


def etag_matches(if_none_match: Optional[str], etag: str) -> bool:
    """Weak comparison against an If-None-Match list (``*`` matches anything)."""
    if not if_none_match:
        return False
    if if_none_match.strip() == "*":
        return True
    target = _opaque(etag)
    return any(_opaque(candidate) == target for candidate in if_none_match.split(",") if candidate.strip())


def is_stale(expires_at: datetime, now: datetime) -> bool:
    return ensure_utc(now) > ensure_utc(expires_at)


def layer_cache_control(stale: bool) -> str:
    return STALE_LAYER_CACHE_CONTROL if stale else FRESH_LAYER_CACHE_CONTROL
