"""Shared async HTTP client for upstream providers."""

from __future__ import annotations

import httpx

from core.config import Settings

USER_AGENT = "postcode-layer-cache/0.1 (+https://github.com/)"


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """One pooled client per process; every call carries the configured timeout."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.upstream_timeout_seconds),
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        follow_redirects=True,
    )
