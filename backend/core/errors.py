"""
Typed failures for hydration and serving.

Every collaborator failure is classified where it happens and raised as one of
these; only the HTTP surface turns them into status codes and headers.
"""

from __future__ import annotations

from typing import Optional

DEFAULT_RETRY_AFTER_SECONDS = 60


class HydrationError(Exception):
    """Base class for classified failures. ``message`` is safe to show to users."""

    code = "HYDRATION_ERROR"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputInvalid(HydrationError):
    """Malformed or missing postcode/metric. Never retried."""

    code = "INPUT_INVALID"
    status_code = 400


class NotFound(HydrationError):
    """Postcode cannot be resolved by the geocoding provider."""

    code = "NOT_FOUND"
    status_code = 404


class RateLimited(HydrationError):
    """Upstream throttling; retry is the caller's decision."""

    code = "RATE_LIMITED"
    status_code = 429

    def __init__(self, message: str, retry_after_seconds: int = DEFAULT_RETRY_AFTER_SECONDS) -> None:
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class UpstreamUnavailable(HydrationError):
    """Geocoding provider outage or unusable response."""

    code = "UPSTREAM_UNAVAILABLE"
    status_code = 502


class UpstreamError(HydrationError):
    """Crime feed provider returned a non-2xx status (other than 429) or failed in transport."""

    code = "UPSTREAM_ERROR"
    status_code = 502

    def __init__(self, message: str, upstream_status: Optional[int] = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class PersistenceFailure(HydrationError):
    """Cache store read or write fault."""

    code = "PERSISTENCE_FAILURE"
    status_code = 500


class ConfigurationError(HydrationError):
    """Missing or invalid configuration (e.g. store connection)."""

    code = "CONFIGURATION_ERROR"
    status_code = 500
