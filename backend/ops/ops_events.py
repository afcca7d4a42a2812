"""
Structured ops events for hydration, upstream failures, and sync runs.
Log-level + structured event dict; keys are sorted so lines are stable to grep.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

OPS_LOGGER_NAME = "ops_events"


def _logger() -> logging.Logger:
    return logging.getLogger(OPS_LOGGER_NAME)


def _event(event_type: str, level: int = logging.INFO, **kwargs: Any) -> None:
    """Emit a structured ops event."""
    msg = f"ops_event={event_type} " + " ".join(f"{k}={v!r}" for k, v in sorted(kwargs.items()))
    _logger().log(level, msg, extra={"ops_event_type": event_type, "ops_event": {**kwargs}})


def log_hydration_start(postcode: str, metric: str) -> float:
    """Log hydration start; return start time for duration calculation."""
    _event("hydration_start", postcode=postcode, metric=metric)
    return time.perf_counter()


def log_hydration_end(
    postcode: str,
    metric: str,
    duration_seconds: float,
    states: List[str],
    error: Optional[str] = None,
) -> None:
    """Log hydration end with the visited states and, on failure, the error code."""
    payload: Dict[str, Any] = {
        "postcode": postcode,
        "metric": metric,
        "duration_seconds": round(duration_seconds, 4),
        "states": ">".join(states),
    }
    if error:
        payload["error"] = error
    _event("hydration_end", logging.WARNING if error else logging.INFO, **payload)


def log_upstream_failure(
    provider: str,
    subject: str,
    kind: str,
    status: Optional[int],
) -> None:
    """Log an upstream provider failure (kind: transport, http_status, rate_limited, ...)."""
    _event("upstream_failure", logging.WARNING, provider=provider, subject=subject, kind=kind, status=status)


def log_sync_run_start(run_id: int, metric: str, dataset_version: str) -> None:
    _event("sync_run_start", run_id=run_id, metric=metric, dataset_version=dataset_version)


def log_sync_run_end(
    run_id: int,
    status: str,
    records_upserted: int,
    rate_limited_count: int,
    error_count: int,
) -> None:
    _event(
        "sync_run_end",
        logging.ERROR if status == "failed" else logging.INFO,
        run_id=run_id,
        status=status,
        records_upserted=records_upserted,
        rate_limited_count=rate_limited_count,
        error_count=error_count,
    )
