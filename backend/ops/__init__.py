"""Operational logging: structured ops events."""

from .ops_events import (
    log_hydration_end,
    log_hydration_start,
    log_sync_run_end,
    log_sync_run_start,
    log_upstream_failure,
)

__all__ = [
    "log_hydration_end",
    "log_hydration_start",
    "log_sync_run_end",
    "log_sync_run_start",
    "log_upstream_failure",
]
