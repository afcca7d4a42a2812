"""Postcode and metric key normalisation for cache lookups."""

from __future__ import annotations

import re
from typing import Optional

from core.errors import InputInvalid

METRIC_IDS = ("crime", "price", "flood")

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_postcode(raw: str) -> str:
    """Uppercase, collapse whitespace runs to one space, trim. Idempotent."""
    return _WHITESPACE_RE.sub(" ", raw.upper()).strip()


def require_postcode(raw: Optional[str]) -> str:
    if raw is None:
        raise InputInvalid("Postcode is required.")
    postcode = normalize_postcode(raw)
    if not postcode:
        raise InputInvalid("Postcode is required.")
    return postcode


def parse_metric(raw: Optional[str]) -> str:
    metric = (raw or "").strip().lower()
    if metric not in METRIC_IDS:
        raise InputInvalid("Metric must be one of: crime, price, flood.")
    return metric
