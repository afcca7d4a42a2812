"""External data providers: geocoding (postcodes.io) and crime feed (data.police.uk)."""

from .base import CrimeFeedFetcher, GeocodingResolver, RawCrimeRecord
from .police_uk import PoliceUkCrimeFetcher, parse_retry_after
from .postcodes_io import PostcodesIoResolver

__all__ = [
    "CrimeFeedFetcher",
    "GeocodingResolver",
    "PoliceUkCrimeFetcher",
    "PostcodesIoResolver",
    "RawCrimeRecord",
    "parse_retry_after",
]
