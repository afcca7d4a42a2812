"""
CLI for the batch crime layer sync.
Usage: python tools/sync_crime_layer.py [--pause-seconds 1.5]
Exit 0 on success or partial, 1 when the run failed.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add backend to path when run from repo root
_backend = Path(__file__).resolve().parent.parent / "backend"
if str(_backend) not in sys.path:
    sys.path.insert(0, str(_backend))

import models  # noqa: F401 - register models
from core.config import get_settings
from core.database import dispose_database, get_database_manager, get_write_database_manager, init_database
from core.errors import ConfigurationError
from core.logging import setup_logging
from providers.http import build_http_client
from providers.police_uk import PoliceUkCrimeFetcher
from providers.postcodes_io import PostcodesIoResolver
from runner.crime_sync_runner import run_crime_sync, sync_status

logger = logging.getLogger("tools.sync_crime_layer")


async def _main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Refresh the crime layer cache for every stored postcode")
    parser.add_argument(
        "--pause-seconds",
        type=float,
        default=settings.sync_pause_seconds,
        help="Pause between postcodes (default: SYNC_PAUSE_SECONDS)",
    )
    args = parser.parse_args()
    setup_logging(settings)

    if not settings.database_write_url:
        raise ConfigurationError("DATABASE_WRITE_URL (or HYDRATION_ENABLED) is required for the sync job.")

    await init_database(settings.database_url, settings.database_write_url)
    client = build_http_client(settings)
    try:
        write_manager = get_write_database_manager()
        if settings.database_write_url.startswith("sqlite"):
            await write_manager.create_schema()
        async with write_manager.session() as session:
            summary = await run_crime_sync(
                session,
                PostcodesIoResolver(client, settings.geocoder_base_url),
                PoliceUkCrimeFetcher(client, settings.crime_feed_base_url),
                ttl_seconds=settings.layer_cache_ttl_seconds,
                pause_seconds=max(0.0, args.pause_seconds),
            )
        async with get_database_manager().session() as session:
            status = await sync_status(session)
    except Exception:
        logger.exception("Crime layer sync failed")
        return 1
    finally:
        await client.aclose()
        await dispose_database()

    print(f"Crime layer sync completed with status={summary['status']}.")
    print(
        f"Rows upserted: {summary['records_upserted']}; "
        f"rate limited: {summary['rate_limited_count']}; errors: {summary['error_count']}."
    )
    print(f"Current dataset version: {status['dataset_version']} (next sync after {status['next_sync_after']}).")
    for run in status["recent_runs"]:
        print(
            f"  run {run['run_id']} {run['status']} at {run['started_at']}: "
            f"{run['records_upserted']} upserted, {run['rate_limited_count']} rate limited, {run['error_count']} errors"
        )
    return 0


def main() -> None:
    sys.exit(asyncio.run(_main()))


if __name__ == "__main__":
    main()
