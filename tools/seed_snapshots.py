"""
CLI to upsert the seed snapshots (SW1A 1AA) into the configured store.
Usage: python tools/seed_snapshots.py
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

# Add backend to path when run from repo root
_backend = Path(__file__).resolve().parent.parent / "backend"
if str(_backend) not in sys.path:
    sys.path.insert(0, str(_backend))

import models  # noqa: F401 - register models
from core.config import get_settings
from core.database import dispose_database, get_write_database_manager, init_database
from core.errors import ConfigurationError
from core.logging import setup_logging
from runner.seed_runner import seed_snapshots


async def _main() -> int:
    settings = get_settings()
    setup_logging(settings)
    if not settings.database_write_url:
        raise ConfigurationError("DATABASE_WRITE_URL (or HYDRATION_ENABLED) is required to seed snapshots.")

    await init_database(settings.database_url, settings.database_write_url)
    try:
        write_manager = get_write_database_manager()
        if settings.database_write_url.startswith("sqlite"):
            await write_manager.create_schema()
        async with write_manager.session() as session:
            seeded = await seed_snapshots(session)
    finally:
        await dispose_database()

    print(f"Seeded {len(seeded)} snapshot(s): {', '.join(seeded)}")
    return 0


def main() -> None:
    sys.exit(asyncio.run(_main()))


if __name__ == "__main__":
    main()
