from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hydration.cache_store import CacheStore
from hydration.service import HydrationService
from routes.handlers import HandlerDeps

from .config import get_settings
from .database import get_database_manager
from .errors import ConfigurationError


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a reader AsyncSession from the DatabaseManager."""
    if not get_settings().database_url:
        raise ConfigurationError("Internal Server Configuration Error")
    try:
        manager = get_database_manager()
    except RuntimeError as e:
        raise ConfigurationError("Internal Server Configuration Error") from e
    async with manager.session() as session:
        yield session


def get_hydration_service(request: Request) -> Optional[HydrationService]:
    """Hydration service built at startup, or None when no write URL is configured."""
    return getattr(request.app.state, "hydration_service", None)


async def get_handler_deps(
    session: AsyncSession = Depends(get_db_session),
    hydrator: Optional[HydrationService] = Depends(get_hydration_service),
) -> HandlerDeps:
    """Bundle the reader store and optional hydrator for the request handlers."""
    return HandlerDeps(store=CacheStore(session), hydrator=hydrator)
