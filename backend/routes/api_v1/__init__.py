"""Read endpoints for snapshots and metric layers.

Mounted under /api (path used by the web client) and /api/v1.
"""

from fastapi import APIRouter

from .layer import router as layer_router
from .snapshot import router as snapshot_router


def _build_router(prefix: str) -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(snapshot_router)
    router.include_router(layer_router)
    return router


api_router = _build_router("/api")
api_v1_router = _build_router("/api/v1")
