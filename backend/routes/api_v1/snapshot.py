"""GET snapshot: aggregate per-postcode record."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from core.dependencies import get_handler_deps
from routes.handlers import HandlerDeps, SnapshotRequest, handle_snapshot
from routes.responses import to_fastapi_response

router = APIRouter(tags=["snapshots"])


@router.get(
    "/snapshot",
    summary="Get snapshot for a postcode",
    description="Returns the stored snapshot, hydrating it on a miss when writes are configured.",
)
async def get_snapshot(
    postcode: Optional[str] = Query(None, description="UK postcode"),
    deps: HandlerDeps = Depends(get_handler_deps),
) -> Response:
    """GET /api/snapshot?postcode=.. -> snapshot JSON or {error}."""
    result = await handle_snapshot(SnapshotRequest(postcode=postcode), deps)
    return to_fastapi_response(result)
