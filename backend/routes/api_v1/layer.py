"""GET layer: cached map layer per (postcode, metric) with conditional GET."""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Response

from core.dependencies import get_handler_deps
from routes.handlers import HandlerDeps, LayerRequest, handle_layer
from routes.responses import to_fastapi_response

router = APIRouter(tags=["layers"])


@router.get(
    "/layer",
    summary="Get metric layer for a postcode",
    description=(
        "Returns the cached layer (hydrating crime on a miss). Supports If-None-Match; "
        "sets ETag, Cache-Control, X-Data-Version, X-Data-Stale and Last-Modified."
    ),
)
async def get_layer(
    postcode: Optional[str] = Query(None, description="UK postcode"),
    metric: Optional[str] = Query(None, description="crime | price | flood"),
    if_none_match: Optional[str] = Header(None),
    deps: HandlerDeps = Depends(get_handler_deps),
) -> Response:
    """GET /api/layer?postcode=..&metric=.. -> 200 layer JSON, 304, or {error}."""
    result = await handle_layer(
        LayerRequest(postcode=postcode, metric=metric, if_none_match=if_none_match),
        deps,
    )
    return to_fastapi_response(result)
