"""Translate framework-free handler responses into FastAPI responses."""

from __future__ import annotations

from fastapi import Response
from fastapi.responses import JSONResponse

from .handlers import HandlerResponse


def to_fastapi_response(result: HandlerResponse) -> Response:
    if result.body is None:
        return Response(status_code=result.status_code, headers=result.headers)
    return JSONResponse(content=result.body, status_code=result.status_code, headers=result.headers)
