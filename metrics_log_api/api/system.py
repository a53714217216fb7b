from __future__ import annotations

from fastapi import APIRouter, Request, Response


router = APIRouter(tags=["system"])


@router.get("/healthz", include_in_schema=False)
async def healthz() -> Response:
    return Response(status_code=200)


@router.get("/readyz", include_in_schema=False)
async def readyz() -> Response:
    return Response(status_code=200)


@router.get("/metrics", include_in_schema=False)
async def metrics(request: Request) -> Response:
    """Return all counters and histograms in Prometheus text exposition format."""

    payload, content_type = request.app.state.metrics.render()
    return Response(content=payload, media_type=content_type)
