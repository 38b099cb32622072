"""Prometheus scrape endpoint."""

from fastapi import APIRouter, Response

from narcisse.core.metrics import serialize_metrics

router = APIRouter(prefix="/api/metrics", tags=["Metrics"])


@router.get("")
async def metrics() -> Response:
    body, content_type = serialize_metrics()
    return Response(content=body, media_type=content_type)
