"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint.

    Exposes unit_latency_ms{kind, name, outcome} and
    unit_errors_total{kind, name, phase} for extractors and documents.
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
