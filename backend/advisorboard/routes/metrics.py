"""
Prometheus metrics endpoint.

GET /metrics
Returns Prometheus-formatted metrics for scraping.
"""
from fastapi import APIRouter, Response
from fastapi.responses import PlainTextResponse

from advisorboard.core.metrics import get_metrics, get_metrics_content_type

router = APIRouter()


@router.get("", response_class=PlainTextResponse)
async def metrics():
    """
    Prometheus metrics endpoint.

    No authentication required (standard Prometheus practice).
    """
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type(),
    )
