"""
Prometheus scrape endpoint (GET /metrics).

Exposes the default registry: HTTP RED metrics plus classification, agent,
inference and batch counters from worship_assistant.core.metrics.
"""
from fastapi import APIRouter, Response

from worship_assistant.core.logging import get_logger
from worship_assistant.core.metrics import get_metrics, get_metrics_content_type

logger = get_logger(__name__)
router = APIRouter()


@router.get("")
async def metrics() -> Response:
    """Prometheus text exposition; no authentication."""
    payload = get_metrics()
    logger.debug("metrics_scraped", bytes=len(payload))
    return Response(content=payload, media_type=get_metrics_content_type())
