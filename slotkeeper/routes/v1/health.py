# slotkeeper/routes/v1/health.py
"""
Health check and Prometheus exposition endpoints.
"""

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Response

from ... import __version__
from ...core.config import settings
from ...monitoring.prometheus_metrics import prometheus_metrics
from ...schemas._strict_base import StrictModel

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(StrictModel):
    status: str
    service: str
    version: str
    environment: str
    timestamp: str


@router.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        service="slotkeeper-api",
        version=__version__,
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )


@router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )
