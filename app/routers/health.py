"""
Health check endpoint.
"""
from fastapi import APIRouter
from datetime import datetime
import logging

from app.config import settings
from app.models.schemas import HealthCheckResponse
from app.services.segmentation import segment

logger = logging.getLogger(__name__)

router = APIRouter()

_PROBE_TEXT = "# Health\nThe segmentation engine is able to split this text."


@router.get("/", response_model=HealthCheckResponse)
async def health_check():
    """
    Health check endpoint to verify system status.

    Returns:
        HealthCheckResponse with status of the segmentation engine and
        whether Gemini is configured
    """
    segmentation_status = "ok"
    try:
        if not segment(_PROBE_TEXT):
            segmentation_status = "error"
    except Exception as e:
        logger.error(f"Segmentation health check failed: {e}")
        segmentation_status = "error"

    gemini_status = "configured" if settings.gemini_configured else "not-configured"

    # Gemini is optional: without it extraction falls back to pattern matching
    overall_status = "healthy"
    if segmentation_status != "ok":
        overall_status = "unhealthy"
    elif gemini_status != "configured":
        overall_status = "degraded"

    return HealthCheckResponse(
        status=overall_status,
        segmentation=segmentation_status,
        gemini=gemini_status,
        timestamp=datetime.utcnow()
    )
