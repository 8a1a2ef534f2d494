"""
Health Check Routes

Liveness and readiness endpoints for load balancers and container orchestrators.
"""

import shutil
import logging
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..models import HealthStatus
from ..utils.config import AUDIOWAVEFORM_BIN, SERVICE_NAME

# Set up logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthStatus)
async def basic_health_check():
    """
    Basic health check endpoint

    Returns a static payload so monitors can verify the process is up without
    exercising the waveform pipeline.
    """
    return HealthStatus(status="ok", service=SERVICE_NAME)


@router.get("/health/readiness")
async def readiness_check():
    """
    Readiness check endpoint

    The service can only answer waveform requests when the audiowaveform
    binary is resolvable.
    """
    binary_path = shutil.which(AUDIOWAVEFORM_BIN)
    if binary_path is None:
        logger.warning(f"Readiness check failed: {AUDIOWAVEFORM_BIN} not found")
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "service": SERVICE_NAME,
                "audiowaveform": None
            }
        )

    return {
        "status": "ready",
        "service": SERVICE_NAME,
        "audiowaveform": binary_path
    }
