"""
Health check endpoints.

Provides endpoints for monitoring application health and readiness.
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from shared.config import get_settings
from ..dependencies import get_container

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    document_store: str
    video_platform: str
    payment_gateway: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the API is running.
    """
    return HealthResponse(status="healthy", version=get_settings().app_version)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(container=Depends(get_container)) -> ReadinessResponse:
    """
    Readiness check endpoint.

    Reports which backing services are configured. Video and payments are
    optional; the document store is not.
    """
    try:
        store = container.document_store
    except Exception as e:
        logger.error(f"Document store unavailable: {e}")
        store = None
    store_status = get_settings().document_store if store is not None else "unavailable"

    return ReadinessResponse(
        status="ready" if store_status != "unavailable" else "not_ready",
        document_store=store_status,
        video_platform="configured" if container.video is not None else "not_configured",
        payment_gateway="configured" if container.payments is not None else "not_configured",
    )
