"""Health check endpoints.

Provides endpoints for monitoring service health and readiness.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from catalogue.catalog.registry import get_facet_registry
from catalogue.infrastructure.config import settings
from catalogue.infrastructure.content_client import get_content_client

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    service: str
    version: str
    facet_registry: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check service health.

    Returns:
        Health status with service name, version and facet registry version.
    """
    return HealthResponse(
        status="healthy",
        service="catalogue-browser",
        version=settings.api_version,
        facet_registry=get_facet_registry().version,
    )


@router.get("/ready")
async def readiness_check() -> JSONResponse:
    """Check if service is ready to accept requests.

    Returns:
        Readiness status; 503 when the content service does not answer.
    """
    if await get_content_client().health_check():
        return JSONResponse(content={"status": "ready"})
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "unavailable", "reason": "content service unreachable"},
    )
