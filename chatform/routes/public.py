# /chatform/routes/public.py

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from prometheus_client import generate_latest

from chatform.config.settings import settings
from chatform.models.api import APIResponse
from chatform.services.session_service import session_service

# Public endpoints: service info, health checks and Prometheus metrics.

router = APIRouter()

@router.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Chat Form Engine",
        "version": "1.0.0",
        "status": "operational",
        "environment": settings.environment
    }

@router.get("/health", summary="Basic Health Check")
async def health_check():
    """Basic health check for load balancers."""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc)}

@router.get(f"/api/{settings.api_version}/templates", response_model=APIResponse, tags=["Templates"])
async def list_templates():
    """Names of the templates conversations can be started from."""
    return APIResponse(
        success=True,
        message="Templates retrieved",
        data={"templates": session_service.template_names()},
        version=settings.api_version
    )

@router.get("/metrics", tags=["Monitoring"])
async def metrics():
    """Prometheus metrics endpoint."""
    return PlainTextResponse(generate_latest(), media_type="text/plain")
