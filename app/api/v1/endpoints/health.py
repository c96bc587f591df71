"""
Health check endpoint for monitoring and diagnostics.
"""
from fastapi import APIRouter

from app.core.config import settings

router = APIRouter()


@router.get("/health")
def health_check():
    """
    Liveness check. The auditor holds no external connections, so a response
    means the service is ready.

    Returns:
        {
            "ok": true,
            "environment": "development",
            "version": "1.0.0"
        }
    """
    return {
        "ok": True,
        "environment": settings.APP_ENV,
        "version": settings.APP_VERSION,
    }
