"""
API v1 router.
"""
from fastapi import APIRouter

from app.api.v1.endpoints import audit, firewall, health, ports

api_router = APIRouter()

# Health check endpoint (no prefix, so it's /api/v1/health)
api_router.include_router(health.router, tags=["health"])

api_router.include_router(audit.router, prefix="/audit", tags=["audit"])
api_router.include_router(ports.router, prefix="/ports", tags=["ports"])
api_router.include_router(firewall.router, prefix="/firewall", tags=["firewall"])
