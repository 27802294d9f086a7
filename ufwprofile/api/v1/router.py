"""
API v1 router.
"""
from fastapi import APIRouter

from ufwprofile.api.v1.endpoints import health, profiles, system

api_router = APIRouter()

# Health check endpoint (no prefix, so it's /api/v1/health)
api_router.include_router(health.router, tags=["health"])

api_router.include_router(profiles.router, prefix="/profiles", tags=["profiles"])
api_router.include_router(system.router, prefix="/system", tags=["system"])
