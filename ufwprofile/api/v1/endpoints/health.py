"""
Health check endpoint for monitoring.
"""
import logging
from fastapi import APIRouter

from ufwprofile.core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Liveness check. Does not touch ufw or the filesystem.

    Returns:
        {
            "ok": true,
            "environment": "<APP_ENV>"
        }
    """
    return {
        "ok": True,
        "environment": settings.APP_ENV,
    }
