"""
System status endpoint: privilege state and profile directory access.
"""
import logging
from fastapi import APIRouter, Depends

from ufwprofile.api.v1.endpoints.profiles import get_ufw_service
from ufwprofile.schemas.profile import SystemStatusResponse
from ufwprofile.services.ufw_service import UfwService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/status", response_model=SystemStatusResponse)
def system_status(service: UfwService = Depends(get_ufw_service)):
    """
    Report how the server process runs and whether profiles can be written.
    """
    running_as = service.context.check()
    writable = service.check_write_permission()
    detail = None
    if not writable:
        detail = (
            f"{service.settings.UFW_BINARY} is missing or "
            f"{service.settings.APPLICATIONS_DIR} is not writable"
        )
    return SystemStatusResponse(
        running_as=running_as.value,
        ufw_binary=service.settings.UFW_BINARY,
        applications_dir=service.settings.APPLICATIONS_DIR,
        writable=writable,
        detail=detail,
    )
