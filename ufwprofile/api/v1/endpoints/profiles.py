"""
Profile endpoints: render profile text, write and apply it with ufw.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status

from ufwprofile.core.auth import APIClient, get_current_api_client
from ufwprofile.core.exceptions import ApplyError
from ufwprofile.schemas.profile import (
    ProfileApplyRequest,
    ProfileApplyResponse,
    ProfileCreate,
    ProfileRenderResponse,
)
from ufwprofile.services.ufw_service import UfwService, create_profile
from ufwprofile.utils.profile_builder import Profile

logger = logging.getLogger(__name__)

router = APIRouter()


def get_ufw_service() -> UfwService:
    """Dependency returning the service used by the profile endpoints."""
    return UfwService()


def _build(request: ProfileCreate) -> Profile:
    # ProfileValidationError is mapped to 422 by the app-level handler
    return create_profile(
        request.name,
        request.title,
        request.description,
        [(entry.port, entry.protocol) for entry in request.ports],
    )


@router.post("/render", response_model=ProfileRenderResponse)
async def render_profile(
    request: ProfileCreate,
    service: UfwService = Depends(get_ufw_service),
):
    """
    Validate the request and return the profile text without writing it.
    """
    profile = _build(request)
    return ProfileRenderResponse(
        name=profile.name,
        filename=profile.filename,
        path=str(service.profile_path(profile)),
        ports=profile.ports_value,
        config=profile.serialize(),
    )


@router.post("/apply", response_model=ProfileApplyResponse)
def apply_profile(
    request: ProfileApplyRequest,
    service: UfwService = Depends(get_ufw_service),
    client: APIClient = Depends(get_current_api_client),
):
    """
    Write the profile to the applications directory and allow or deny it.

    Write failures map to 500, ufw failures to 502.
    """
    profile = _build(request)
    action = "allow" if request.allow else "deny"
    logger.info(f"Applying profile {profile.name} ({action}) for {client.source} client")

    try:
        if request.use_sudo:
            output = service.apply_with_sudo(profile, allow=request.allow)
        else:
            output = service.apply(profile, allow=request.allow)
    except ApplyError as e:
        code = (
            status.HTTP_500_INTERNAL_SERVER_ERROR
            if e.step == "write"
            else status.HTTP_502_BAD_GATEWAY
        )
        raise HTTPException(
            status_code=code,
            detail={"step": e.step, "message": e.message},
        )

    return ProfileApplyResponse(
        name=profile.name,
        path=str(service.profile_path(profile)),
        action=action,
        output=output,
    )
