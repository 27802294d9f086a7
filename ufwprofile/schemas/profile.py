"""Schemas for profile rendering and apply operations."""
from typing import List, Optional
from pydantic import BaseModel, Field


class PortEntryRequest(BaseModel):
    """A port or port range with an optional protocol."""
    port: str = Field(..., description='Port ("80") or range ("81:82")')
    protocol: str = Field(default="", description='"tcp", "udp" or empty for any protocol')


class ProfileCreate(BaseModel):
    """Request schema describing a profile to render or apply."""
    name: str
    title: str
    description: str
    ports: List[PortEntryRequest] = Field(default_factory=list)


class ProfileApplyRequest(ProfileCreate):
    """Request schema for writing and applying a profile."""
    allow: bool = True
    use_sudo: bool = Field(default=False, description="Always invoke ufw through sudo")


class ProfileRenderResponse(BaseModel):
    """Response schema for a rendered profile."""
    name: str
    filename: str
    path: str
    ports: str
    config: str


class ProfileApplyResponse(BaseModel):
    """Response schema for an applied profile."""
    name: str
    path: str
    action: str
    output: str


class SystemStatusResponse(BaseModel):
    """Privilege and environment status of the host."""
    running_as: str
    ufw_binary: str
    applications_dir: str
    writable: bool
    detail: Optional[str] = None
