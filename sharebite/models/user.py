"""
User identity models
Profiles are managed elsewhere; the service only sees the caller's identity.
"""

from enum import Enum

from pydantic import BaseModel, Field


class UserRole(str, Enum):
    """Marketplace roles"""
    RESTAURANT = "restaurant"   # food donor
    SHELTER = "shelter"         # food recipient
    VOLUNTEER = "volunteer"     # delivery


class CurrentUser(BaseModel):
    """Identity taken from the session token"""
    id: str = Field(..., description="User id")
    name: str = Field("", description="Display name")
    role: UserRole = Field(..., description="Role")
