from typing import Optional
from pydantic import BaseModel, field_validator

from ..core.security import PortalRole

class StaffLogin(BaseModel):
    user_id: str
    password: str

class SessionResponse(BaseModel):
    user_id: str
    role: PortalRole
    profile_name: Optional[str] = None

class ProfileUpdate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()
