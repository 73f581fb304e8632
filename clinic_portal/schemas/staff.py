from typing import Optional
from pydantic import BaseModel, EmailStr, field_validator

from ..models.user import ActivationStatus, StaffUser

class StaffCreate(BaseModel):
    user_id: str
    password: str
    email: Optional[EmailStr] = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("user_id", "password")
    @classmethod
    def required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("User ID and password are required")
        return v.strip()

class StaffUpdate(BaseModel):
    # Blank password keeps the current one
    password: str = ""
    email: Optional[EmailStr] = None
    status: ActivationStatus = ActivationStatus.ACTIVATED

    @field_validator("email", mode="before")
    @classmethod
    def blank_email(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("status")
    @classmethod
    def selectable_status(cls, v: ActivationStatus) -> ActivationStatus:
        if v == ActivationStatus.DELETED:
            raise ValueError("Use delete to remove a staff account")
        return v

class StaffResponse(BaseModel):
    """Staff account as shown to administrators. Never includes the password."""
    user_id: str
    email: Optional[str] = None
    status: ActivationStatus

    @classmethod
    def from_staff(cls, staff: StaffUser) -> "StaffResponse":
        return cls(user_id=staff.user_id, email=staff.email, status=staff.status)
