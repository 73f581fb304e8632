from typing import Any, Dict, Optional
from pydantic import BaseModel
import enum

from ..core.security import UserRole

class ActivationStatus(str, enum.Enum):
    ACTIVATED = "activated"
    DEACTIVATED = "deactivated"
    DELETED = "deleted"

    @property
    def label(self) -> str:
        return self.value.capitalize()

class UserProfile(BaseModel):
    name: str

class StaffCredentials(BaseModel):
    user_id: str
    password: str

    def to_wire(self) -> Dict[str, Any]:
        return {"userId": self.user_id, "password": self.password}

class StaffUser(BaseModel):
    user_id: str
    password: str
    email: Optional[str] = None
    status: ActivationStatus = ActivationStatus.ACTIVATED

    def to_wire(self) -> Dict[str, Any]:
        payload = {
            "userId": self.user_id,
            "password": self.password,
            "status": self.status.value,
        }
        if self.email:
            payload["email"] = self.email
        return payload

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "StaffUser":
        return cls(
            user_id=data["userId"],
            password=data.get("password", ""),
            email=data.get("email") or None,
            status=ActivationStatus(data.get("status", ActivationStatus.ACTIVATED.value)),
        )

    def __repr__(self):
        return f"<StaffUser(user_id='{self.user_id}', status='{self.status.value}')>"

__all__ = ["ActivationStatus", "StaffCredentials", "StaffUser", "UserProfile", "UserRole"]
