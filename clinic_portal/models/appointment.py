from datetime import date, datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel
import enum

from ..utils.date_filters import (
    date_to_nanos, datetime_to_nanos, nanos_to_date, nanos_to_datetime
)

# Mon to Sat, 7 PM to 9 PM
TIME_SLOTS = [
    "07:00 PM",
    "07:15 PM",
    "07:30 PM",
    "07:45 PM",
    "08:00 PM",
    "08:15 PM",
    "08:30 PM",
    "08:45 PM",
    "09:00 PM",
]

class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        return self.value.capitalize()

class AppointmentRequest(BaseModel):
    parent_name: str
    child_name: str
    child_age: int
    phone_number: str
    email: Optional[str] = None
    preferred_date: date
    preferred_time: str
    reason: str = ""
    submission_time: datetime
    status: AppointmentStatus = AppointmentStatus.PENDING

    def to_wire(self) -> Dict[str, Any]:
        """Encode for the backend: camelCase keys, nanosecond timestamps."""
        payload = {
            "parentName": self.parent_name,
            "childName": self.child_name,
            "childAge": self.child_age,
            "phoneNumber": self.phone_number,
            "preferredDate": date_to_nanos(self.preferred_date),
            "preferredTime": self.preferred_time,
            "reason": self.reason,
            "submissionTime": datetime_to_nanos(self.submission_time),
            "status": self.status.value,
        }
        if self.email:
            payload["email"] = self.email
        return payload

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "AppointmentRequest":
        return cls(
            parent_name=data["parentName"],
            child_name=data["childName"],
            child_age=int(data["childAge"]),
            phone_number=data["phoneNumber"],
            email=data.get("email") or None,
            preferred_date=nanos_to_date(data["preferredDate"]),
            preferred_time=data["preferredTime"],
            reason=data.get("reason", ""),
            submission_time=nanos_to_datetime(data["submissionTime"]),
            status=AppointmentStatus(data.get("status", AppointmentStatus.PENDING.value)),
        )

    def __repr__(self):
        return f"<AppointmentRequest(child='{self.child_name}', date='{self.preferred_date}', status='{self.status.value}')>"

class AppointmentRecord(AppointmentRequest):
    """An appointment together with its position in the backend list.

    The position is what `updateAppointmentStatus` addresses, so it is taken
    before any filtering and travels with the record.
    """
    index: int

    @classmethod
    def from_request(cls, index: int, appointment: AppointmentRequest) -> "AppointmentRecord":
        return cls(index=index, **appointment.model_dump())

    def to_request(self) -> AppointmentRequest:
        return AppointmentRequest(**self.model_dump(exclude={"index"}))
