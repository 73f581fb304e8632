from datetime import date, datetime, timezone
from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, ValidationError, field_validator

from ..models.appointment import TIME_SLOTS, AppointmentRequest, AppointmentStatus
from ..utils.date_filters import clinic_today

# Messages for errors raised by pydantic itself rather than our validators
_TYPE_ERROR_MESSAGES = {
    "email": "Please enter a valid email address",
    "preferred_date": "Please select a preferred date",
    "child_age": "Please enter a valid age",
}

class AppointmentCreate(BaseModel):
    """Booking form submitted by a parent or guardian."""
    model_config = ConfigDict(validate_default=True)

    parent_name: str = ""
    child_name: str = ""
    child_age: str = ""
    phone_number: str = ""
    email: Optional[EmailStr] = None
    preferred_date: Optional[date] = None
    preferred_time: str = ""
    reason: str = ""

    @field_validator("email", "preferred_date", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("parent_name")
    @classmethod
    def validate_parent_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Parent/Guardian name is required")
        return v.strip()

    @field_validator("child_name")
    @classmethod
    def validate_child_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Child name is required")
        return v.strip()

    @field_validator("child_age", mode="before")
    @classmethod
    def validate_child_age(cls, v) -> str:
        v = "" if v is None else str(v).strip()
        if not v:
            raise ValueError("Child age is required")
        try:
            age = int(v)
        except ValueError:
            raise ValueError("Please enter a valid age")
        if age < 0:
            raise ValueError("Please enter a valid age")
        return str(age)

    @field_validator("phone_number")
    @classmethod
    def validate_phone_number(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Phone number is required")
        return v.strip()

    @field_validator("preferred_date")
    @classmethod
    def validate_preferred_date(cls, v: Optional[date]) -> date:
        if v is None:
            raise ValueError("Please select a preferred date")
        if v < clinic_today():
            raise ValueError("Please select a date that is not in the past")
        if v.weekday() == 6:
            raise ValueError("The clinic is open Monday to Saturday. Please select another date")
        return v

    @field_validator("preferred_time")
    @classmethod
    def validate_preferred_time(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please select a preferred time")
        if v not in TIME_SLOTS:
            raise ValueError("Please select one of the available time slots")
        return v

    def to_request(self, submission_time: Optional[datetime] = None) -> AppointmentRequest:
        return AppointmentRequest(
            parent_name=self.parent_name,
            child_name=self.child_name,
            child_age=int(self.child_age),
            phone_number=self.phone_number,
            email=str(self.email) if self.email else None,
            preferred_date=self.preferred_date,
            preferred_time=self.preferred_time,
            reason=self.reason.strip(),
            submission_time=submission_time or datetime.now(timezone.utc),
            status=AppointmentStatus.PENDING,
        )

class StatusUpdate(BaseModel):
    status: AppointmentStatus

class AppointmentResponse(BaseModel):
    index: int
    parent_name: str
    child_name: str
    child_age: int
    phone_number: str
    email: Optional[str] = None
    preferred_date: date
    preferred_time: str
    reason: str
    submission_time: datetime
    status: AppointmentStatus

def form_errors(exc: ValidationError) -> Dict[str, str]:
    """Map a validation error to one message per form field."""
    errors: Dict[str, str] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "submit"
        if field in errors:
            continue
        message = error["msg"]
        # pydantic prefixes messages raised from our validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        else:
            message = _TYPE_ERROR_MESSAGES.get(field, message)
        errors[field] = message
    return errors
