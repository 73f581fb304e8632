"""
Typed client for the clinic backend actor.

The backend owns persistence, staff authentication, roles and access
control. It is reached through a JSON-RPC 2.0 gateway:

    POST {BACKEND_URL}/rpc
    {"jsonrpc": "2.0", "id": 1, "method": "listAppointments", "params": []}

Calls made on behalf of a signed-in staff member carry the caller token
returned by ``authenticateStaff`` as a Bearer token.
"""
from typing import Any, AsyncGenerator, List, Optional
import itertools
import logging
import httpx

from .config import settings
from .security import UserRole
from ..models.appointment import AppointmentRequest, AppointmentStatus
from ..models.user import StaffCredentials, StaffUser, UserProfile

logger = logging.getLogger(__name__)

_AUTHORIZATION_MARKERS = ("Unauthorized", "permission")

class BackendError(Exception):
    """A backend call failed."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code

class BackendUnavailableError(BackendError):
    """The backend could not be reached or did not answer in time."""

class BackendAuthorizationError(BackendError):
    """The caller is not allowed to perform the call."""

def classify_error(message: str, code: Optional[int] = None) -> BackendError:
    if any(marker in message for marker in _AUTHORIZATION_MARKERS):
        return BackendAuthorizationError(message, code)
    return BackendError(message, code)

class ClinicBackend:
    def __init__(
        self,
        client: httpx.AsyncClient,
        caller_token: Optional[str] = None
    ):
        self.client = client
        self.caller_token = caller_token
        self._ids = itertools.count(1)

    def with_caller(self, caller_token: Optional[str]) -> "ClinicBackend":
        """Return a client that makes calls as the given caller."""
        return ClinicBackend(self.client, caller_token)

    async def call(self, method: str, *params: Any) -> Any:
        """Invoke a backend method and return its result."""
        envelope = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": list(params),
        }
        headers = {}
        if self.caller_token:
            headers["Authorization"] = f"Bearer {self.caller_token}"

        logger.debug(f"Backend call {method}")
        try:
            response = await self.client.post("/rpc", json=envelope, headers=headers)
        except httpx.TimeoutException as e:
            logger.error(f"Backend call {method} timed out: {str(e)}")
            raise BackendUnavailableError("Backend request timeout") from e
        except httpx.HTTPError as e:
            logger.error(f"Backend call {method} failed: {str(e)}")
            raise BackendUnavailableError(f"Backend unavailable: {str(e)}") from e

        if response.status_code in (401, 403):
            raise BackendAuthorizationError(
                f"Unauthorized: {method} rejected by backend", response.status_code
            )
        if response.status_code >= 400:
            raise BackendError(
                f"Backend returned HTTP {response.status_code} for {method}", response.status_code
            )

        try:
            body = response.json()
        except ValueError as e:
            raise BackendError(f"Malformed backend response for {method}") from e
        if not isinstance(body, dict):
            raise BackendError(f"Malformed backend response for {method}")

        error = body.get("error")
        if error is not None and not isinstance(error, dict):
            raise BackendError(f"Malformed backend response for {method}")
        if error:
            message = error.get("message") or "Unknown backend error"
            logger.warning(f"Backend call {method} returned error: {message}")
            raise classify_error(message, error.get("code"))

        return body.get("result")

    # Appointments
    async def create_appointment(self, request: AppointmentRequest) -> None:
        await self.call("createAppointment", request.to_wire())

    async def list_appointments(self) -> List[AppointmentRequest]:
        result = await self.call("listAppointments")
        return [AppointmentRequest.from_wire(item) for item in result or []]

    async def update_appointment_status(self, index: int, status: AppointmentStatus) -> None:
        await self.call("updateAppointmentStatus", index, status.value)

    # Profiles and roles
    async def get_caller_user_profile(self) -> Optional[UserProfile]:
        result = await self.call("getCallerUserProfile")
        return UserProfile(**result) if result else None

    async def save_caller_user_profile(self, profile: UserProfile) -> None:
        await self.call("saveCallerUserProfile", profile.model_dump())

    async def get_caller_user_role(self) -> UserRole:
        return UserRole(await self.call("getCallerUserRole"))

    async def is_caller_admin(self) -> bool:
        return bool(await self.call("isCallerAdmin"))

    async def get_user_profile(self, principal: str) -> Optional[UserProfile]:
        result = await self.call("getUserProfile", principal)
        return UserProfile(**result) if result else None

    async def assign_caller_user_role(self, principal: str, role: UserRole) -> None:
        await self.call("assignCallerUserRole", principal, role.value)

    # Staff accounts
    async def authenticate_staff(self, credentials: StaffCredentials) -> Optional[str]:
        """Return the caller token for valid credentials, None otherwise."""
        result = await self.call("authenticateStaff", credentials.to_wire())
        return result or None

    async def get_all_active_staff_users(self) -> List[StaffUser]:
        result = await self.call("getAllActiveStaffUsers")
        return [StaffUser.from_wire(item) for item in result or []]

    async def create_staff_user(self, staff: StaffUser) -> None:
        await self.call("createStaffUser", staff.to_wire())

    async def update_staff_user(self, user_id: str, staff: StaffUser) -> None:
        await self.call("updateStaffUser", user_id, staff.to_wire())

    async def delete_staff_user(self, user_id: str) -> None:
        await self.call("deleteStaffUser", user_id)

# Backend dependency
async def get_backend() -> AsyncGenerator[ClinicBackend, None]:
    """Get an anonymous backend client."""
    async with httpx.AsyncClient(
        base_url=settings.BACKEND_URL,
        timeout=settings.BACKEND_TIMEOUT
    ) as client:
        yield ClinicBackend(client)
