from typing import Optional
from pydantic import BaseModel
import logging

from ..core.backend import (
    BackendAuthorizationError, BackendError, BackendUnavailableError, ClinicBackend
)
from ..core.security import (
    AuthorizationError, PortalRole, SessionPayload, UserRole, create_session_token
)
from ..models.user import StaffCredentials, UserProfile
from .appointment_service import AppointmentService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid user ID or password. Please try again."
LOGIN_TIMEOUT = "Authentication timeout. Please try again."
LOGIN_FAILED = "Login failed. Please check your credentials and try again."
MISSING_CREDENTIALS = "Please enter your user ID and password."
ADMIN_REQUIRED = "You do not have administrator privileges to access this page."

class LoginError(Exception):
    """Login failed; `message` is safe to show to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class LoginResult(BaseModel):
    token: str
    user_id: str
    role: PortalRole

class AuthService:
    def __init__(self, backend: ClinicBackend, redis_client):
        self.backend = backend
        self.redis = redis_client

    async def login_staff(self, user_id: str, password: str) -> LoginResult:
        """Sign a staff member in. Administrators get an admin session."""
        caller_token = await self._authenticate(user_id, password)
        backend_role = await self._caller_role(caller_token)
        role = PortalRole.ADMIN if backend_role == UserRole.ADMIN else PortalRole.STAFF
        return self._issue(user_id.strip(), role, caller_token)

    async def login_admin(self, user_id: str, password: str) -> LoginResult:
        """Sign an administrator in; other roles are refused."""
        caller_token = await self._authenticate(user_id, password)
        backend_role = await self._caller_role(caller_token)
        if backend_role != UserRole.ADMIN:
            logger.warning(f"Admin login refused for {user_id.strip()}: role {backend_role.value}")
            raise AuthorizationError(ADMIN_REQUIRED)
        return self._issue(user_id.strip(), PortalRole.ADMIN, caller_token)

    def logout(self, session: SessionPayload):
        """Revoke the session and drop the caller's cached data."""
        self.redis.setex(self._revoked_key(session), max(session.seconds_remaining, 1), "1")
        AppointmentService(self.backend, self.redis, owner=session.sub).clear_cache()
        logger.info(f"Staff member {session.sub} logged out")

    def is_revoked(self, session: SessionPayload) -> bool:
        return self.redis.get(self._revoked_key(session)) is not None

    async def get_profile(self, session: SessionPayload) -> Optional[UserProfile]:
        return await self.backend.with_caller(session.btk).get_caller_user_profile()

    async def save_profile(self, session: SessionPayload, name: str) -> UserProfile:
        profile = UserProfile(name=name.strip())
        await self.backend.with_caller(session.btk).save_caller_user_profile(profile)
        logger.info(f"Profile saved for {session.sub}")
        return profile

    async def _authenticate(self, user_id: str, password: str) -> str:
        if not user_id.strip() or not password:
            raise LoginError(MISSING_CREDENTIALS)

        credentials = StaffCredentials(user_id=user_id.strip(), password=password)
        try:
            caller_token = await self.backend.authenticate_staff(credentials)
        except BackendUnavailableError as e:
            logger.error(f"Staff login for {credentials.user_id} failed: {e.message}")
            if "timeout" in e.message.lower():
                raise LoginError(LOGIN_TIMEOUT)
            raise LoginError(LOGIN_FAILED)
        except BackendAuthorizationError:
            raise LoginError(INVALID_CREDENTIALS)
        except BackendError as e:
            logger.error(f"Staff login for {credentials.user_id} failed: {e.message}")
            raise LoginError(LOGIN_FAILED)

        if not caller_token:
            logger.info(f"Invalid credentials for {credentials.user_id}")
            raise LoginError(INVALID_CREDENTIALS)
        return caller_token

    async def _caller_role(self, caller_token: str) -> UserRole:
        try:
            return await self.backend.with_caller(caller_token).get_caller_user_role()
        except BackendError as e:
            logger.error(f"Role lookup failed after login: {e.message}")
            raise LoginError(LOGIN_FAILED)

    def _issue(self, user_id: str, role: PortalRole, caller_token: str) -> LoginResult:
        token = create_session_token(user_id, role, caller_token)
        logger.info(f"Staff member {user_id} signed in as {role.value}")
        return LoginResult(token=token, user_id=user_id, role=role)

    @staticmethod
    def _revoked_key(session: SessionPayload) -> str:
        return f"revoked_session:{session.jti}"
