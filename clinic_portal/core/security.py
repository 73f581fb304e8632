from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from pydantic import BaseModel
import secrets
from enum import Enum

from .config import settings

# Bearer token as an alternative to the session cookie (JSON API clients)
security = HTTPBearer(auto_error=False)

class UserRole(str, Enum):
    """Role as reported by the backend for the calling identity."""
    ADMIN = "admin"
    USER = "user"
    GUEST = "guest"

class PortalRole(str, Enum):
    """Role held by a portal session."""
    STAFF = "staff"
    ADMIN = "admin"

class SessionPayload(BaseModel):
    sub: str
    role: PortalRole
    btk: str  # caller token issued by the backend
    jti: str
    exp: int
    token_type: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == PortalRole.ADMIN

    @property
    def seconds_remaining(self) -> int:
        return max(0, self.exp - int(datetime.now(timezone.utc).timestamp()))

# Session tokens
def create_session_token(
    user_id: str,
    role: PortalRole,
    caller_token: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create a signed staff session token."""
    if expires_delta is None:
        expires_delta = timedelta(hours=settings.SESSION_EXPIRE_HOURS)

    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {
        "sub": user_id,
        "role": role.value,
        "btk": caller_token,
        "jti": secrets.token_urlsafe(16),
        "exp": int(expire.timestamp()),
        "token_type": "session",
    }

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )

def verify_session_token(token: str) -> Optional[SessionPayload]:
    """Verify and decode a session token. Returns None when invalid or expired."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        return None

    if payload.get("token_type") != "session":
        return None

    try:
        return SessionPayload(**payload)
    except ValueError:
        return None

# Security exceptions
class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "Not enough permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )
