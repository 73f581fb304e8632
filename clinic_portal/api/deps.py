from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from typing import Optional

from ..core.backend import ClinicBackend, get_backend
from ..core.cache import get_redis
from ..core.config import settings
from ..core.security import (
    security, verify_session_token, AuthenticationError,
    AuthorizationError, SessionPayload
)
from ..services.auth_service import ADMIN_REQUIRED, AuthService

async def get_optional_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    backend: ClinicBackend = Depends(get_backend),
    redis_client = Depends(get_redis)
) -> Optional[SessionPayload]:
    """Session from the Bearer header or the session cookie, None if absent or invalid."""
    if credentials:
        token = credentials.credentials
    else:
        token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return None

    session = verify_session_token(token)
    if not session:
        return None

    if AuthService(backend, redis_client).is_revoked(session):
        return None

    return session

async def get_current_session(
    session: Optional[SessionPayload] = Depends(get_optional_session)
) -> SessionPayload:
    """Require a signed-in staff member."""
    if not session:
        raise AuthenticationError("Not authenticated")
    return session

async def require_admin(
    session: SessionPayload = Depends(get_current_session)
) -> SessionPayload:
    """Require an administrator session."""
    if not session.is_admin:
        raise AuthorizationError(ADMIN_REQUIRED)
    return session

async def get_caller_backend(
    session: SessionPayload = Depends(get_current_session),
    backend: ClinicBackend = Depends(get_backend)
) -> ClinicBackend:
    """Backend client acting as the signed-in staff member."""
    return backend.with_caller(session.btk)

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Per-IP rate limiting for login and booking endpoints."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{request.url.path}:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, settings.RATE_LIMIT_WINDOW, 1)
    else:
        if int(current_requests) >= settings.RATE_LIMIT_MAX_REQUESTS:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later."
            )
        redis_client.incr(key)

# Session cookie helpers
def set_session_cookie(response, token: str):
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        max_age=settings.SESSION_EXPIRE_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=not (settings.DEBUG or settings.TESTING),
    )

def clear_session_cookie(response):
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
