from fastapi import APIRouter, Depends, HTTPException, Response, status

from ...core.backend import ClinicBackend, get_backend
from ...core.cache import get_redis
from ...core.security import SessionPayload
from ...api.deps import (
    get_current_session, rate_limit_check, set_session_cookie, clear_session_cookie
)
from ...services.auth_service import AuthService, LoginError
from ...schemas.auth import StaffLogin, SessionResponse, ProfileUpdate

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/login", response_model=SessionResponse)
async def login(
    login_data: StaffLogin,
    response: Response,
    backend: ClinicBackend = Depends(get_backend),
    redis_client = Depends(get_redis),
    _: None = Depends(rate_limit_check)
):
    """Sign a staff member in and set the session cookie."""
    auth_service = AuthService(backend, redis_client)
    try:
        result = await auth_service.login_staff(login_data.user_id, login_data.password)
    except LoginError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message
        )

    set_session_cookie(response, result.token)
    return SessionResponse(user_id=result.user_id, role=result.role)

@router.post("/admin-login", response_model=SessionResponse)
async def admin_login(
    login_data: StaffLogin,
    response: Response,
    backend: ClinicBackend = Depends(get_backend),
    redis_client = Depends(get_redis),
    _: None = Depends(rate_limit_check)
):
    """Sign an administrator in and set the session cookie."""
    auth_service = AuthService(backend, redis_client)
    try:
        result = await auth_service.login_admin(login_data.user_id, login_data.password)
    except LoginError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message
        )

    set_session_cookie(response, result.token)
    return SessionResponse(user_id=result.user_id, role=result.role)

@router.post("/logout")
async def logout(
    response: Response,
    session: SessionPayload = Depends(get_current_session),
    backend: ClinicBackend = Depends(get_backend),
    redis_client = Depends(get_redis)
):
    """Revoke the current session."""
    AuthService(backend, redis_client).logout(session)
    clear_session_cookie(response)
    return {"message": "Successfully logged out"}

@router.get("/me", response_model=SessionResponse)
async def get_current_session_info(
    session: SessionPayload = Depends(get_current_session),
    backend: ClinicBackend = Depends(get_backend),
    redis_client = Depends(get_redis)
):
    """Get the signed-in staff member and their profile name."""
    profile = await AuthService(backend, redis_client).get_profile(session)
    return SessionResponse(
        user_id=session.sub,
        role=session.role,
        profile_name=profile.name if profile else None
    )

@router.get("/profile")
async def get_profile(
    session: SessionPayload = Depends(get_current_session),
    backend: ClinicBackend = Depends(get_backend),
    redis_client = Depends(get_redis)
):
    """Get the caller's profile, null when not set up yet."""
    profile = await AuthService(backend, redis_client).get_profile(session)
    return profile.model_dump() if profile else None

@router.put("/profile")
async def save_profile(
    profile_data: ProfileUpdate,
    session: SessionPayload = Depends(get_current_session),
    backend: ClinicBackend = Depends(get_backend),
    redis_client = Depends(get_redis)
):
    """Save the caller's profile."""
    profile = await AuthService(backend, redis_client).save_profile(session, profile_data.name)
    return profile.model_dump()
