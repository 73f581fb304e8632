from datetime import date
from typing import Optional
from urllib.parse import urlencode
from fastapi import APIRouter, Depends, Form, Query, Request, status
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
import logging

from ..core.backend import BackendAuthorizationError, BackendError, ClinicBackend, get_backend
from ..core.cache import get_redis
from ..core.security import AuthorizationError, SessionPayload
from ..api.deps import (
    get_optional_session, rate_limit_check, set_session_cookie, clear_session_cookie
)
from ..models.appointment import AppointmentStatus
from ..models.user import ActivationStatus
from ..services.appointment_service import AppointmentNotFoundError, AppointmentService
from ..services.auth_service import ADMIN_REQUIRED, AuthService, LoginError
from ..services.staff_service import StaffNotFoundError, StaffService
from ..schemas.appointment import AppointmentCreate, form_errors
from ..schemas.auth import ProfileUpdate
from ..schemas.staff import StaffCreate, StaffUpdate
from ..utils.date_filters import DateFilter, DateFilterType, clinic_today
from .templating import render

logger = logging.getLogger(__name__)

router = APIRouter(include_in_schema=False)

SUBMIT_FAILED = "Failed to submit appointment. Please try again."
LOAD_FAILED = "Failed to load appointments. Please try again."
STATUS_UPDATE_FAILED = "Failed to update appointment status. Please try again."
STAFF_ACCESS_DENIED = (
    "You do not have permission to view appointments. "
    "Only authorized clinic staff can access this page."
)
STAFF_LOAD_FAILED = "Failed to load staff accounts. Please try again."
PROFILE_LOAD_FAILED = "Failed to load profile. Please try again."

NOTICES = {
    "status-updated": "Appointment status updated",
    "staff-created": "Staff account created successfully",
    "staff-updated": "Staff account updated successfully",
    "staff-deleted": "Staff account deleted successfully",
    "profile-saved": "Profile saved successfully",
}

def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)

def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None

def _date_filter(date_range: str, start: Optional[str], end: Optional[str]) -> DateFilter:
    try:
        filter_type = DateFilterType(date_range)
    except ValueError:
        filter_type = DateFilterType.ALL
    return DateFilter(type=filter_type, start_date=_parse_date(start), end_date=_parse_date(end))

def _filter_query(date_range: str, start: str, end: str, q: str) -> dict:
    params = {"range": date_range, "start": start, "end": end, "q": q}
    return {key: value for key, value in params.items() if value and value != DateFilterType.ALL.value}

# Public pages
@router.get("/")
async def landing(request: Request):
    return render(request, "landing.html")

@router.get("/book")
async def booking_form(request: Request):
    return render(request, "book.html", form={}, errors={}, min_date=clinic_today())

@router.post("/book")
async def submit_booking(
    request: Request,
    parent_name: str = Form(""),
    child_name: str = Form(""),
    child_age: str = Form(""),
    phone_number: str = Form(""),
    email: str = Form(""),
    preferred_date: str = Form(""),
    preferred_time: str = Form(""),
    reason: str = Form(""),
    backend: ClinicBackend = Depends(get_backend),
    redis_client = Depends(get_redis),
    _: None = Depends(rate_limit_check)
):
    submitted = {
        "parent_name": parent_name,
        "child_name": child_name,
        "child_age": child_age,
        "phone_number": phone_number,
        "email": email,
        "preferred_date": preferred_date,
        "preferred_time": preferred_time,
        "reason": reason,
    }
    try:
        form = AppointmentCreate(**submitted)
    except ValidationError as e:
        return render(
            request, "book.html",
            form=submitted, errors=form_errors(e), min_date=clinic_today()
        )

    try:
        await AppointmentService(backend, redis_client).create_appointment(form)
    except BackendError as e:
        logger.error(f"Appointment submission failed: {e.message}")
        return render(
            request, "book.html",
            form=submitted, errors={"submit": SUBMIT_FAILED}, min_date=clinic_today()
        )

    return _redirect("/confirmation")

@router.get("/confirmation")
async def confirmation(request: Request):
    return render(request, "confirmation.html")

# Staff portal
async def _staff_page(
    request: Request,
    session: SessionPayload,
    service: AppointmentService,
    date_range: str,
    start: str,
    end: str,
    q: str,
    error: Optional[str] = None,
    notice: Optional[str] = None,
    status_code: int = 200
):
    date_filter = _date_filter(date_range, start, end)
    context = {
        "session": session,
        "date_filter": date_filter,
        "filter_types": list(DateFilterType),
        "start": start,
        "end": end,
        "search_query": q,
        "filter_query": _filter_query(date_range, start, end, q),
        "records": [],
        "total": 0,
        "error": error,
        "notice": NOTICES.get(notice) if notice else None,
        "access_denied": False,
    }
    try:
        context["total"] = len(await service.list_appointments())
        context["records"] = await service.filtered_appointments(date_filter, q)
    except BackendAuthorizationError as e:
        logger.warning(f"Appointment list refused for {session.sub}: {e.message}")
        context["access_denied"] = True
        context["error"] = STAFF_ACCESS_DENIED
    except BackendError as e:
        logger.error(f"Appointment list failed for {session.sub}: {e.message}")
        context["error"] = error or LOAD_FAILED
    return render(request, "staff.html", status_code=status_code, **context)

@router.get("/staff")
async def staff_portal(
    request: Request,
    date_range: str = Query("all", alias="range"),
    start: str = "",
    end: str = "",
    q: str = "",
    notice: str = "",
    session: Optional[SessionPayload] = Depends(get_optional_session),
    backend: ClinicBackend = Depends(get_backend),
    redis_client = Depends(get_redis)
):
    if not session:
        return render(request, "staff_login.html", error=None, user_id="")

    service = AppointmentService(backend.with_caller(session.btk), redis_client, owner=session.sub)
    return await _staff_page(request, session, service, date_range, start, end, q, notice=notice)

@router.post("/staff/login")
async def staff_login(
    request: Request,
    user_id: str = Form(""),
    password: str = Form(""),
    backend: ClinicBackend = Depends(get_backend),
    redis_client = Depends(get_redis),
    _: None = Depends(rate_limit_check)
):
    try:
        result = await AuthService(backend, redis_client).login_staff(user_id, password)
    except LoginError as e:
        return render(request, "staff_login.html", error=e.message, user_id=user_id)

    response = _redirect("/staff")
    set_session_cookie(response, result.token)
    return response

@router.post("/staff/logout")
async def staff_logout(
    session: Optional[SessionPayload] = Depends(get_optional_session),
    backend: ClinicBackend = Depends(get_backend),
    redis_client = Depends(get_redis)
):
    if session:
        AuthService(backend, redis_client).logout(session)
    response = _redirect("/staff")
    clear_session_cookie(response)
    return response

@router.post("/staff/appointments/{index}/status")
async def update_appointment_status(
    request: Request,
    index: int,
    new_status: AppointmentStatus = Form(..., alias="status"),
    date_range: str = Form("all", alias="range"),
    start: str = Form(""),
    end: str = Form(""),
    q: str = Form(""),
    session: Optional[SessionPayload] = Depends(get_optional_session),
    backend: ClinicBackend = Depends(get_backend),
    redis_client = Depends(get_redis)
):
    if not session:
        return _redirect("/staff")

    service = AppointmentService(backend.with_caller(session.btk), redis_client, owner=session.sub)
    filter_query = _filter_query(date_range, start, end, q)
    try:
        await service.update_status(index, new_status)
    except AppointmentNotFoundError:
        return await _staff_page(
            request, session, service, date_range, start, end, q,
            error="Appointment not found", status_code=status.HTTP_404_NOT_FOUND
        )
    except BackendError as e:
        logger.error(f"Status update for appointment {index} failed: {e.message}")
        return await _staff_page(
            request, session, service, date_range, start, end, q,
            error=STATUS_UPDATE_FAILED
        )

    filter_query["notice"] = "status-updated"
    return _redirect(f"/staff?{urlencode(filter_query)}")

# Admin area
def _access_denied(request: Request, session: Optional[SessionPayload]):
    return render(
        request, "access_denied.html",
        status_code=status.HTTP_403_FORBIDDEN,
        session=session,
        message=ADMIN_REQUIRED
    )

async def _admin_dashboard(
    request: Request,
    session: SessionPayload,
    backend: ClinicBackend,
    redis_client,
    error: Optional[str] = None,
    name: str = "",
    notice: Optional[str] = None
):
    try:
        profile = await AuthService(backend, redis_client).get_profile(session)
    except BackendAuthorizationError as e:
        logger.warning(f"Profile lookup for {session.sub} refused: {e.message}")
        return _access_denied(request, session)
    except BackendError as e:
        logger.error(f"Profile lookup for {session.sub} failed: {e.message}")
        return render(
            request, "admin_dashboard.html",
            session=session,
            profile=None,
            load_failed=True,
            error=PROFILE_LOAD_FAILED,
            profile_name=name,
            notice=None
        )

    return render(
        request, "admin_dashboard.html",
        session=session,
        profile=profile,
        load_failed=False,
        error=error,
        profile_name=name,
        notice=NOTICES.get(notice) if notice else None
    )

@router.get("/admin-login")
async def admin_login_form(
    request: Request,
    session: Optional[SessionPayload] = Depends(get_optional_session)
):
    if session and session.is_admin:
        return _redirect("/admin-dashboard")
    return render(request, "admin_login.html", error=None, user_id="")

@router.post("/admin-login")
async def admin_login(
    request: Request,
    user_id: str = Form(""),
    password: str = Form(""),
    backend: ClinicBackend = Depends(get_backend),
    redis_client = Depends(get_redis),
    _: None = Depends(rate_limit_check)
):
    try:
        result = await AuthService(backend, redis_client).login_admin(user_id, password)
    except LoginError as e:
        return render(request, "admin_login.html", error=e.message, user_id=user_id)
    except AuthorizationError:
        return _access_denied(request, None)

    response = _redirect("/admin-dashboard")
    set_session_cookie(response, result.token)
    return response

@router.post("/admin/logout")
async def admin_logout(
    session: Optional[SessionPayload] = Depends(get_optional_session),
    backend: ClinicBackend = Depends(get_backend),
    redis_client = Depends(get_redis)
):
    if session:
        AuthService(backend, redis_client).logout(session)
    response = _redirect("/admin-login")
    clear_session_cookie(response)
    return response

@router.get("/admin-dashboard")
async def admin_dashboard(
    request: Request,
    notice: str = "",
    session: Optional[SessionPayload] = Depends(get_optional_session),
    backend: ClinicBackend = Depends(get_backend),
    redis_client = Depends(get_redis)
):
    if not session:
        return _redirect("/admin-login")
    if not session.is_admin:
        return _access_denied(request, session)
    return await _admin_dashboard(request, session, backend, redis_client, notice=notice)

@router.post("/admin-dashboard/profile")
async def save_admin_profile(
    request: Request,
    name: str = Form(""),
    session: Optional[SessionPayload] = Depends(get_optional_session),
    backend: ClinicBackend = Depends(get_backend),
    redis_client = Depends(get_redis)
):
    if not session:
        return _redirect("/admin-login")
    if not session.is_admin:
        return _access_denied(request, session)

    try:
        profile = ProfileUpdate(name=name)
    except ValidationError as e:
        message = next(iter(form_errors(e).values()))
        return await _admin_dashboard(request, session, backend, redis_client, error=message, name=name)

    try:
        await AuthService(backend, redis_client).save_profile(session, profile.name)
    except BackendError as e:
        logger.error(f"Saving profile for {session.sub} failed: {e.message}")
        return await _admin_dashboard(
            request, session, backend, redis_client,
            error="Failed to save profile. Please try again.", name=name
        )
    return _redirect("/admin-dashboard?notice=profile-saved")

# Staff management
async def _staff_management(
    request: Request,
    session: SessionPayload,
    service: StaffService,
    q: str = "",
    edit: str = "",
    confirm_delete: str = "",
    notice: Optional[str] = None,
    error: Optional[str] = None,
    add_form: Optional[dict] = None,
    edit_form: Optional[dict] = None,
    status_code: int = 200
):
    context = {
        "session": session,
        "search_query": q,
        "staff_users": [],
        "editing": None,
        "confirm_delete": confirm_delete,
        "notice": NOTICES.get(notice) if notice else None,
        "error": error,
        "add_form": add_form or {},
        "edit_form": edit_form or {},
    }
    try:
        context["staff_users"] = await service.list_staff(q)
    except BackendError as e:
        logger.error(f"Listing staff for {session.sub} failed: {e.message}")
        context["error"] = error or STAFF_LOAD_FAILED

    if edit:
        context["editing"] = next(
            (staff for staff in context["staff_users"] if staff.user_id == edit), None
        )
        if context["editing"] and not edit_form:
            context["edit_form"] = {
                "email": context["editing"].email or "",
                "status": context["editing"].status.value,
            }
    return render(request, "staff_management.html", status_code=status_code, **context)

def _admin_or_denied(request: Request, session: Optional[SessionPayload]):
    if not session or not session.is_admin:
        return _access_denied(request, session)
    return None

@router.get("/staff-management")
async def staff_management(
    request: Request,
    q: str = "",
    edit: str = "",
    delete: str = "",
    notice: str = "",
    session: Optional[SessionPayload] = Depends(get_optional_session),
    backend: ClinicBackend = Depends(get_backend)
):
    denied = _admin_or_denied(request, session)
    if denied:
        return denied
    service = StaffService(backend.with_caller(session.btk))
    return await _staff_management(
        request, session, service, q=q, edit=edit, confirm_delete=delete, notice=notice
    )

@router.post("/staff-management/create")
async def create_staff(
    request: Request,
    user_id: str = Form(""),
    password: str = Form(""),
    email: str = Form(""),
    session: Optional[SessionPayload] = Depends(get_optional_session),
    backend: ClinicBackend = Depends(get_backend)
):
    denied = _admin_or_denied(request, session)
    if denied:
        return denied
    service = StaffService(backend.with_caller(session.btk))
    add_form = {"user_id": user_id, "email": email}

    try:
        data = StaffCreate(user_id=user_id, password=password, email=email or None)
    except ValidationError as e:
        message = next(iter(form_errors(e).values()))
        return await _staff_management(request, session, service, error=message, add_form=add_form)

    try:
        await service.create_staff(data)
    except BackendError as e:
        logger.error(f"Creating staff account {user_id} failed: {e.message}")
        return await _staff_management(
            request, session, service,
            error=f"Failed to create staff account: {e.message}", add_form=add_form
        )
    return _redirect("/staff-management?notice=staff-created")

@router.post("/staff-management/{user_id}/update")
async def update_staff(
    request: Request,
    user_id: str,
    password: str = Form(""),
    email: str = Form(""),
    staff_status: ActivationStatus = Form(ActivationStatus.ACTIVATED, alias="status"),
    session: Optional[SessionPayload] = Depends(get_optional_session),
    backend: ClinicBackend = Depends(get_backend)
):
    denied = _admin_or_denied(request, session)
    if denied:
        return denied
    service = StaffService(backend.with_caller(session.btk))
    edit_form = {"email": email, "status": staff_status.value}

    try:
        data = StaffUpdate(password=password, email=email or None, status=staff_status)
    except ValidationError as e:
        message = next(iter(form_errors(e).values()))
        return await _staff_management(
            request, session, service, edit=user_id, error=message, edit_form=edit_form
        )

    try:
        await service.update_staff(user_id, data)
    except StaffNotFoundError:
        return await _staff_management(
            request, session, service,
            error="Staff account not found", status_code=status.HTTP_404_NOT_FOUND
        )
    except BackendError as e:
        logger.error(f"Updating staff account {user_id} failed: {e.message}")
        return await _staff_management(
            request, session, service, edit=user_id,
            error=f"Failed to update staff account: {e.message}", edit_form=edit_form
        )
    return _redirect("/staff-management?notice=staff-updated")

@router.post("/staff-management/{user_id}/delete")
async def delete_staff(
    request: Request,
    user_id: str,
    session: Optional[SessionPayload] = Depends(get_optional_session),
    backend: ClinicBackend = Depends(get_backend)
):
    denied = _admin_or_denied(request, session)
    if denied:
        return denied
    service = StaffService(backend.with_caller(session.btk))

    try:
        await service.delete_staff(user_id)
    except BackendError as e:
        logger.error(f"Deleting staff account {user_id} failed: {e.message}")
        return await _staff_management(
            request, session, service,
            error=f"Failed to delete staff account: {e.message}"
        )
    return _redirect("/staff-management?notice=staff-deleted")
