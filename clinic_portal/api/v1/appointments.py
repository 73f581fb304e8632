from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...core.backend import ClinicBackend, get_backend
from ...core.cache import get_redis
from ...core.security import SessionPayload
from ...api.deps import get_caller_backend, get_current_session, rate_limit_check
from ...services.appointment_service import AppointmentNotFoundError, AppointmentService
from ...schemas.appointment import AppointmentCreate, AppointmentResponse, StatusUpdate
from ...utils.date_filters import DateFilter, DateFilterType

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_appointment(
    form: AppointmentCreate,
    backend: ClinicBackend = Depends(get_backend),
    redis_client = Depends(get_redis),
    _: None = Depends(rate_limit_check)
):
    """Submit an appointment request (public)."""
    await AppointmentService(backend, redis_client).create_appointment(form)
    return {"message": "Appointment request received"}

@router.get("", response_model=List[AppointmentResponse])
async def list_appointments(
    date_range: DateFilterType = Query(DateFilterType.ALL, alias="range"),
    start: Optional[date] = None,
    end: Optional[date] = None,
    q: str = "",
    session: SessionPayload = Depends(get_current_session),
    backend: ClinicBackend = Depends(get_caller_backend),
    redis_client = Depends(get_redis)
):
    """List appointments filtered by date range and search text (staff)."""
    service = AppointmentService(backend, redis_client, owner=session.sub)
    date_filter = DateFilter(type=date_range, start_date=start, end_date=end)
    records = await service.filtered_appointments(date_filter, q)
    return [AppointmentResponse(**record.model_dump()) for record in records]

@router.patch("/{index}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    index: int,
    update: StatusUpdate,
    session: SessionPayload = Depends(get_current_session),
    backend: ClinicBackend = Depends(get_caller_backend),
    redis_client = Depends(get_redis)
):
    """Change an appointment's status (staff).

    Backend failures surface through the app's backend error handler after
    the cached list has been restored.
    """
    service = AppointmentService(backend, redis_client, owner=session.sub)
    try:
        record = await service.update_status(index, update.status)
    except AppointmentNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Appointment not found"
        )
    return AppointmentResponse(**record.model_dump())
