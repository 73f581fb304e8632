from typing import List
from fastapi import APIRouter, Depends, HTTPException, status

from ...core.backend import ClinicBackend
from ...api.deps import get_caller_backend, require_admin
from ...services.staff_service import StaffNotFoundError, StaffService
from ...schemas.staff import StaffCreate, StaffResponse, StaffUpdate

# Admin routes
router = APIRouter(
    prefix="/staff",
    tags=["Staff Management"],
    dependencies=[Depends(require_admin)]
)

@router.get("", response_model=List[StaffResponse])
async def list_staff(
    q: str = "",
    backend: ClinicBackend = Depends(get_caller_backend)
):
    """List active staff accounts, optionally filtered by user ID or email."""
    staff_users = await StaffService(backend).list_staff(q)
    return [StaffResponse.from_staff(staff) for staff in staff_users]

@router.post("", response_model=StaffResponse, status_code=status.HTTP_201_CREATED)
async def create_staff(
    staff_data: StaffCreate,
    backend: ClinicBackend = Depends(get_caller_backend)
):
    """Create a staff account."""
    staff = await StaffService(backend).create_staff(staff_data)
    return StaffResponse.from_staff(staff)

@router.put("/{user_id}", response_model=StaffResponse)
async def update_staff(
    user_id: str,
    staff_data: StaffUpdate,
    backend: ClinicBackend = Depends(get_caller_backend)
):
    """Update email, status or password of a staff account."""
    try:
        staff = await StaffService(backend).update_staff(user_id, staff_data)
    except StaffNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Staff account not found"
        )
    return StaffResponse.from_staff(staff)

@router.delete("/{user_id}")
async def delete_staff(
    user_id: str,
    backend: ClinicBackend = Depends(get_caller_backend)
):
    """Mark a staff account as deleted."""
    await StaffService(backend).delete_staff(user_id)
    return {"message": "Staff account deleted successfully"}
