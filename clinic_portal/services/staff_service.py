from typing import List
import logging

from ..core.backend import ClinicBackend
from ..models.user import ActivationStatus, StaffUser
from ..schemas.staff import StaffCreate, StaffUpdate
from ..utils.search_filter import filter_staff_by_search

logger = logging.getLogger(__name__)

class StaffNotFoundError(Exception):
    def __init__(self, user_id: str):
        super().__init__(f"Staff account {user_id} not found")
        self.user_id = user_id

class StaffService:
    """Staff account management, on behalf of an administrator."""

    def __init__(self, backend: ClinicBackend):
        self.backend = backend

    async def list_staff(self, search_query: str = "") -> List[StaffUser]:
        staff_users = await self.backend.get_all_active_staff_users()
        return filter_staff_by_search(staff_users, search_query)

    async def get_staff(self, user_id: str) -> StaffUser:
        for staff in await self.backend.get_all_active_staff_users():
            if staff.user_id == user_id:
                return staff
        raise StaffNotFoundError(user_id)

    async def create_staff(self, data: StaffCreate) -> StaffUser:
        staff = StaffUser(
            user_id=data.user_id,
            password=data.password,
            email=str(data.email) if data.email else None,
            status=ActivationStatus.ACTIVATED,
        )
        await self.backend.create_staff_user(staff)
        logger.info(f"Staff account {staff.user_id} created")
        return staff

    async def update_staff(self, user_id: str, data: StaffUpdate) -> StaffUser:
        existing = await self.get_staff(user_id)
        updated = StaffUser(
            user_id=existing.user_id,
            password=data.password.strip() or existing.password,
            email=str(data.email) if data.email else None,
            status=data.status,
        )
        await self.backend.update_staff_user(user_id, updated)
        logger.info(f"Staff account {user_id} updated (status {updated.status.value})")
        return updated

    async def delete_staff(self, user_id: str):
        await self.backend.delete_staff_user(user_id)
        logger.info(f"Staff account {user_id} deleted")
