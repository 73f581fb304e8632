from typing import List, Sequence

from ..models.appointment import AppointmentRequest
from ..models.user import StaffUser

def filter_appointments_by_search(
    appointments: Sequence[AppointmentRequest],
    search_query: str
) -> List[AppointmentRequest]:
    """Match the query against parent name, child name and phone number."""
    query = (search_query or "").strip().lower()
    if not query:
        return list(appointments)

    return [
        appointment for appointment in appointments
        if query in appointment.parent_name.lower()
        or query in appointment.child_name.lower()
        or query in appointment.phone_number.lower()
    ]

def filter_staff_by_search(staff_users: Sequence[StaffUser], search_query: str) -> List[StaffUser]:
    """Match the query against user ID and email."""
    query = (search_query or "").strip().lower()
    if not query:
        return list(staff_users)

    return [
        staff for staff in staff_users
        if query in staff.user_id.lower()
        or (staff.email is not None and query in staff.email.lower())
    ]
