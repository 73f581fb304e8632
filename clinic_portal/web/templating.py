from datetime import date, datetime
from pathlib import Path
from fastapi.templating import Jinja2Templates

from ..core.config import settings
from ..models.appointment import TIME_SLOTS, AppointmentStatus
from ..models.user import ActivationStatus

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

CLINIC = {
    "name": "Vijaya Children's Clinic",
    "tagline": "Growing Healthy Futures",
    "tagline_ta": "குழந்தை நலனே எங்கள் முதன்மை",
    "doctor": "DR. K. MANICKAVINAYAGAR M.B.B.S, M.D.",
    "specialty": "Consultant Paediatrician - New Born and Child Specialist",
    "registration": "Reg.No: 152853",
    "phone": "93637 16343",
    "phone_href": "tel:9363716343",
    "timings": "Mon to Sat | 7 PM to 9 PM",
    "sunday_note": "Sundays on appointment",
    "address": ["No.1, 1st street, Balaji Nagar,", "Anakaputhur, Chennai - 600 070"],
    "services": ["Newborn Care", "Vaccination", "Fever / Infection", "Nebulization", "Dentailsation"],
    "additional_services": ["Vaccination", "Nebulisation", "Growth Monitoring", "Nutrition Advice"],
}

NAV_ITEMS = [
    {"label": "Home", "path": "/"},
    {"label": "Book Appointment", "path": "/book"},
    {"label": "Staff", "path": "/staff"},
]

def format_date(value: date) -> str:
    """February 3, 2025"""
    return f"{value:%B} {value.day}, {value.year}"

def format_submission_time(value: datetime) -> str:
    """Feb 3, 2025, 07:15 PM in clinic time."""
    local = value.astimezone(settings.clinic_tz)
    return f"{local:%b} {local.day}, {local.year}, {local:%I:%M %p}"

def pluralize(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["format_date"] = format_date
templates.env.filters["format_submission_time"] = format_submission_time
templates.env.globals.update(
    clinic=CLINIC,
    nav_items=NAV_ITEMS,
    time_slots=TIME_SLOTS,
    appointment_statuses=list(AppointmentStatus),
    activation_statuses=[ActivationStatus.ACTIVATED, ActivationStatus.DEACTIVATED],
    pluralize=pluralize,
    current_year=lambda: datetime.now(settings.clinic_tz).year,
)

def render(request, template_name: str, status_code: int = 200, **context):
    context.setdefault("current_path", request.url.path)
    return templates.TemplateResponse(request, template_name, context, status_code=status_code)
