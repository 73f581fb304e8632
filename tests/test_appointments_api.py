from datetime import date, timedelta

from clinic_portal.utils.date_filters import clinic_today
from .fakes import wire_appointment

def next_clinic_day(days=1):
    day = clinic_today() + timedelta(days=days)
    if day.weekday() == 6:
        day += timedelta(days=1)
    return day

def booking_data(**overrides):
    data = {
        "parent_name": "Lakshmi Narayanan",
        "child_name": "Arjun",
        "child_age": 4,
        "phone_number": "9876543210",
        "email": "lakshmi@example.com",
        "preferred_date": next_clinic_day().isoformat(),
        "preferred_time": "07:15 PM",
        "reason": "Fever and cough"
    }
    data.update(overrides)
    return data

class TestCreateAppointment:

    def test_create_appointment(self, client, actor):
        """Anyone can submit an appointment request."""
        response = client.post("/api/v1/appointments", json=booking_data())
        assert response.status_code == 201

        sent = actor.appointments[0]
        assert sent["childName"] == "Arjun"
        assert sent["childAge"] == 4
        assert sent["status"] == "pending"
        assert sent["email"] == "lakshmi@example.com"

    def test_missing_fields(self, client, actor):
        response = client.post("/api/v1/appointments", json=booking_data(parent_name="", preferred_time=""))
        assert response.status_code == 422
        messages = [error["msg"] for error in response.json()["detail"]]
        assert any("Parent/Guardian name is required" in message for message in messages)
        assert any("Please select a preferred time" in message for message in messages)
        assert actor.appointments == []

    def test_past_date_rejected(self, client):
        yesterday = clinic_today() - timedelta(days=1)
        response = client.post("/api/v1/appointments", json=booking_data(preferred_date=yesterday.isoformat()))
        assert response.status_code == 422

    def test_unknown_time_slot_rejected(self, client):
        response = client.post("/api/v1/appointments", json=booking_data(preferred_time="10:00 AM"))
        assert response.status_code == 422

    def test_backend_failure(self, client, actor):
        actor.fail("createAppointment", "Canister trapped")
        response = client.post("/api/v1/appointments", json=booking_data())
        assert response.status_code == 502
        assert response.json()["message"] == "Canister trapped"

class TestListAppointments:

    def test_requires_session(self, client):
        response = client.get("/api/v1/appointments")
        assert response.status_code == 401

    def test_list_appointments(self, staff_client, actor):
        actor.appointments = [
            wire_appointment(child_name="Arjun"),
            wire_appointment(child_name="Meena", parent_name="Priya Raman"),
        ]
        response = staff_client.get("/api/v1/appointments")
        assert response.status_code == 200

        data = response.json()
        assert [(item["index"], item["child_name"]) for item in data] == [(0, "Arjun"), (1, "Meena")]
        assert data[0]["preferred_date"] == "2025-02-05"
        assert data[0]["status"] == "pending"

    def test_search_and_custom_range(self, staff_client, actor):
        actor.appointments = [
            wire_appointment(child_name="Arjun", preferred_date=date(2025, 2, 5)),
            wire_appointment(child_name="Meena", parent_name="Priya Raman", preferred_date=date(2025, 2, 10)),
            wire_appointment(child_name="Kavya", parent_name="Priya Raman", preferred_date=date(2025, 3, 10)),
        ]
        response = staff_client.get(
            "/api/v1/appointments",
            params={"range": "custom", "start": "2025-02-01", "end": "2025-02-28", "q": "priya"}
        )
        assert response.status_code == 200
        assert [(item["index"], item["child_name"]) for item in response.json()] == [(1, "Meena")]

    def test_backend_refuses_caller(self, staff_client, actor):
        actor.roles["nurse"] = "guest"
        response = staff_client.get("/api/v1/appointments")
        assert response.status_code == 403
        assert "Unauthorized" in response.json()["message"]

class TestUpdateStatus:

    def test_update_status(self, staff_client, actor):
        actor.appointments = [wire_appointment(), wire_appointment(child_name="Meena")]
        response = staff_client.patch("/api/v1/appointments/1/status", json={"status": "confirmed"})
        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
        assert actor.appointments[1]["status"] == "confirmed"

        listed = staff_client.get("/api/v1/appointments").json()
        assert listed[1]["status"] == "confirmed"

    def test_invalid_status(self, staff_client, actor):
        actor.appointments = [wire_appointment()]
        response = staff_client.patch("/api/v1/appointments/0/status", json={"status": "archived"})
        assert response.status_code == 422

    def test_unknown_index(self, staff_client, actor):
        actor.appointments = [wire_appointment()]
        response = staff_client.patch("/api/v1/appointments/5/status", json={"status": "confirmed"})
        assert response.status_code == 404
        assert response.json()["message"] == "Appointment not found"

    def test_backend_failure_rolls_back(self, staff_client, actor):
        actor.appointments = [wire_appointment()]
        staff_client.get("/api/v1/appointments")
        actor.fail("updateAppointmentStatus", "Update rejected")

        response = staff_client.patch("/api/v1/appointments/0/status", json={"status": "cancelled"})
        assert response.status_code == 502

        listed = staff_client.get("/api/v1/appointments").json()
        assert listed[0]["status"] == "pending"
        assert actor.methods_called().count("listAppointments") == 1
