from datetime import timedelta
import httpx

from clinic_portal.core.config import settings
from clinic_portal.core.security import PortalRole, create_session_token, verify_session_token
from clinic_portal.services.auth_service import (
    ADMIN_REQUIRED, INVALID_CREDENTIALS, LOGIN_FAILED, LOGIN_TIMEOUT, MISSING_CREDENTIALS
)

# Test data
staff_login_data = {
    "user_id": "nurse",
    "password": "nurse123"
}

admin_login_data = {
    "user_id": "admin",
    "password": "admin123"
}

class TestSessionTokens:

    def test_round_trip(self):
        token = create_session_token("nurse", PortalRole.STAFF, "caller-nurse")
        session = verify_session_token(token)
        assert session.sub == "nurse"
        assert session.role == PortalRole.STAFF
        assert session.btk == "caller-nurse"
        assert not session.is_admin
        assert 0 < session.seconds_remaining <= settings.SESSION_EXPIRE_HOURS * 3600

    def test_expired_token(self):
        token = create_session_token("nurse", PortalRole.STAFF, "caller-nurse", timedelta(seconds=-5))
        assert verify_session_token(token) is None

    def test_garbage_token(self):
        assert verify_session_token("invalid_token") is None

class TestLogin:

    def test_login_success(self, client):
        """Test successful staff login."""
        response = client.post("/api/v1/auth/login", json=staff_login_data)
        assert response.status_code == 200

        data = response.json()
        assert data["user_id"] == "nurse"
        assert data["role"] == "staff"
        assert client.cookies.get(settings.SESSION_COOKIE_NAME)

    def test_admin_gets_admin_session_from_staff_login(self, client):
        response = client.post("/api/v1/auth/login", json=admin_login_data)
        assert response.status_code == 200
        assert response.json()["role"] == "admin"

    def test_login_invalid_credentials(self, client):
        """Test login with a wrong password."""
        response = client.post("/api/v1/auth/login", json={"user_id": "nurse", "password": "wrong"})
        assert response.status_code == 401
        assert response.json()["detail"] == INVALID_CREDENTIALS

    def test_login_missing_credentials(self, client, actor):
        response = client.post("/api/v1/auth/login", json={"user_id": "  ", "password": ""})
        assert response.status_code == 401
        assert response.json()["detail"] == MISSING_CREDENTIALS
        assert actor.calls == []

    def test_login_deactivated_account(self, client, actor):
        actor.add_staff("reception", "desk123", status="deactivated")
        response = client.post("/api/v1/auth/login", json={"user_id": "reception", "password": "desk123"})
        assert response.status_code == 401

    def test_login_backend_failure(self, client, actor):
        actor.fail("authenticateStaff", "Canister trapped")
        response = client.post("/api/v1/auth/login", json=staff_login_data)
        assert response.status_code == 401
        assert response.json()["detail"] == LOGIN_FAILED

    def test_login_timeout(self, client, actor):
        def on_call(method, params):
            if method == "authenticateStaff":
                raise httpx.ReadTimeout("timed out")

        actor.on_call = on_call
        response = client.post("/api/v1/auth/login", json=staff_login_data)
        assert response.status_code == 401
        assert response.json()["detail"] == LOGIN_TIMEOUT

    def test_login_refused_by_backend(self, client, actor):
        """An authorization error from the backend reads as bad credentials."""
        actor.fail("authenticateStaff", "Unauthorized: caller rejected")
        response = client.post("/api/v1/auth/login", json=staff_login_data)
        assert response.status_code == 401
        assert response.json()["detail"] == INVALID_CREDENTIALS

    def test_login_rate_limited(self, client):
        for _ in range(settings.RATE_LIMIT_MAX_REQUESTS):
            response = client.post("/api/v1/auth/login", json={"user_id": "nurse", "password": "wrong"})
            assert response.status_code == 401

        response = client.post("/api/v1/auth/login", json=staff_login_data)
        assert response.status_code == 429

class TestAdminLogin:

    def test_admin_login_success(self, client):
        response = client.post("/api/v1/auth/admin-login", json=admin_login_data)
        assert response.status_code == 200
        assert response.json()["role"] == "admin"

    def test_admin_login_refuses_staff(self, client):
        response = client.post("/api/v1/auth/admin-login", json=staff_login_data)
        assert response.status_code == 403
        assert response.json()["detail"] == ADMIN_REQUIRED
        assert not client.cookies.get(settings.SESSION_COOKIE_NAME)

class TestSession:

    def test_get_current_session(self, staff_client):
        """Test getting the signed-in staff member."""
        response = staff_client.get("/api/v1/auth/me")
        assert response.status_code == 200

        data = response.json()
        assert data["user_id"] == "nurse"
        assert data["role"] == "staff"
        assert data["profile_name"] is None

    def test_bearer_token(self, client, login_as):
        login_as()
        token = client.cookies.get(settings.SESSION_COOKIE_NAME)
        client.cookies.clear()

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["user_id"] == "nurse"

    def test_not_authenticated(self, client):
        response = client.get("/api/v1/auth/me")
        assert response.status_code == 401

    def test_invalid_token(self, client):
        """Test get current session with invalid token."""
        headers = {"Authorization": "Bearer invalid_token"}
        response = client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 401

    def test_logout_revokes_session(self, staff_client):
        """Test staff logout."""
        token = staff_client.cookies.get(settings.SESSION_COOKIE_NAME)

        response = staff_client.post("/api/v1/auth/logout")
        assert response.status_code == 200

        response = staff_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

class TestProfile:

    def test_profile_not_set_up(self, admin_client):
        response = admin_client.get("/api/v1/auth/profile")
        assert response.status_code == 200
        assert response.json() is None

    def test_save_profile(self, admin_client):
        response = admin_client.put("/api/v1/auth/profile", json={"name": "  Dr. K. Manickavinayagar "})
        assert response.status_code == 200
        assert response.json() == {"name": "Dr. K. Manickavinayagar"}

        assert admin_client.get("/api/v1/auth/profile").json() == {"name": "Dr. K. Manickavinayagar"}
        assert admin_client.get("/api/v1/auth/me").json()["profile_name"] == "Dr. K. Manickavinayagar"

    def test_blank_name_rejected(self, admin_client):
        response = admin_client.put("/api/v1/auth/profile", json={"name": "   "})
        assert response.status_code == 422
