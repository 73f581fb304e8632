import os

# Set testing environment variables before the app is imported
os.environ["TESTING"] = "1"
os.environ["BACKEND_RETRY_DELAY"] = "0"

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from clinic_portal.main import app
from clinic_portal.core.backend import ClinicBackend, get_backend
from clinic_portal.core.cache import get_redis
from .fakes import FakeClinicActor, FakeRedis

@pytest.fixture
def actor():
    return FakeClinicActor()

@pytest.fixture
def fake_redis():
    return FakeRedis()

@pytest_asyncio.fixture
async def backend(actor):
    """A real ClinicBackend talking to the fake actor."""
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(actor.handle),
        base_url="http://backend"
    ) as http_client:
        yield ClinicBackend(http_client)

@pytest.fixture
def client(actor, fake_redis):
    async def override_get_backend():
        async with httpx.AsyncClient(
            transport=httpx.MockTransport(actor.handle),
            base_url="http://backend"
        ) as http_client:
            yield ClinicBackend(http_client)

    app.dependency_overrides[get_backend] = override_get_backend
    app.dependency_overrides[get_redis] = lambda: fake_redis
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()

@pytest.fixture
def login_as(client):
    """Sign the test client in through the JSON API; the session cookie sticks."""
    def _login(user_id="nurse", password="nurse123", path="/api/v1/auth/login"):
        response = client.post(path, json={"user_id": user_id, "password": password})
        assert response.status_code == 200, response.text
        return response
    return _login

@pytest.fixture
def staff_client(client, login_as):
    """Client signed in as a regular staff member."""
    login_as()
    return client

@pytest.fixture
def admin_client(client, login_as):
    login_as("admin", "admin123", path="/api/v1/auth/admin-login")
    return client
