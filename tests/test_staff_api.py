class TestStaffAccess:

    def test_requires_session(self, client):
        response = client.get("/api/v1/staff")
        assert response.status_code == 401

    def test_requires_admin(self, staff_client):
        response = staff_client.get("/api/v1/staff")
        assert response.status_code == 403

class TestStaffManagement:

    def test_list_staff_hides_passwords(self, admin_client):
        response = admin_client.get("/api/v1/staff")
        assert response.status_code == 200

        data = response.json()
        assert {item["user_id"] for item in data} == {"admin", "nurse"}
        assert all("password" not in item for item in data)

    def test_search_staff(self, admin_client):
        response = admin_client.get("/api/v1/staff", params={"q": "NURSE@"})
        assert [item["user_id"] for item in response.json()] == ["nurse"]

    def test_create_staff(self, admin_client, actor):
        response = admin_client.post(
            "/api/v1/staff",
            json={"user_id": "reception", "password": "desk123", "email": "desk@vijayaclinic.in"}
        )
        assert response.status_code == 201
        assert response.json() == {
            "user_id": "reception",
            "email": "desk@vijayaclinic.in",
            "status": "activated"
        }
        assert actor.staff["reception"]["password"] == "desk123"

    def test_create_staff_requires_credentials(self, admin_client, actor):
        response = admin_client.post("/api/v1/staff", json={"user_id": " ", "password": ""})
        assert response.status_code == 422
        assert "reception" not in actor.staff

    def test_create_duplicate_staff(self, admin_client):
        response = admin_client.post("/api/v1/staff", json={"user_id": "nurse", "password": "x"})
        assert response.status_code == 502
        assert response.json()["message"] == "Staff user already exists"

    def test_update_staff_keeps_password_when_blank(self, admin_client, actor):
        response = admin_client.put(
            "/api/v1/staff/nurse",
            json={"password": "", "email": "ward@vijayaclinic.in", "status": "deactivated"}
        )
        assert response.status_code == 200
        assert response.json()["status"] == "deactivated"
        assert actor.staff["nurse"] == {
            "userId": "nurse",
            "password": "nurse123",
            "email": "ward@vijayaclinic.in",
            "status": "deactivated"
        }

    def test_update_staff_password(self, admin_client, actor):
        response = admin_client.put("/api/v1/staff/nurse", json={"password": "newpass"})
        assert response.status_code == 200
        assert actor.staff["nurse"]["password"] == "newpass"
        assert "email" not in actor.staff["nurse"]

    def test_update_unknown_staff(self, admin_client):
        response = admin_client.put("/api/v1/staff/ghost", json={"password": "x"})
        assert response.status_code == 404

    def test_cannot_set_deleted_status(self, admin_client):
        response = admin_client.put("/api/v1/staff/nurse", json={"status": "deleted"})
        assert response.status_code == 422

    def test_delete_staff(self, admin_client, actor):
        response = admin_client.delete("/api/v1/staff/nurse")
        assert response.status_code == 200
        assert actor.staff["nurse"]["status"] == "deleted"

        listed = admin_client.get("/api/v1/staff").json()
        assert "nurse" not in [item["user_id"] for item in listed]

    def test_deleted_staff_cannot_log_in(self, admin_client):
        admin_client.delete("/api/v1/staff/nurse")
        response = admin_client.post("/api/v1/auth/login", json={"user_id": "nurse", "password": "nurse123"})
        assert response.status_code == 401
