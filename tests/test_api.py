from decimal import Decimal

from conftest import TEST_PASSWORD

API = "/api"


class TestHealthAndErrors:
    """Test the application shell: health, auth guards and error bodies."""

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    async def test_missing_token(self, client):
        response = await client.get(f"{API}/auth/me")
        assert response.status_code == 401
        assert response.json() == {"message": "Not authorized, no token"}

    async def test_bad_token(self, client):
        response = await client.get(f"{API}/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
        assert response.json()["message"] == "Not authorized, token failed"

    async def test_user_cannot_reach_admin_routes(self, client, regular_user, auth_headers):
        headers = auth_headers(regular_user)
        for path in ("/admin/users", "/admin/parkings", "/admin/reports/entered-vehicles", "/admin/logs"):
            response = await client.get(f"{API}{path}", headers=headers)
            assert response.status_code == 403, path
            assert response.json()["message"].startswith("Forbidden")

    async def test_validation_error_body(self, client):
        response = await client.post(f"{API}/auth/register", json={"first_name": "Dana", "email": "nope"})
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation failed"
        fields = {error["field"] for error in body["errors"]}
        assert {"body.email", "body.password"} <= fields

    async def test_unknown_resource(self, client, admin_user, auth_headers):
        response = await client.get(f"{API}/admin/parkings/999", headers=auth_headers(admin_user))
        assert response.status_code == 404
        assert "message" in response.json()


class TestAuthFlow:
    """Test register, verify and login over HTTP."""

    async def test_register_verify_login(self, client, email_sender):
        response = await client.post(f"{API}/auth/register", json={
            "first_name": "Dana", "last_name": "Driver", "email": "Dana@Example.com", "password": "secret123",
        })
        assert response.status_code == 201
        user = response.json()
        assert user["email"] == "dana@example.com"
        assert user["role_name"] == "USER"
        assert "password_hash" not in user

        response = await client.post(f"{API}/auth/login", json={"email": "dana@example.com", "password": "secret123"})
        assert response.status_code == 403

        code = email_sender.last("verification")["code"]
        response = await client.post(f"{API}/auth/verify-email", json={"email": "dana@example.com", "code": code})
        assert response.status_code == 200

        response = await client.post(f"{API}/auth/login", json={"email": "dana@example.com", "password": "secret123"})
        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert "request_parking_slot" in body["permissions"]

        headers = {"Authorization": f"Bearer {body['access_token']}"}
        response = await client.get(f"{API}/auth/me", headers=headers)
        assert response.json()["user"]["email"] == "dana@example.com"

    async def test_duplicate_registration(self, client, regular_user):
        response = await client.post(f"{API}/auth/register", json={
            "first_name": "Dup", "email": "driver@example.com", "password": "secret123",
        })
        assert response.status_code == 409
        assert response.json() == {"message": "Email already in use"}

    async def test_wrong_password(self, client, regular_user):
        response = await client.post(f"{API}/auth/login", json={"email": "driver@example.com", "password": "wrong"})
        assert response.status_code == 401

    async def test_profile_update(self, client, regular_user, auth_headers):
        response = await client.put(
            f"{API}/users/profile",
            headers=auth_headers(regular_user),
            json={"current_password": TEST_PASSWORD, "new_password": "brandnew123"},
        )
        assert response.status_code == 200

        response = await client.post(
            f"{API}/auth/login", json={"email": "driver@example.com", "password": "brandnew123"}
        )
        assert response.status_code == 200


class TestGateFlow:
    """Test a vehicle driving in and out through the attendant endpoints."""

    async def test_entry_exit_and_bill(self, client, admin_user, attendant_user, auth_headers):
        admin = auth_headers(admin_user)
        attendant = auth_headers(attendant_user)

        response = await client.post(f"{API}/admin/parkings", headers=admin, json={
            "code": "p9", "name": "Harbour", "total_spaces": 1, "charge_per_hour": "3.00",
        })
        assert response.status_code == 201
        parking = response.json()
        assert parking["code"] == "P9"
        assert parking["available_spaces"] == 1

        response = await client.post(f"{API}/vehicle-entries/enter", headers=attendant, json={
            "plate_number": "rab123c", "parking_id": parking["id"],
        })
        assert response.status_code == 201
        body = response.json()
        entry = body["entry"]
        assert entry["plate_number"] == "RAB123C"
        assert entry["status"] == "PARKED"
        assert entry["recorded_by_name"] == "Sam Gate"
        assert body["parking"]["available_spaces"] == 0

        response = await client.post(f"{API}/vehicle-entries/enter", headers=attendant, json={
            "plate_number": "XYZ999", "parking_id": parking["id"],
        })
        assert response.status_code == 400
        assert "is full" in response.json()["message"]

        response = await client.get(f"{API}/vehicle-entries/{entry['id']}/entry-ticket", headers=attendant)
        assert response.status_code == 200
        assert f'filename="entry-ticket-{entry["ticket_number"]}.txt"' in response.headers["content-disposition"]
        assert entry["ticket_number"] in response.text

        response = await client.get(f"{API}/vehicle-entries/{entry['id']}/exit-bill", headers=attendant)
        assert response.status_code == 400

        response = await client.post(f"{API}/vehicle-entries/{entry['id']}/exit", headers=attendant)
        assert response.status_code == 200
        exited = response.json()["entry"]
        assert exited["status"] == "EXITED"
        assert exited["calculated_duration_minutes"] == 1
        assert Decimal(exited["charged_amount"]) == Decimal("3.00")

        response = await client.post(f"{API}/vehicle-entries/{entry['id']}/exit", headers=attendant)
        assert response.status_code == 400

        response = await client.get(f"{API}/vehicle-entries/{entry['id']}/exit-bill", headers=attendant)
        assert response.status_code == 200
        assert "attachment" in response.headers["content-disposition"]

        response = await client.get(f"{API}/admin/reports/exited-vehicles", headers=admin)
        report = response.json()
        assert report["summary"]["totalVehiclesExited"] == 1
        assert Decimal(report["summary"]["totalRevenue"]) == Decimal("3.00")
        assert report["pagination"] == {"currentPage": 1, "totalPages": 1, "totalItems": 1, "itemsPerPage": 10}

    async def test_user_cannot_record_entries(self, client, regular_user, parking, auth_headers):
        response = await client.post(f"{API}/vehicle-entries/enter", headers=auth_headers(regular_user), json={
            "plate_number": "RAB123C", "parking_id": parking.id,
        })
        assert response.status_code == 403


class TestSlotRequestFlow:
    """Test a driver asking for a slot and an admin approving it."""

    async def test_request_and_approve(self, client, admin_user, regular_user, auth_headers, email_sender):
        admin = auth_headers(admin_user)
        driver = auth_headers(regular_user)

        response = await client.post(f"{API}/parking-slots", headers=admin, json={
            "slot_number": "b-07", "size": "MEDIUM", "vehicle_type": "CAR", "cost_per_hour": "5.00",
        })
        assert response.status_code == 201
        slot = response.json()
        assert slot["slot_number"] == "B-07"

        response = await client.post(f"{API}/vehicles", headers=driver, json={
            "plate_number": "rab123c", "vehicle_type": "CAR", "size": "MEDIUM",
        })
        assert response.status_code == 201
        vehicle = response.json()

        response = await client.post(f"{API}/slot-requests", headers=driver, json={
            "vehicle_id": vehicle["id"], "parking_slot_id": slot["id"], "expected_duration_hours": 3,
        })
        assert response.status_code == 201
        slot_request = response.json()
        assert slot_request["status"] == "PENDING"
        assert Decimal(slot_request["calculated_cost"]) == Decimal("15.00")
        assert slot_request["vehicle"]["plate_number"] == "RAB123C"

        response = await client.patch(
            f"{API}/slot-requests/{slot_request['id']}/resolve", headers=driver, json={"status": "APPROVED"}
        )
        assert response.status_code == 403

        response = await client.patch(
            f"{API}/slot-requests/{slot_request['id']}/resolve", headers=admin, json={"status": "APPROVED"}
        )
        assert response.status_code == 200
        assert response.json()["status"] == "APPROVED"
        assert email_sender.last("slot_approval")["slot_number"] == "B-07"

        response = await client.get(f"{API}/auth/me", headers=driver)
        assert Decimal(response.json()["user"]["balance"]) == Decimal("85.00")

        response = await client.get(f"{API}/parking-slots/{slot['id']}", headers=admin)
        assert response.json()["status"] == "UNAVAILABLE"

        response = await client.get(f"{API}/slot-requests/{slot_request['id']}/ticket/download", headers=driver)
        assert response.status_code == 200
        assert "B-07" in response.text

        response = await client.get(f"{API}/slot-requests", headers=driver)
        body = response.json()
        assert body["pagination"]["totalItems"] == 1
        assert body["data"][0]["id"] == slot_request["id"]


class TestAdminUsers:
    """Test the admin user endpoints."""

    async def test_create_list_delete(self, client, admin_user, auth_headers):
        admin = auth_headers(admin_user)

        response = await client.post(f"{API}/admin/users", headers=admin, json={
            "first_name": "Sam", "last_name": "Gate", "email": "sam@example.com",
            "password": "secret123", "role_name": "PARKING_ATTENDANT",
        })
        assert response.status_code == 201
        created = response.json()
        assert created["role_name"] == "PARKING_ATTENDANT"

        response = await client.get(f"{API}/admin/users", headers=admin, params={"role": "PARKING_ATTENDANT"})
        assert [u["email"] for u in response.json()["data"]] == ["sam@example.com"]

        response = await client.delete(f"{API}/admin/users/{admin_user.id}", headers=admin)
        assert response.status_code == 400

        response = await client.delete(f"{API}/admin/users/{created['id']}", headers=admin)
        assert response.status_code == 200

        response = await client.get(f"{API}/admin/logs", headers=admin, params={"entityType": "User"})
        actions = {log["action"] for log in response.json()["data"]}
        assert {"User created by admin", "User deleted by admin"} <= actions

    async def test_roles(self, client, admin_user, auth_headers):
        response = await client.get(f"{API}/admin/roles", headers=auth_headers(admin_user))
        assert {role["name"] for role in response.json()} == {"ADMIN", "PARKING_ATTENDANT", "USER"}


class TestListings:
    """Test every list endpoint with its default ordering."""

    async def test_admin_lists_without_query(self, client, admin_user, regular_user, parking, slot, auth_headers):
        admin = auth_headers(admin_user)
        for path in (
            "/admin/users",
            "/admin/parkings",
            "/parking-slots",
            "/vehicle-entries",
            "/slot-requests",
            "/admin/logs",
            "/admin/reports/entered-vehicles",
            "/admin/reports/exited-vehicles",
        ):
            response = await client.get(f"{API}{path}", headers=admin)
            assert response.status_code == 200, path
            assert response.json()["pagination"]["currentPage"] == 1, path

    async def test_unknown_sort_falls_back(self, client, regular_user, vehicle, auth_headers):
        driver = auth_headers(regular_user)
        for params in ({}, {"sortBy": "nonsense", "order": "asc"}, {"sortBy": "plateNumber"}):
            response = await client.get(f"{API}/vehicles", headers=driver, params=params)
            assert response.status_code == 200, params
            assert [v["plate_number"] for v in response.json()["data"]] == ["RAB123C"]
