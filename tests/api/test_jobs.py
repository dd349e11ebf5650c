"""Tests for /api/v1/jobs endpoints."""
from qgo_dispatch.schemas.session import DriverSession


class TestListJobs:

    async def test_requires_login(self, client):
        response = await client.get("/api/v1/jobs")
        assert response.status_code == 401

    async def test_admin_lists_all(self, admin_client):
        data = (await admin_client.get("/api/v1/jobs")).json()
        assert data["total"] == 2

    async def test_admin_filters(self, admin_client):
        data = (await admin_client.get("/api/v1/jobs", params={"status": "PENDING"})).json()
        assert [j["id"] for j in data["items"]] == ["J102"]

        data = (await admin_client.get("/api/v1/jobs", params={"driver_id": "D1"})).json()
        assert [j["id"] for j in data["items"]] == ["J101"]

    async def test_driver_only_sees_own_jobs(self, driver_client):
        data = (await driver_client.get("/api/v1/jobs", params={"driver_id": "D2"})).json()
        assert [j["id"] for j in data["items"]] == ["J101"]

    async def test_stored_shape(self, admin_client):
        data = (await admin_client.get("/api/v1/jobs", params={"status": "IN_PROGRESS"})).json()
        job = data["items"][0]
        assert job["driverId"] == "D1"
        assert job["startTime"].endswith("Z")
        assert job["endTime"] is None


class TestGetJob:

    async def test_driver_gets_own_job(self, driver_client):
        response = await driver_client.get("/api/v1/jobs/J101")
        assert response.status_code == 200
        assert response.json()["origin"] == "Delhi Hub"

    async def test_driver_cannot_see_other_job(self, driver_client):
        response = await driver_client.get("/api/v1/jobs/J102")
        assert response.status_code == 403

    async def test_not_found(self, admin_client):
        response = await admin_client.get("/api/v1/jobs/J999")
        assert response.status_code == 404


class TestCreateJob:

    async def test_admin_creates_pending_job(self, admin_client, settle):
        response = await admin_client.post(
            "/api/v1/jobs",
            json={"driverId": "D3", "origin": "Nagpur", "destination": "Raipur"},
        )
        assert response.status_code == 201
        job = response.json()
        assert job["status"] == "PENDING"
        assert job["assignedAt"].endswith("Z")
        assert job["startTime"] is None

        await settle()
        listed = (await admin_client.get("/api/v1/jobs")).json()
        assert listed["total"] == 3

    async def test_driver_cannot_create(self, driver_client):
        response = await driver_client.post(
            "/api/v1/jobs",
            json={"driverId": "D1", "origin": "A", "destination": "B"},
        )
        assert response.status_code == 403

    async def test_unknown_driver(self, admin_client):
        response = await admin_client.post(
            "/api/v1/jobs",
            json={"driverId": "D99", "origin": "A", "destination": "B"},
        )
        assert response.status_code == 400

    async def test_duplicate_id(self, admin_client):
        response = await admin_client.post(
            "/api/v1/jobs",
            json={"id": "J101", "driverId": "D1", "origin": "A", "destination": "B"},
        )
        assert response.status_code == 409

    async def test_missing_fields(self, admin_client):
        response = await admin_client.post("/api/v1/jobs", json={"driverId": "D1"})
        assert response.status_code == 422

    async def test_fixture_mode_is_read_only(self, fixture_client, session_store):
        from qgo_dispatch.schemas.session import AdminSession

        session_store.login(AdminSession())
        response = await fixture_client.post(
            "/api/v1/jobs",
            json={"driverId": "D1", "origin": "A", "destination": "B"},
        )
        assert response.status_code == 503


class TestAdvanceStatus:

    async def test_driver_starts_own_job(self, client, session_store, memory_store):
        session_store.login(DriverSession(id="D2"))
        response = await client.post("/api/v1/jobs/J102/status", json={"status": "IN_PROGRESS"})
        assert response.status_code == 200
        assert response.json()["startTime"] is not None
        assert (await memory_store.get("drivers", "D2"))["status"] == "ON_JOB"

    async def test_driver_cannot_advance_other_job(self, driver_client):
        response = await driver_client.post("/api/v1/jobs/J102/status", json={"status": "IN_PROGRESS"})
        assert response.status_code == 403

    async def test_complete_running_job(self, driver_client, memory_store):
        response = await driver_client.post("/api/v1/jobs/J101/status", json={"status": "COMPLETED"})
        assert response.status_code == 200
        job = response.json()
        assert job["status"] == "COMPLETED"
        assert job["endTime"] is not None
        assert job["currentLocation"]["lat"] == 28.6139
        assert (await memory_store.get("drivers", "D1"))["status"] == "ONLINE"

    async def test_invalid_transition(self, admin_client):
        response = await admin_client.post("/api/v1/jobs/J102/status", json={"status": "COMPLETED"})
        assert response.status_code == 409

    async def test_unknown_job(self, admin_client):
        response = await admin_client.post("/api/v1/jobs/J404/status", json={"status": "CANCELLED"})
        assert response.status_code == 404

    async def test_unknown_status(self, admin_client):
        response = await admin_client.post("/api/v1/jobs/J102/status", json={"status": "PAUSED"})
        assert response.status_code == 422
