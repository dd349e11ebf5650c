"""Tests for /api/v1/receipts endpoints."""
from qgo_dispatch.schemas.session import AdminSession, DriverSession

FUEL_RECEIPT = {
    "jobId": "J101",
    "type": "FUEL",
    "amount": 2450.5,
    "description": "Diesel, NH48",
    "invoiceUrl": "INV-2026-001",
}


class TestLogReceipt:

    async def test_driver_logs_receipt(self, driver_client):
        response = await driver_client.post("/api/v1/receipts", json=FUEL_RECEIPT)
        assert response.status_code == 201
        data = response.json()
        assert data["driverId"] == "D1"
        assert data["status"] == "PENDING"
        assert data["date"].endswith("Z")

    async def test_admin_cannot_log(self, admin_client):
        response = await admin_client.post("/api/v1/receipts", json=FUEL_RECEIPT)
        assert response.status_code == 403

    async def test_invalid_amount(self, driver_client):
        response = await driver_client.post("/api/v1/receipts", json={**FUEL_RECEIPT, "amount": -5})
        assert response.status_code == 422


class TestListAndReview:

    async def test_drivers_only_see_own(self, client, session_store, settle):
        session_store.login(DriverSession(id="D1"))
        await client.post("/api/v1/receipts", json=FUEL_RECEIPT)
        session_store.login(DriverSession(id="D2"))
        await client.post("/api/v1/receipts", json={**FUEL_RECEIPT, "jobId": "J102"})
        await settle()

        data = (await client.get("/api/v1/receipts")).json()
        assert data["total"] == 1
        assert data["items"][0]["driverId"] == "D2"

        session_store.login(AdminSession())
        assert (await client.get("/api/v1/receipts")).json()["total"] == 2

    async def test_admin_approves_once(self, client, session_store, settle):
        session_store.login(DriverSession(id="D1"))
        receipt_id = (await client.post("/api/v1/receipts", json=FUEL_RECEIPT)).json()["id"]
        await settle()

        session_store.login(AdminSession())
        response = await client.post(f"/api/v1/receipts/{receipt_id}/review", json={"status": "APPROVED"})
        assert response.status_code == 200
        assert response.json()["status"] == "APPROVED"

        await settle()
        data = (await client.get("/api/v1/receipts", params={"status": "APPROVED"})).json()
        assert [r["id"] for r in data["items"]] == [receipt_id]

        response = await client.post(f"/api/v1/receipts/{receipt_id}/review", json={"status": "REJECTED"})
        assert response.status_code == 409

    async def test_review_must_decide(self, admin_client):
        response = await admin_client.post("/api/v1/receipts/R1/review", json={"status": "PENDING"})
        assert response.status_code == 422

    async def test_review_unknown(self, admin_client):
        response = await admin_client.post("/api/v1/receipts/R404/review", json={"status": "REJECTED"})
        assert response.status_code == 404

    async def test_driver_cannot_review(self, driver_client):
        response = await driver_client.post("/api/v1/receipts/R1/review", json={"status": "APPROVED"})
        assert response.status_code == 403
