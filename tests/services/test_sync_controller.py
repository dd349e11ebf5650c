"""Tests for SyncController -- live mirror, error banner and mutations."""
import logging

import pytest

from qgo_dispatch.core.exceptions import (
    AlreadyExists,
    InvalidTransition,
    NotFound,
    StoreUnconfigured,
)
from qgo_dispatch.core.security import is_hashed, verify_password
from qgo_dispatch.models.enums import DriverStatus, JobStatus, ReceiptStatus, ReceiptType
from qgo_dispatch.schemas.driver import DriverCreate, DriverUpdate
from qgo_dispatch.schemas.job import JobCreate
from qgo_dispatch.schemas.receipt import ReceiptCreate
from qgo_dispatch.schemas.session import DriverSession
from qgo_dispatch.services.fixtures import build_fixtures
from qgo_dispatch.services.store import MemoryDocumentStore
from qgo_dispatch.services.store.base import Snapshot
from qgo_dispatch.services.sync import PERMISSION_DENIED_MESSAGE, SyncController


class TestFixtureMode:

    async def test_mirror_equals_fixtures(self, fixture_controller):
        fixtures = build_fixtures()
        state = fixture_controller.state
        assert state.loading is False
        assert set(state.drivers) == {d.id for d in fixtures.drivers}
        assert {j.id for j in state.jobs} == {j.id for j in fixtures.jobs}
        assert fixture_controller.configured is False

    async def test_no_subscriptions_opened(self, fixture_controller):
        assert fixture_controller.subscriptions == ()

    async def test_ready_immediately(self, fixture_controller):
        assert await fixture_controller.wait_until_ready(timeout=0.01) is True

    async def test_mutations_rejected(self, fixture_controller):
        with pytest.raises(StoreUnconfigured):
            await fixture_controller.add_job(JobCreate(driver_id="D1", origin="A", destination="B"))
        with pytest.raises(StoreUnconfigured):
            await fixture_controller.report_location("D1", 1.0, 2.0)

    async def test_start_restores_session(self, session_store, local_storage):
        local_storage.set_item("qgo_user", {"role": "DRIVER", "id": "D2"})
        ctrl = SyncController(None, session_store)
        await ctrl.start()
        assert session_store.current == DriverSession(id="D2")


class TestLiveMirror:

    async def test_three_subscriptions(self, controller, memory_store):
        assert [s.collection for s in controller.subscriptions] == ["drivers", "jobs", "receipts"]
        assert memory_store.subscriber_count() == 3

    async def test_initial_snapshot_loaded(self, controller):
        state = controller.state
        assert state.loading is False
        assert set(state.drivers) == {"D1", "D2", "D3"}
        assert {j.id for j in state.jobs} == {"J101", "J102"}

    async def test_remote_change_reaches_mirror(self, controller, memory_store, settle):
        await memory_store.patch("drivers", "D3", {"status": "ONLINE"})
        await settle()
        assert controller.find_driver("D3").status == DriverStatus.ONLINE

    async def test_remote_delete_shrinks_mirror(self, controller, memory_store, settle):
        await memory_store.delete("jobs", "J102")
        await settle()
        assert controller.find_job("J102") is None
        assert [j.id for j in controller.state.jobs] == ["J101"]

    async def test_stop_closes_subscriptions(self, memory_store, session_store):
        ctrl = SyncController(memory_store, session_store)
        await ctrl.start()
        await ctrl.wait_until_ready(timeout=1)
        subscriptions = ctrl.subscriptions

        await ctrl.stop()
        assert all(s.closed for s in subscriptions)
        assert memory_store.subscriber_count() == 0

    async def test_lookups(self, controller):
        assert controller.find_driver("D1").name == "Rajesh Kumar"
        assert controller.find_driver("nope") is None
        assert [j.id for j in controller.jobs_for_driver("D2")] == ["J102"]
        assert controller.receipts_for_driver("D1") == []


class TestPermissionDenied:

    async def test_denied_store_shows_banner(self, session_store):
        store = MemoryDocumentStore()
        store.deny("drivers")
        ctrl = SyncController(store, session_store)
        await ctrl.start()

        assert await ctrl.wait_until_ready(timeout=1)
        assert ctrl.state.error == PERMISSION_DENIED_MESSAGE
        assert ctrl.state.show_remediation is True
        assert ctrl.state.loading is False
        await ctrl.stop()

    async def test_revoked_access_keeps_last_mirror(self, controller, memory_store):
        memory_store.deny("jobs")
        assert controller.state.error == PERMISSION_DENIED_MESSAGE
        assert {j.id for j in controller.state.jobs} == {"J101", "J102"}

    async def test_dismiss_hides_prompt_only(self, controller, memory_store):
        memory_store.deny("jobs")
        controller.dismiss_remediation()
        assert controller.state.show_remediation is False
        assert controller.state.error == PERMISSION_DENIED_MESSAGE

    async def test_drivers_snapshot_clears_banner(self, controller, memory_store, settle):
        memory_store.deny("drivers")
        assert controller.state.error is not None

        memory_store.allow("drivers")
        await memory_store.patch("drivers", "D1", {"phone": "+91 0000000000"})
        await settle()
        assert controller.state.error is None


class TestMutations:

    async def test_add_job_with_generated_id(self, controller, settle):
        job = await controller.add_job(JobCreate(driver_id="D3", origin="Nagpur", destination="Indore"))
        assert job.status == JobStatus.PENDING
        assert job.start_time is None

        await settle()
        mirrored = controller.find_job(job.id)
        assert mirrored is not None
        assert mirrored.assigned_at == job.assigned_at
        assert mirrored.driver_id == "D3"

    async def test_add_job_with_explicit_id(self, controller, memory_store):
        job = await controller.add_job(JobCreate(id="J200", driver_id="D1", origin="A", destination="B"))
        assert job.id == "J200"
        assert (await memory_store.get("jobs", "J200"))["driverId"] == "D1"

    async def test_add_job_duplicate_id(self, controller):
        with pytest.raises(AlreadyExists):
            await controller.add_job(JobCreate(id="J101", driver_id="D1", origin="A", destination="B"))

    async def test_add_driver_hashes_password(self, controller, memory_store, settle):
        driver = await controller.add_driver(
            DriverCreate(id="D4", name="Vikram", vehicle_no="KA-01-1111", password="pw")
        )
        assert driver.status == DriverStatus.OFFLINE

        stored = await memory_store.get("drivers", "D4")
        assert is_hashed(stored["password"])
        assert verify_password("pw", stored["password"])

        await settle()
        assert controller.find_driver("D4") is not None

    async def test_add_driver_duplicate_id(self, controller):
        with pytest.raises(AlreadyExists):
            await controller.add_driver(DriverCreate(id="D1", name="X", vehicle_no="Y"))

    async def test_update_driver(self, controller):
        driver = await controller.update_driver("D3", DriverUpdate(phone="+91 1111111111"))
        assert driver.phone == "+91 1111111111"
        assert driver.name == "Suresh Patil"

    async def test_update_missing_driver(self, controller):
        with pytest.raises(NotFound):
            await controller.update_driver("D99", DriverUpdate(name="Ghost"))

    async def test_delete_driver(self, controller, memory_store, settle):
        await controller.delete_driver("D3")
        await settle()
        assert controller.find_driver("D3") is None

    async def test_report_location(self, controller, memory_store):
        location = await controller.report_location("D3", 18.52, 73.85)
        assert location.timestamp is not None

        stored = await memory_store.get("drivers", "D3")
        assert stored["lastKnownLocation"]["lat"] == 18.52
        assert stored["lastKnownLocation"]["timestamp"] == location.timestamp

    async def test_log_and_review_receipt(self, controller, settle):
        receipt = await controller.log_receipt(
            "D1",
            ReceiptCreate(job_id="J101", type=ReceiptType.FUEL, amount=1500, invoice_url="INV-1"),
        )
        assert receipt.driver_id == "D1"
        assert receipt.status == ReceiptStatus.PENDING

        await settle()
        assert [r.id for r in controller.receipts_for_driver("D1")] == [receipt.id]

        reviewed = await controller.review_receipt(receipt.id, ReceiptStatus.APPROVED)
        assert reviewed.status == ReceiptStatus.APPROVED

        await settle()
        assert controller.find_receipt(receipt.id).status == ReceiptStatus.APPROVED
        with pytest.raises(InvalidTransition):
            await controller.review_receipt(receipt.id, ReceiptStatus.REJECTED)

    async def test_review_unknown_receipt(self, controller):
        with pytest.raises(NotFound):
            await controller.review_receipt("R404", ReceiptStatus.REJECTED)


class TestWritesAheadOfMirror:
    """Back-to-back mutations, before the consumers apply the first write."""

    async def test_second_review_rejected(self, controller, memory_store):
        await memory_store.put("receipts", "R1", {
            "driverId": "D1",
            "jobId": "J101",
            "type": "TOLL",
            "amount": 120,
            "date": "2026-10-18T08:00:00.000Z",
            "status": "PENDING",
        })
        await controller.review_receipt("R1", ReceiptStatus.APPROVED)
        with pytest.raises(InvalidTransition):
            await controller.review_receipt("R1", ReceiptStatus.REJECTED)
        assert (await memory_store.get("receipts", "R1"))["status"] == "APPROVED"

    async def test_second_add_driver_rejected(self, controller, memory_store):
        await controller.add_driver(DriverCreate(id="D4", name="Vikram", vehicle_no="KA-01-1111"))
        with pytest.raises(AlreadyExists):
            await controller.add_driver(DriverCreate(id="D4", name="Imposter", vehicle_no="XX"))
        assert (await memory_store.get("drivers", "D4"))["name"] == "Vikram"

    async def test_second_add_job_rejected(self, controller, memory_store):
        await controller.add_job(JobCreate(id="J200", driver_id="D1", origin="A", destination="B"))
        with pytest.raises(AlreadyExists):
            await controller.add_job(JobCreate(id="J200", driver_id="D2", origin="C", destination="D"))
        assert (await memory_store.get("jobs", "J200"))["driverId"] == "D1"


class TestConsumerFailure:

    async def test_crashed_consumer_is_logged(self, controller, settle, caplog):
        caplog.set_level(logging.ERROR, logger="qgo_dispatch.services.sync")
        controller.subscriptions[0].push(Snapshot.build("trucks", []))
        await settle()
        assert "Sync of 'drivers' stopped unexpectedly" in caplog.text
