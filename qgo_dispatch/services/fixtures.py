"""
Static fixture data shown when no remote store is configured.
"""
from dataclasses import dataclass
from datetime import timedelta

from qgo_dispatch.models.enums import DriverStatus, JobStatus
from qgo_dispatch.schemas.base import Location, utcnow
from qgo_dispatch.schemas.driver import Driver
from qgo_dispatch.schemas.job import Job
from qgo_dispatch.schemas.receipt import ReceiptEntry


@dataclass(frozen=True)
class FixtureSet:
    drivers: tuple[Driver, ...]
    jobs: tuple[Job, ...]
    receipts: tuple[ReceiptEntry, ...] = ()


def build_fixtures() -> FixtureSet:
    """Demo fleet: three drivers, one running and one pending job."""
    now = utcnow()

    drivers = (
        Driver(
            id="D1",
            name="Rajesh Kumar",
            vehicle_no="DL-1RA-1234",
            password="1234",
            status=DriverStatus.ON_JOB,
            phone="+91 9876543210",
            last_known_location=Location(lat=28.6139, lng=77.2090),
        ),
        Driver(
            id="D2",
            name="Amit Singh",
            vehicle_no="HR-26BZ-5678",
            password="1234",
            status=DriverStatus.ONLINE,
            phone="+91 8765432109",
            last_known_location=Location(lat=19.0760, lng=72.8777),
        ),
        Driver(
            id="D3",
            name="Suresh Patil",
            vehicle_no="MH-12AB-9012",
            password="1234",
            status=DriverStatus.OFFLINE,
            phone="+91 7654321098",
        ),
    )

    jobs = (
        Job(
            id="J101",
            driver_id="D1",
            origin="Delhi Hub",
            destination="Jaipur Warehouse",
            status=JobStatus.IN_PROGRESS,
            assigned_at=now,
            description="Urgent delivery of electronics",
            start_time=now - timedelta(hours=1),
        ),
        Job(
            id="J102",
            driver_id="D2",
            origin="Mumbai Port",
            destination="Pune Distribution",
            status=JobStatus.PENDING,
            assigned_at=now,
            description="Monthly FMCG refill",
        ),
    )

    return FixtureSet(drivers=drivers, jobs=jobs)
