"""Root conftest.py -- shared fixtures for all test modules."""
import asyncio
import os
import tempfile

import pytest

# Set env vars BEFORE any app imports: fixture mode, no admin password,
# and a throwaway local storage file
os.environ["DATABASE_URL"] = ""
os.environ.pop("ADMIN_PASSWORD", None)
os.environ.setdefault(
    "LOCAL_STORAGE_PATH",
    os.path.join(tempfile.mkdtemp(prefix="qgo-test-"), "storage.json"),
)

from qgo_dispatch.core.config import Settings, get_settings
from qgo_dispatch.services.fixtures import build_fixtures
from qgo_dispatch.services.session import SessionStore
from qgo_dispatch.services.storage import LocalStorage
from qgo_dispatch.services.store import MemoryDocumentStore
from qgo_dispatch.services.sync import SyncController
from qgo_dispatch.services.workflow import JobWorkflow


async def _settle(rounds: int = 10) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


# =========================================================================
# Event loop
# =========================================================================
@pytest.fixture
def settle():
    """Coroutine function that lets the sync consumers apply pending snapshots."""
    return _settle


# =========================================================================
# Settings
# =========================================================================
@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Clear LRU cache before each test to prevent stale settings."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    return get_settings()


# =========================================================================
# Store and session
# =========================================================================
def fixture_seed() -> dict[str, list[dict]]:
    """The demo fleet in stored-document form."""
    fixtures = build_fixtures()
    return {
        "drivers": [{**d.to_document(), "id": d.id} for d in fixtures.drivers],
        "jobs": [{**j.to_document(), "id": j.id} for j in fixtures.jobs],
        "receipts": [],
    }


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    return MemoryDocumentStore(seed=fixture_seed())


@pytest.fixture
def local_storage(tmp_path) -> LocalStorage:
    return LocalStorage(str(tmp_path / "storage.json"))


@pytest.fixture
def session_store(local_storage) -> SessionStore:
    return SessionStore(local_storage)


@pytest.fixture
async def controller(memory_store, session_store):
    """Controller mirroring the seeded memory store."""
    ctrl = SyncController(memory_store, session_store)
    await ctrl.start()
    assert await ctrl.wait_until_ready(timeout=1)
    yield ctrl
    await ctrl.stop()


@pytest.fixture
async def fixture_controller(session_store):
    """Controller without a remote store (fixture data, read only)."""
    ctrl = SyncController(None, session_store)
    await ctrl.start()
    yield ctrl
    await ctrl.stop()


@pytest.fixture
def workflow(controller) -> JobWorkflow:
    return JobWorkflow(controller)


# =========================================================================
# FastAPI Test Client
# =========================================================================
@pytest.fixture
def app():
    from qgo_dispatch.main import app as fastapi_app
    return fastapi_app


async def _client_for(app, controller, session_store):
    from httpx import AsyncClient, ASGITransport
    from qgo_dispatch.core.dependencies import get_controller, get_session_store

    app.dependency_overrides[get_controller] = lambda: controller
    app.dependency_overrides[get_session_store] = lambda: session_store

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
async def client(app, controller, session_store):
    """Logged-out client backed by the live memory store."""
    async for c in _client_for(app, controller, session_store):
        yield c


@pytest.fixture
async def admin_client(client, session_store):
    from qgo_dispatch.schemas.session import AdminSession

    session_store.login(AdminSession())
    return client


@pytest.fixture
async def driver_client(client, session_store):
    """Client logged in as driver D1."""
    from qgo_dispatch.schemas.session import DriverSession

    session_store.login(DriverSession(id="D1"))
    return client


@pytest.fixture
async def fixture_client(app, fixture_controller, session_store):
    """Client backed by fixture data (no remote store)."""
    async for c in _client_for(app, fixture_controller, session_store):
        yield c
