import os

# Keep a developer's .env from pointing tests at a real API or data dir.
os.environ.setdefault("HABITS_API_URL", "http://testserver")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from app import HabitStore, app, get_store
from gateway import HabitGateway
from snapshot import SnapshotStore
from sync import SyncController
from tests.helpers import Network


@pytest.fixture
def store():
    """A fresh server-side store seeded with the default habits."""
    return HabitStore()


@pytest.fixture
def network():
    return Network()


@pytest.fixture
def client(store, network):
    """
    A TestClient whose get_store dependency is overridden with the per-test
    store, so tests can look at (and tamper with) server state directly.

    TestClient is an httpx.Client, so the gateway talks to the real app
    through it. The network hook records every request and can simulate
    an unreachable server.
    """
    app.dependency_overrides[get_store] = lambda: store
    test_client = TestClient(app, raise_server_exceptions=True)
    test_client.event_hooks = {"request": [network], "response": []}
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def gateway(client):
    return HabitGateway(client)


@pytest.fixture
def snapshot(tmp_path):
    return SnapshotStore(tmp_path / "data")


@pytest.fixture
def controller(gateway, snapshot):
    """An unloaded controller wired to the test app and a temp snapshot."""
    return SyncController(gateway, snapshot)


@pytest.fixture
def online(controller):
    """A controller that completed its initial load against a reachable API."""
    controller.load()
    return controller


@pytest.fixture
def offline(controller, network):
    """A controller whose initial load failed because the API was down."""
    network.down = True
    controller.load()
    return controller
