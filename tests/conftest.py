"""Pytest configuration and fixtures."""

import pytest

from drivesync.drive.auth import TokenManager
from drivesync.library.reconciler import LibraryReconciler
from drivesync.storage import TokenStore, TrackedFolders, SongStore, CatalogStore
from drivesync.sync import SyncOrchestrator

from fakes import FakeClock, FakeDriveClient


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def drive():
    return FakeDriveClient({})


@pytest.fixture
def catalog():
    return CatalogStore()


@pytest.fixture
def orchestrator(drive, catalog, clock):
    """Orchestrator over memory stores with a signed-in, fresh session."""
    tokens = TokenManager(TokenStore(), drive, "client-id", now_ms=clock)
    drive.exchange_response = {"access_token": "access-1", "refresh_token": "refresh-1", "expires_in": 3600}
    app = SyncOrchestrator(
        tokens=tokens,
        client=drive,
        folders=TrackedFolders(),
        songs=SongStore(),
        reconciler=LibraryReconciler(catalog, now_ms=clock),
        now_ms=clock,
    )
    assert app.login(server_auth_code="code-1").ok
    drive.calls.clear()
    return app
