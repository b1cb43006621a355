# backend/tests/conftest.py
"""
Shared fixtures: file-backed storage in a temp dir, a fixed clock and an API
client wired to an in-process service.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from magicsell.config import Settings
from magicsell.main import create_app
from magicsell.services.broadcaster import Broadcaster
from magicsell.services.operations import OperationsService
from magicsell.services.route_optimizer import RouteOptimizer
from magicsell.services.storage import FileStorage
from tests.factories import FIXED_NOW


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=str(tmp_path), mapbox_token=None, strict_persistence=False)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def storage(tmp_path):
    storage = FileStorage(tmp_path / "data.json", backup_retention=3)
    storage.connect()
    return storage


@pytest.fixture
def broadcaster():
    return Broadcaster()


@pytest.fixture
def service(storage, broadcaster, settings, clock):
    return OperationsService(storage, broadcaster, settings, clock=clock)


@pytest.fixture
def fake_websocket():
    websocket = MagicMock()
    websocket.accept = AsyncMock()
    websocket.send_json = AsyncMock()
    return websocket


@pytest.fixture
def client(service, settings):
    app = create_app(settings, service=service, route_optimizer=RouteOptimizer(settings, None))
    with TestClient(app) as test_client:
        yield test_client
