from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Callable

import pytest
from fastapi.testclient import TestClient

from imagekeeper.api import create_app
from imagekeeper.domain.collection import NewCollection
from imagekeeper.domain.image import NewImage
from imagekeeper.repository import Repository
from tests.fakes import FakeKeyValueStore


@pytest.fixture
def fake_store() -> FakeKeyValueStore:
    return FakeKeyValueStore()


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Clock that moves forward one minute on every call."""
    start = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    ticks = count()
    return lambda: start + timedelta(minutes=next(ticks))


@pytest.fixture
def repository(fake_store: FakeKeyValueStore, clock: Callable[[], datetime]) -> Repository:
    return Repository(fake_store, clock=clock)


@pytest.fixture
def beach_image() -> NewImage:
    return NewImage(
        name="Beach",
        description="Waves at sunset",
        url="https://example.com/beach.jpg",
        file_size=2048,
        file_type="image/jpeg",
    )


@pytest.fixture
def forest_image() -> NewImage:
    return NewImage(
        name="forest",
        description="Tall pines after the rain",
        url="https://example.com/forest.png",
    )


@pytest.fixture
def trip_collection() -> NewCollection:
    return NewCollection(name="Trip", description="Summer holiday")


@pytest.fixture(autouse=True)
def mock_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Override settings for testing."""
    monkeypatch.setattr("imagekeeper.config.settings.auth_username", "admin")
    monkeypatch.setattr("imagekeeper.config.settings.auth_password", "password")


@pytest.fixture
def test_client(repository: Repository) -> TestClient:
    """Create test client that sends the test credentials."""
    app = create_app(repository=repository)
    client = TestClient(app)
    client.auth = ("admin", "password")
    return client
