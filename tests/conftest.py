from __future__ import annotations

import pytest

from kitchen.notification_settings import NotificationSettingsStore
from kitchen.notifications import NotificationCoordinator
from kitchen.persistence import InMemoryKeyValueStore
from support import FakeClock, RecordingChime, RecordingNotifier, RecordingTitle


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def chime():
    return RecordingChime()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def title():
    return RecordingTitle()


@pytest.fixture
def coordinator(store, chime, notifier, title):
    return NotificationCoordinator(NotificationSettingsStore(store), chime, notifier, title, base_title="Kitchen")
