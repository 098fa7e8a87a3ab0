"""Shared fixtures for the test-suite."""

import pytest

from reddit_lanes.storage.settings_store import SettingsStore
from reddit_lanes.storage.state_store import InMemoryStateStore
from tests.helpers import ControlledProvider


@pytest.fixture
def provider():
    return ControlledProvider()


@pytest.fixture
def state_store():
    return InMemoryStateStore()


@pytest.fixture
def settings_store(state_store):
    return SettingsStore(state_store)
