"""Shared fixtures: in-memory archive store, fake host collaborators, fixed clock."""

import pytest

from tab_hoarder.archive.store import ArchiveStore
from tab_hoarder.config import Settings
from tab_hoarder.service.coordinator import ArchiveCoordinator
from tests.fakes import FakeClock, FakeInventory, FakeNotifier, MemorySettingsStore


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    archive = ArchiveStore(":memory:", now_fn=clock)
    yield archive
    archive.close()


@pytest.fixture
def inventory():
    return FakeInventory()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def settings_store():
    return MemorySettingsStore()


@pytest.fixture
def coordinator(store, inventory, notifier, settings_store, clock):
    return ArchiveCoordinator(
        store,
        inventory,
        notifier=notifier,
        settings=Settings(),
        settings_store=settings_store,
        now_fn=clock,
    )
