"""
Shared fixtures for the room sync tests.

Every test builds its own storage, store and bus, so no state leaks
between tests.
"""

import itertools
import random

import pytest

from room import (
    EventBus,
    MembershipManager,
    MemoryStorage,
    RoomCodeGenerator,
    SessionStore,
)

DEVICE = "Linux (Desktop)"
ADDRESS = "192.168.1.20"


class EventRecorder:
    """Subscribes to a bus and records every delivered event."""

    def __init__(self, bus):
        self.events = []
        self.unsubscribe = bus.subscribe(self.events.append)

    def of_type(self, event_cls):
        return [e for e in self.events if isinstance(e, event_cls)]


def make_manager(store, bus, seed=7):
    """Build a MembershipManager with deterministic ids and device info."""
    counter = itertools.count(1)
    return MembershipManager(
        store,
        bus,
        code_generator=RoomCodeGenerator(random.Random(seed)),
        id_factory=lambda: f"user-{seed}-{next(counter)}",
        device_info=lambda: DEVICE,
        network_address=lambda: ADDRESS,
    )


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return SessionStore(storage)


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def recorder(bus):
    return EventRecorder(bus)


@pytest.fixture
def manager(store, bus):
    return make_manager(store, bus)
