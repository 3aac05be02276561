"""
End-to-end membership scenarios across sibling contexts

Each context gets its own ChannelBus, SessionStore, MembershipManager and
SessionReplica. Contexts on one device share a storage backend, the way
browser tabs share local storage.
"""

import pytest

from room import (
    BroadcastChannel,
    ChannelBus,
    MemoryStorage,
    SessionConfig,
    SessionFullError,
    SessionReplica,
    SessionStore,
)

from conftest import make_manager


class Context:
    """One participant context wired to a shared channel."""

    def __init__(self, channel, storage, seed):
        self.bus = ChannelBus(channel)
        self.store = SessionStore(storage)
        self.manager = make_manager(self.store, self.bus, seed=seed)
        self.replica = SessionReplica(self.bus, self.store)
        self.replica.attach()

    def join(self, code, name, pin=None):
        result = self.manager.join_session(code, name, pin)
        self.replica.user = result.user
        return result


def flush_all(*contexts):
    for context in contexts:
        context.bus.flush()


@pytest.fixture
def channel():
    return BroadcastChannel()


def test_two_guest_scenario(channel):
    storage = MemoryStorage()
    host, guest_a, guest_b = (
        Context(channel, storage, seed) for seed in (1, 2, 3)
    )

    session = host.manager.create_session("host", SessionConfig(max_users=2))
    host.replica.session = session
    host.replica.user = session.host

    joined = guest_a.join(session.id, "guestA")
    flush_all(host, guest_a, guest_b)

    assert host.replica.session.member_count == 2
    assert guest_a.replica.session == joined.session

    with pytest.raises(SessionFullError):
        guest_b.manager.join_session(session.id, "guestB")

    host.manager.kick_user(joined.user.id)
    flush_all(host, guest_a, guest_b)

    assert guest_a.replica.kicked
    assert host.replica.session.member_count == 1

    guest_b.join(session.id, "guestB")
    flush_all(host, guest_a, guest_b)

    names = [u.display_name for u in host.replica.session.users]
    assert names == ["host", "guestB"]
    assert guest_b.replica.session.users == host.replica.session.users


def test_end_session_reaches_every_context(channel):
    storage = MemoryStorage()
    host, guest = Context(channel, storage, 1), Context(channel, storage, 2)

    session = host.manager.create_session("host", SessionConfig(max_users=3))
    guest.join(session.id, "guest")
    flush_all(host, guest)

    host.manager.end_session()
    flush_all(host, guest)

    assert host.replica.ended
    assert guest.replica.ended
    assert not guest.replica.is_attached
    assert SessionStore(storage).load_session() is None


def test_concurrent_joins_last_snapshot_wins(channel):
    # Each guest context reads its own copy of the same snapshot
    host = Context(channel, MemoryStorage(), 1)
    session = host.manager.create_session("host", SessionConfig(max_users=3))
    host.replica.session = session

    guests = []
    for seed in (2, 3):
        guest = Context(channel, MemoryStorage(), seed)
        guest.store.save_session(session)
        guests.append(guest)

    first = guests[0].join(session.id, "guestA")
    second = guests[1].join(session.id, "guestB")
    flush_all(host, *guests)

    # Both joins succeeded but only the later snapshot survives
    assert first.session.member_count == 2
    assert second.session.member_count == 2
    assert host.replica.session == second.session
    assert not host.replica.session.has_user(first.user.id)


def test_capacity_can_be_exceeded_by_concurrent_joins(channel):
    host = Context(channel, MemoryStorage(), 1)
    session = host.manager.create_session("host", SessionConfig(max_users=2))

    results = []
    for seed, name in ((2, "guestA"), (3, "guestB")):
        guest = Context(channel, MemoryStorage(), seed)
        guest.store.save_session(session)
        results.append(guest.join(session.id, name))

    admitted = {u.id for r in results for u in r.session.users}
    assert [r.session.member_count for r in results] == [2, 2]
    assert len(admitted) == 3 > session.config.max_users
