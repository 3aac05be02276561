"""
Tests for the Event Bus and the in-process Broadcast Channel

ChannelBus endpoints deliver sibling frames on the next turn of the
running loop, or on an explicit flush() when no loop runs.
"""

import asyncio

import pytest

from room import (
    BroadcastChannel,
    ChannelBus,
    EventBus,
    Kicked,
    SessionEnded,
)


# ----------------------------------------------------------------------------
# EventBus
# ----------------------------------------------------------------------------

def test_publisher_receives_own_event(bus, recorder):
    bus.publish(Kicked("u1"))
    assert recorder.events == [Kicked("u1")]


def test_every_handler_receives_event_once(bus):
    first, second = [], []
    bus.subscribe(first.append)
    bus.subscribe(second.append)

    bus.publish(SessionEnded())

    assert first == [SessionEnded()]
    assert second == [SessionEnded()]


def test_late_subscriber_gets_no_replay(bus):
    bus.publish(Kicked("u1"))

    late = []
    bus.subscribe(late.append)
    assert late == []

    bus.publish(Kicked("u2"))
    assert late == [Kicked("u2")]


def test_unsubscribe_stops_delivery(bus, recorder):
    recorder.unsubscribe()
    bus.publish(Kicked("u1"))

    assert recorder.events == []
    assert bus.handler_count == 0
    # Second call is harmless
    recorder.unsubscribe()


def test_failing_handler_does_not_affect_others(bus, caplog):
    received = []

    def broken(event):
        raise RuntimeError("boom")

    bus.subscribe(broken)
    bus.subscribe(received.append)

    bus.publish(Kicked("u1"))

    assert received == [Kicked("u1")]
    assert "Handler failed for KICKED" in caplog.text


def test_handler_may_unsubscribe_during_dispatch(bus):
    received = []
    unsubscribe = None

    def once(event):
        received.append(event)
        unsubscribe()

    unsubscribe = bus.subscribe(once)
    bus.publish(Kicked("u1"))
    bus.publish(Kicked("u2"))

    assert received == [Kicked("u1")]


# ----------------------------------------------------------------------------
# ChannelBus without a running loop
# ----------------------------------------------------------------------------

def test_sibling_receives_copy_after_flush():
    channel = BroadcastChannel()
    sender, receiver = ChannelBus(channel), ChannelBus(channel)
    received = []
    receiver.subscribe(received.append)

    event = Kicked("u1")
    sender.publish(event)

    assert received == []
    assert receiver.pending == 1
    assert receiver.flush() == 1
    assert received == [event]
    assert received[0] is not event


def test_publisher_dispatches_locally_not_through_channel():
    channel = BroadcastChannel()
    sender = ChannelBus(channel)
    ChannelBus(channel)
    received = []
    sender.subscribe(received.append)

    sender.publish(Kicked("u1"))

    assert received == [Kicked("u1")]
    assert sender.pending == 0


def test_per_sender_order_is_preserved():
    channel = BroadcastChannel()
    sender, receiver = ChannelBus(channel), ChannelBus(channel)
    received = []
    receiver.subscribe(received.append)

    for n in range(5):
        sender.publish(Kicked(f"u{n}"))
    receiver.flush()

    assert [e.user_id for e in received] == [f"u{n}" for n in range(5)]


def test_closed_endpoint_receives_nothing():
    channel = BroadcastChannel()
    sender, receiver = ChannelBus(channel), ChannelBus(channel)
    receiver.close()

    sender.publish(Kicked("u1"))

    assert receiver.pending == 0
    assert channel.endpoint_count == 1


def test_undecodable_frame_is_dropped(caplog):
    channel = BroadcastChannel()
    receiver = ChannelBus(channel)
    received = []
    receiver.subscribe(received.append)

    receiver._enqueue('{"type": "NOPE", "data": null}')
    receiver._enqueue('{"type": "KICKED", "data": {"user_id": "u1"}}')

    assert receiver.flush() == 1
    assert received == [Kicked("u1")]
    assert "Dropping undecodable frame" in caplog.text


# ----------------------------------------------------------------------------
# ChannelBus inside a running loop
# ----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delivery_happens_on_next_loop_turn():
    channel = BroadcastChannel()
    sender, receiver = ChannelBus(channel), ChannelBus(channel)
    received = []
    receiver.subscribe(received.append)

    sender.publish(Kicked("u1"))
    sender.publish(Kicked("u2"))
    # Not delivered synchronously
    assert received == []

    await asyncio.sleep(0)

    assert received == [Kicked("u1"), Kicked("u2")]
    assert receiver.pending == 0


@pytest.mark.asyncio
async def test_three_endpoints_all_receive():
    channel = BroadcastChannel()
    buses = [ChannelBus(channel) for _ in range(3)]
    inboxes = []
    for bus in buses:
        inbox = []
        bus.subscribe(inbox.append)
        inboxes.append(inbox)

    buses[1].publish(SessionEnded())
    await asyncio.sleep(0)

    assert inboxes == [[SessionEnded()]] * 3
