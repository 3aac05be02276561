"""
Tests for the WebSocket Bus and the Relay Server

Uses mock WebSocket connections for the bus and the forwarding logic, and
one real localhost relay for the end-to-end path.
"""

import asyncio
import json

import pytest
import pytest_asyncio
import websockets

from room import Kicked, RelayServer, SessionEnded, WebSocketBus
from room.events import event_to_json


class MockWebSocket:
    """Mock WebSocket connection recording sent frames."""

    def __init__(self):
        self.sent_messages = []
        self.closed = False
        self._incoming = asyncio.Queue()

    async def send(self, message):
        if self.closed:
            raise websockets.exceptions.ConnectionClosed(None, None)
        self.sent_messages.append(message)

    async def close(self):
        self.closed = True
        self._incoming.put_nowait(None)

    def feed(self, frame):
        self._incoming.put_nowait(frame)

    def __aiter__(self):
        return self

    async def __anext__(self):
        frame = await self._incoming.get()
        if frame is None:
            raise StopAsyncIteration
        return frame


async def settle(turns=5):
    for _ in range(turns):
        await asyncio.sleep(0)


@pytest.fixture
def mock_ws():
    return MockWebSocket()


@pytest.fixture
def ws_bus(mock_ws):
    async def factory(url):
        return mock_ws

    return WebSocketBus("ws://test:8765", websocket_factory=factory)


# ----------------------------------------------------------------------------
# WebSocketBus
# ----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_connect_starts_loops(ws_bus, mock_ws):
    await ws_bus.connect()

    assert ws_bus.is_connected
    assert ws_bus.websocket is mock_ws

    await ws_bus.disconnect()
    assert not ws_bus.is_connected
    assert mock_ws.closed


@pytest.mark.asyncio
async def test_connect_failure_raises_connection_error():
    async def failing_factory(url):
        raise OSError("Connection refused")

    bus = WebSocketBus("ws://test:8765", websocket_factory=failing_factory)

    with pytest.raises(ConnectionError, match="Could not connect"):
        await bus.connect()
    assert not bus.is_connected


@pytest.mark.asyncio
async def test_publish_sends_frame_and_dispatches_locally(ws_bus, mock_ws):
    received = []
    ws_bus.subscribe(received.append)
    await ws_bus.connect()

    ws_bus.publish(Kicked("u1"))

    # Local delivery is synchronous
    assert received == [Kicked("u1")]

    await settle()
    assert [json.loads(m) for m in mock_ws.sent_messages] == [
        {"type": "KICKED", "data": {"user_id": "u1"}}
    ]

    await ws_bus.disconnect()


@pytest.mark.asyncio
async def test_frames_leave_in_publish_order(ws_bus, mock_ws):
    await ws_bus.connect()

    for n in range(5):
        ws_bus.publish(Kicked(f"u{n}"))
    await settle(10)

    sent = [json.loads(m)["data"]["user_id"] for m in mock_ws.sent_messages]
    assert sent == [f"u{n}" for n in range(5)]

    await ws_bus.disconnect()


@pytest.mark.asyncio
async def test_incoming_frames_are_dispatched(ws_bus, mock_ws):
    received = []
    ws_bus.subscribe(received.append)
    await ws_bus.connect()

    mock_ws.feed(event_to_json(SessionEnded()))
    mock_ws.feed("garbage")
    mock_ws.feed(event_to_json(Kicked("u2")))
    await settle()

    assert received == [SessionEnded(), Kicked("u2")]

    await ws_bus.disconnect()


@pytest.mark.asyncio
async def test_publish_while_disconnected_is_local_only(ws_bus, mock_ws):
    received = []
    ws_bus.subscribe(received.append)

    ws_bus.publish(Kicked("u1"))
    await settle()

    assert received == [Kicked("u1")]
    assert mock_ws.sent_messages == []


@pytest.mark.asyncio
async def test_remote_close_marks_disconnected(ws_bus, mock_ws):
    await ws_bus.connect()

    mock_ws.feed(None)
    await settle()

    assert not ws_bus.is_connected
    await ws_bus.disconnect()


# ----------------------------------------------------------------------------
# RelayServer.forward()
# ----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_forward_skips_sender():
    relay = RelayServer()
    sender, first, second = MockWebSocket(), MockWebSocket(), MockWebSocket()
    relay.clients.update({sender, first, second})
    frame = event_to_json(Kicked("u1"))

    sent = await relay.forward(sender, frame)

    assert sent == 2
    assert sender.sent_messages == []
    assert first.sent_messages == [frame]
    assert second.sent_messages == [frame]


@pytest.mark.asyncio
async def test_forward_drops_closed_connections():
    relay = RelayServer()
    sender, alive, dead = MockWebSocket(), MockWebSocket(), MockWebSocket()
    dead.closed = True
    relay.clients.update({sender, alive, dead})

    sent = await relay.forward(sender, "frame")

    assert sent == 1
    assert dead not in relay.clients
    assert alive.sent_messages == ["frame"]


def test_relay_url():
    assert RelayServer("127.0.0.1", 9000).url == "ws://127.0.0.1:9000"


# ----------------------------------------------------------------------------
# End to end over localhost
# ----------------------------------------------------------------------------

async def wait_for(condition, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() > deadline:
            raise AssertionError("Condition not met before timeout")
        await asyncio.sleep(0.01)


@pytest_asyncio.fixture
async def relay():
    server = RelayServer("127.0.0.1", 0)
    await server.start()
    yield server
    await server.stop()


@pytest.mark.asyncio
async def test_events_cross_the_relay(relay):
    publisher = WebSocketBus(relay.url)
    listener = WebSocketBus(relay.url)

    try:
        await publisher.connect()
        await listener.connect()
        await wait_for(lambda: len(relay.clients) == 2)

        own, remote = [], []
        publisher.subscribe(own.append)
        listener.subscribe(remote.append)

        publisher.publish(Kicked("u1"))
        publisher.publish(SessionEnded())
        await wait_for(lambda: len(remote) == 2)

        assert remote == [Kicked("u1"), SessionEnded()]
        # The relay never echoes a frame to its sender
        await asyncio.sleep(0.05)
        assert own == [Kicked("u1"), SessionEnded()]
    finally:
        await publisher.disconnect()
        await listener.disconnect()
