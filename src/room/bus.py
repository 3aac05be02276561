"""
Event Bus

Best-effort publish/subscribe channel, the sole transport for session state
changes between participant contexts.

Delivery rules shared by every implementation:
    - at most once per handler subscribed at publish time (no replay)
    - ordered per publishing context, unordered across contexts
    - the publisher sees its own event through the same dispatch path
    - a failing handler is logged and does not affect the others

Implementations:
    - EventBus: single context, local dispatch only
    - ChannelBus: sibling contexts joined by an in-process BroadcastChannel
    - WebSocketBus: sibling processes joined by a localhost RelayServer
"""

import asyncio
import logging
from collections import deque
from typing import Callable, Deque, List, Optional, Protocol

import websockets
from websockets.asyncio.client import ClientConnection

from .events import NetworkEvent, event_from_json, event_to_json, event_type

logger = logging.getLogger(__name__)

Handler = Callable[[NetworkEvent], None]
Unsubscribe = Callable[[], None]


class Bus(Protocol):
    def publish(self, event: NetworkEvent) -> None: ...

    def subscribe(self, handler: Handler) -> Unsubscribe: ...


class EventBus:
    """
    Local publish/subscribe dispatcher.

    Used directly as a single-context bus and as the base for transports
    that also forward events to sibling contexts.
    """

    def __init__(self):
        self._handlers: List[Handler] = []

    def subscribe(self, handler: Handler) -> Unsubscribe:
        """
        Register a handler for every subsequently delivered event.

        Args:
            handler: Callback receiving each NetworkEvent

        Returns:
            Callable that removes the handler again
        """
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    def publish(self, event: NetworkEvent) -> None:
        self._dispatch(event)

    def _dispatch(self, event: NetworkEvent) -> None:
        logger.debug(
            f"Dispatching {event_type(event)} to {len(self._handlers)} handlers"
        )
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Handler failed for {event_type(event)}: {e}",
                    exc_info=True,
                )


class BroadcastChannel:
    """
    Named in-process channel joining sibling contexts.

    Frames posted by one endpoint are queued on every other endpoint. Each
    receiver decodes its own copy, so contexts never share event objects.
    """

    def __init__(self, name: str = "room-sync"):
        self.name = name
        self._endpoints: List["ChannelBus"] = []

    def attach(self, endpoint: "ChannelBus") -> None:
        if endpoint not in self._endpoints:
            self._endpoints.append(endpoint)

    def detach(self, endpoint: "ChannelBus") -> None:
        if endpoint in self._endpoints:
            self._endpoints.remove(endpoint)

    @property
    def endpoint_count(self) -> int:
        return len(self._endpoints)

    def post(self, sender: "ChannelBus", frame: str) -> None:
        for endpoint in list(self._endpoints):
            if endpoint is not sender:
                endpoint._enqueue(frame)


class ChannelBus(EventBus):
    """
    One context's endpoint on a BroadcastChannel.

    Incoming frames wait in a FIFO inbox until this context processes them:
    automatically on the next turn of its running event loop, or when
    flush() is called.
    """

    def __init__(self, channel: BroadcastChannel):
        super().__init__()
        self.channel = channel
        self._inbox: Deque[str] = deque()
        self._flush_scheduled = False
        channel.attach(self)

    def publish(self, event: NetworkEvent) -> None:
        self.channel.post(self, event_to_json(event))
        self._dispatch(event)

    @property
    def pending(self) -> int:
        return len(self._inbox)

    def _enqueue(self, frame: str) -> None:
        self._inbox.append(frame)
        if self._flush_scheduled:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: frames wait for an explicit flush()
            return
        self._flush_scheduled = True
        loop.call_soon(self.flush)

    def flush(self) -> int:
        """
        Deliver every queued frame to this context's handlers.

        Returns:
            Number of events delivered
        """
        self._flush_scheduled = False
        delivered = 0
        while self._inbox:
            frame = self._inbox.popleft()
            try:
                event = event_from_json(frame)
            except ValueError as e:
                logger.warning(f"Dropping undecodable frame: {e}")
                continue
            self._dispatch(event)
            delivered += 1
        return delivered

    def close(self) -> None:
        """Leave the channel; queued frames are discarded."""
        self.channel.detach(self)
        self._inbox.clear()


class WebSocketBus(EventBus):
    """
    Bus endpoint connected to a RelayServer over a localhost WebSocket.

    Publishes are queued and sent by a single task so that this context's
    events leave in the order they were published. While disconnected,
    events reach local handlers only.

    Attributes:
        relay_url: WebSocket URL of the relay (e.g., ws://127.0.0.1:8765)
        websocket: Active connection (None if not connected)
    """

    def __init__(
        self,
        relay_url: str,
        websocket_factory: Optional[Callable] = None,
    ):
        """
        Initialize the bus.

        Args:
            relay_url: WebSocket URL of the relay server
            websocket_factory: Optional factory for creating WebSocket
                             connections (for dependency injection/testing)
        """
        super().__init__()
        self.relay_url = relay_url
        self.websocket: Optional[ClientConnection] = None
        self._websocket_factory = websocket_factory or websockets.connect
        self._outgoing: "asyncio.Queue[str]" = asyncio.Queue()
        self._sender_task: Optional[asyncio.Task] = None
        self._receiver_task: Optional[asyncio.Task] = None
        self._connected = False

        logger.info(f"WebSocketBus initialized for relay: {relay_url}")

    @property
    def is_connected(self) -> bool:
        return self._connected and self.websocket is not None

    async def connect(self) -> None:
        """
        Connect to the relay and start the send/receive loops.

        Raises:
            ConnectionError: If the relay cannot be reached
        """
        try:
            logger.info(f"Connecting to relay {self.relay_url}...")
            self.websocket = await self._websocket_factory(self.relay_url)
        except Exception as e:
            logger.error(f"Failed to connect to relay: {e}")
            raise ConnectionError(
                f"Could not connect to {self.relay_url}: {e}"
            ) from e

        self._connected = True
        self._sender_task = asyncio.create_task(self._send_loop())
        self._receiver_task = asyncio.create_task(self.receive_events())
        logger.info("Connected to relay")

    async def disconnect(self) -> None:
        for task in (self._sender_task, self._receiver_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._sender_task = None
        self._receiver_task = None

        if self.websocket is not None:
            await self.websocket.close()
            self.websocket = None
        self._connected = False
        logger.info("Disconnected from relay")

    def publish(self, event: NetworkEvent) -> None:
        if self.is_connected:
            self._outgoing.put_nowait(event_to_json(event))
        else:
            logger.warning(
                f"Not connected to relay, {event_type(event)} "
                f"delivered locally only"
            )
        self._dispatch(event)

    async def _send_loop(self) -> None:
        while True:
            frame = await self._outgoing.get()
            try:
                await self.websocket.send(frame)
            except websockets.exceptions.ConnectionClosed:
                logger.warning("Relay connection closed while sending")
                self._connected = False
                return

    async def receive_events(self) -> None:
        """
        Deliver frames arriving from the relay until the connection closes.
        """
        try:
            async for frame in self.websocket:
                try:
                    event = event_from_json(frame)
                except ValueError as e:
                    logger.warning(f"Dropping undecodable frame: {e}")
                    continue
                self._dispatch(event)
        except websockets.exceptions.ConnectionClosed:
            logger.warning("Relay connection closed")
        finally:
            self._connected = False

