"""
Relay Server

Localhost WebSocket hub joining sibling participant processes on one
machine. Every frame received from one connection is forwarded, unchanged
and in arrival order, to every other connection. The relay holds no
session state and never inspects membership.
"""

import json
import logging
from typing import Optional, Set

import websockets
from websockets.asyncio.server import Server, ServerConnection

logger = logging.getLogger(__name__)


def frame_type(frame) -> Optional[str]:
    """Best-effort peek at a frame's type tag, for logging."""
    try:
        data = json.loads(frame)
    except (json.JSONDecodeError, TypeError):
        return None
    return data.get("type") if isinstance(data, dict) else None


class RelayServer:
    """
    Fan-out WebSocket server for WebSocketBus endpoints.

    Attributes:
        host: Host address to bind to
        port: Port to listen on
        clients: Currently connected endpoints
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 8765):
        """
        Initialize the relay server.

        Args:
            host: Host address to bind to
            port: Port to listen on
        """
        self.host = host
        self.port = port
        self.clients: Set[ServerConnection] = set()
        self.server: Optional[Server] = None

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.port}"

    async def start(self):
        """Start the relay server. Port 0 binds a free port."""
        self.server = await websockets.serve(
            self.handle_client, self.host, self.port
        )
        if self.port == 0:
            self.port = self.server.sockets[0].getsockname()[1]
        logger.info(f"Relay server started on {self.url}")

    async def stop(self):
        """Stop the relay server."""
        if self.server:
            self.server.close()
            await self.server.wait_closed()
            self.server = None
            logger.info("Relay server stopped")

    async def handle_client(self, websocket: ServerConnection):
        """
        Handle one endpoint connection until it closes.

        Args:
            websocket: The WebSocket connection
        """
        self.clients.add(websocket)
        client_id = id(websocket)
        logger.info(
            f"Endpoint {client_id} connected ({len(self.clients)} connected)"
        )

        try:
            async for frame in websocket:
                await self.forward(websocket, frame)
        except websockets.exceptions.ConnectionClosed:
            logger.info(f"Endpoint {client_id} disconnected")
        finally:
            self.clients.discard(websocket)

    async def forward(self, sender, frame) -> int:
        """
        Forward a frame to every connection except its sender.

        Args:
            sender: Connection the frame arrived on
            frame: Raw frame text

        Returns:
            Number of connections the frame was sent to
        """
        logger.debug(
            f"Forwarding {frame_type(frame) or 'unknown'} frame from "
            f"{id(sender)}"
        )
        sent = 0
        for websocket in list(self.clients):
            if websocket is sender:
                continue
            try:
                await websocket.send(frame)
                sent += 1
            except websockets.exceptions.ConnectionClosed:
                self.clients.discard(websocket)
        return sent
