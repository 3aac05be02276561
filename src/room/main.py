#!/usr/bin/env python3
"""
Room Sync Relay

Runs the localhost relay that joins participant processes on one machine.
"""

import asyncio
import logging
import os
import sys

from .relay_server import RelayServer

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


async def run_relay(host: str, port: int):
    """
    Run the relay server until cancelled.

    Args:
        host: Host address to bind to
        port: Port to listen on
    """
    server = RelayServer(host, port)
    await server.start()

    try:
        await asyncio.Event().wait()
    except asyncio.CancelledError:
        logger.info("Relay shutdown requested")
    finally:
        await server.stop()


def main():
    """Main entry point for the relay."""
    logger.info("Starting room sync relay...")

    host = os.environ.get("RELAY_HOST", "127.0.0.1")
    port = int(os.environ.get("RELAY_PORT", "8765"))

    try:
        asyncio.run(run_relay(host, port))
    except KeyboardInterrupt:
        logger.info("Shutting down relay...")
        sys.exit(0)


if __name__ == "__main__":
    main()
