#!/usr/bin/env python3
"""
Demo Script for the Membership Protocol

Runs the two-guest scenario with three participant contexts joined by an
in-process broadcast channel, or by a running relay when --relay-url is
given. It can be run standalone to watch the protocol's log output.

Usage:
    python -m client.demo
    python -m client.demo --relay-url ws://127.0.0.1:8765
"""

import argparse
import asyncio
import logging

from room import (
    BroadcastChannel,
    ChannelBus,
    MemoryStorage,
    SessionFullError,
    SessionStore,
    WebSocketBus,
)

from .participant import Participant

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


async def settle():
    """Let queued deliveries run."""
    for _ in range(3):
        await asyncio.sleep(0.05)


async def demo_session(relay_url: str = None):
    """
    Demonstrate create, join, a full session, kick and rejoin.

    All three contexts share one device storage for the session record,
    like browser tabs, and keep their own user records.
    """
    storage = MemoryStorage()
    buses = []
    if relay_url:
        for _ in range(3):
            bus = WebSocketBus(relay_url)
            await bus.connect()
            buses.append(bus)
    else:
        channel = BroadcastChannel()
        buses = [ChannelBus(channel) for _ in range(3)]

    host, guest_a, guest_b = (
        Participant(bus, SessionStore(storage, MemoryStorage()))
        for bus in buses
    )
    guest_a.set_on_exit(lambda reason: logger.info(f"guestA exited: {reason}"))

    logger.info("=" * 60)
    logger.info("Room Sync Demo - Membership")
    logger.info("=" * 60)

    session = host.create_session("host", max_users=2)
    logger.info(f"Room code: {session.id}")

    guest_a.join_session(session.id, "guestA")
    guest_a_id = guest_a.user.id
    await settle()
    logger.info(f"Host sees {host.session.member_count} users")

    try:
        guest_b.join_session(session.id, "guestB")
    except SessionFullError as e:
        logger.info(f"guestB rejected: {e} ({e.error_code})")

    host.send_text("/date")
    await settle()

    host.kick(guest_a_id)
    await settle()
    logger.info(f"Host sees {host.session.member_count} users after kick")

    guest_b.join_session(session.id, "guestB")
    await settle()
    logger.info(
        "Members: "
        + ", ".join(u.display_name for u in host.session.users)
    )

    host.end_session()
    await settle()

    for bus in buses:
        if isinstance(bus, WebSocketBus):
            await bus.disconnect()

    logger.info("\n" + "=" * 60)
    logger.info("Demo completed successfully!")
    logger.info("=" * 60)


def main():
    """Main entry point for the demo script."""
    parser = argparse.ArgumentParser(
        description="Demo of the room sync membership protocol"
    )
    parser.add_argument(
        "--relay-url",
        default=None,
        help="Relay URL (default: in-process channel)",
    )

    args = parser.parse_args()
    asyncio.run(demo_session(args.relay_url))


if __name__ == "__main__":
    main()
