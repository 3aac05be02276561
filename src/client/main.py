#!/usr/bin/env python3
"""
Room Sync Client Application

Terminal client for one participant. Provides a user interface using the
Textual framework and talks to sibling participants through the relay.

Environment:
    ROOM_SYNC_RELAY_URL: Relay WebSocket URL (default ws://127.0.0.1:8765)
    ROOM_SYNC_DATA_DIR: Session store directory (default ~/.room_sync)
    ROOM_SYNC_PROFILE: Name of this client's user record (default "default");
        each client sharing a data directory needs its own
    ROOM_SYNC_LOG_FILE: Log file (default room_sync_client.log)
"""

import logging
import os
import sys

# Configure logging to file to avoid interfering with UI
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.FileHandler(
            os.environ.get("ROOM_SYNC_LOG_FILE", "room_sync_client.log"),
            mode="a",
        )
    ],
)

logger = logging.getLogger(__name__)


def main():
    """Main entry point for the room sync client."""
    logger.info("Starting room sync client...")

    relay_url = os.environ.get("ROOM_SYNC_RELAY_URL", "ws://127.0.0.1:8765")
    data_dir = os.environ.get("ROOM_SYNC_DATA_DIR", "~/.room_sync")
    profile = os.environ.get("ROOM_SYNC_PROFILE", "default")

    try:
        from .ui import RoomSyncApp

        app = RoomSyncApp(
            relay_url=relay_url, data_dir=data_dir, profile=profile
        )
        app.run()
    except ImportError as e:
        print(f"Error: Could not import UI components: {e}")
        print("Make sure textual is installed: pip install textual")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nExiting...")
        sys.exit(0)


if __name__ == "__main__":
    main()
