"""
UI Package for Room Sync Client

This package provides the terminal user interface for a room sync
participant using the Textual framework.
"""

from .app import RoomSyncApp

__all__ = ["RoomSyncApp"]
