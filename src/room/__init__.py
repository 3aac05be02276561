"""
Room Package

Session synchronization and membership protocol: data model, event bus
transports, session store, membership management, message relay and the
per-context replica that applies bus events.
"""

from .models import (
    User,
    UserRole,
    SessionConfig,
    Session,
    FileAttachment,
    Message,
    MessageKind,
    utc_now,
)
from .events import (
    NetworkEvent,
    SyncSession,
    NewMessage,
    Kicked,
    SessionEnded,
    encode_event,
    decode_event,
)
from .codes import RoomCodeGenerator
from .storage import Storage, MemoryStorage, JsonFileStorage
from .store import SessionStore, STORAGE_KEY_SESSION, STORAGE_KEY_USER
from .bus import Bus, EventBus, BroadcastChannel, ChannelBus, WebSocketBus
from .membership import (
    MembershipManager,
    JoinResult,
    AdmissionError,
    SessionNotFoundError,
    InvalidPinError,
    SessionFullError,
)
from .relay import MessageRelay
from .replica import SessionReplica
from .relay_server import RelayServer

__all__ = [
    # Data model
    "User",
    "UserRole",
    "SessionConfig",
    "Session",
    "FileAttachment",
    "Message",
    "MessageKind",
    "utc_now",
    # Events
    "NetworkEvent",
    "SyncSession",
    "NewMessage",
    "Kicked",
    "SessionEnded",
    "encode_event",
    "decode_event",
    # Components
    "RoomCodeGenerator",
    "Storage",
    "MemoryStorage",
    "JsonFileStorage",
    "SessionStore",
    "STORAGE_KEY_SESSION",
    "STORAGE_KEY_USER",
    "Bus",
    "EventBus",
    "BroadcastChannel",
    "ChannelBus",
    "WebSocketBus",
    "MembershipManager",
    "JoinResult",
    "AdmissionError",
    "SessionNotFoundError",
    "InvalidPinError",
    "SessionFullError",
    "MessageRelay",
    "SessionReplica",
    "RelayServer",
]
