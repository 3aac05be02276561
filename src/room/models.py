"""
Session Data Model

Defines the records shared between participant contexts: users, session
configuration, sessions and chat messages. All records are immutable;
membership changes produce a new Session snapshot rather than mutating one.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple


def utc_now() -> str:
    """Current time as an ISO 8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()


class UserRole(Enum):
    """Role of a participant within a session."""

    HOST = "HOST"
    GUEST = "GUEST"


class MessageKind(Enum):
    """Kind of chat message."""

    TEXT = "text"
    FILE = "file"
    SYSTEM = "system"


@dataclass(frozen=True)
class User:
    """
    A participant admitted to a session.

    Attributes:
        id: Opaque unique token
        display_name: Name shown to other participants
        role: HOST or GUEST
        joined_at: ISO 8601 timestamp of admission
        device_info: Free-text device descriptor
        network_address: Advisory address, never used for routing
    """

    id: str
    display_name: str
    role: UserRole
    joined_at: str
    device_info: str = "Unknown Device"
    network_address: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "display_name": self.display_name,
            "role": self.role.value,
            "joined_at": self.joined_at,
            "device_info": self.device_info,
            "network_address": self.network_address,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        """Create from a dictionary produced by to_dict()."""
        return cls(
            id=data["id"],
            display_name=data["display_name"],
            role=UserRole(data["role"]),
            joined_at=data["joined_at"],
            device_info=data.get("device_info", "Unknown Device"),
            network_address=data.get("network_address", ""),
        )


@dataclass(frozen=True)
class SessionConfig:
    """
    Admission settings fixed at session creation.

    Attributes:
        max_users: Capacity of the session, at least 1
        enable_2fa: Whether joining requires the PIN
        pin: Shared PIN, present only when enable_2fa is set
    """

    max_users: int
    enable_2fa: bool = False
    pin: Optional[str] = None

    def __post_init__(self):
        if self.max_users < 1:
            raise ValueError("max_users must be at least 1")
        if self.enable_2fa and not self.pin:
            raise ValueError("A PIN is required when 2FA is enabled")
        if not self.enable_2fa and self.pin is not None:
            raise ValueError("A PIN may only be set when 2FA is enabled")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "max_users": self.max_users,
            "enable_2fa": self.enable_2fa,
            "pin": self.pin,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionConfig":
        """Create from a dictionary produced by to_dict()."""
        return cls(
            max_users=data["max_users"],
            enable_2fa=data.get("enable_2fa", False),
            pin=data.get("pin"),
        )


@dataclass(frozen=True)
class Session:
    """
    Shared room state replicated to every participant context.

    Attributes:
        id: Room code
        host_id: ID of the hosting user
        created_at: ISO 8601 timestamp when the session was created
        config: Admission settings
        users: Members in join order
        is_active: False once the session is no longer joinable
    """

    id: str
    host_id: str
    created_at: str
    config: SessionConfig
    users: Tuple[User, ...] = ()
    is_active: bool = True

    @property
    def member_count(self) -> int:
        return len(self.users)

    @property
    def is_full(self) -> bool:
        return len(self.users) >= self.config.max_users

    @property
    def host(self) -> Optional[User]:
        """The hosting user, or None once the host has left."""
        return self.get_user(self.host_id)

    def get_user(self, user_id: str) -> Optional[User]:
        for user in self.users:
            if user.id == user_id:
                return user
        return None

    def has_user(self, user_id: str) -> bool:
        return self.get_user(user_id) is not None

    def with_user(self, user: User) -> "Session":
        """Return a snapshot with user appended, keeping ids unique."""
        if self.has_user(user.id):
            return self
        return replace(self, users=self.users + (user,))

    def without_user(self, user_id: str) -> "Session":
        """Return a snapshot with user_id removed (unchanged if absent)."""
        return replace(
            self, users=tuple(u for u in self.users if u.id != user_id)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "host_id": self.host_id,
            "created_at": self.created_at,
            "config": self.config.to_dict(),
            "users": [user.to_dict() for user in self.users],
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        """Create from a dictionary produced by to_dict()."""
        return cls(
            id=data["id"],
            host_id=data["host_id"],
            created_at=data["created_at"],
            config=SessionConfig.from_dict(data["config"]),
            users=tuple(User.from_dict(u) for u in data.get("users", [])),
            is_active=data.get("is_active", True),
        )


@dataclass(frozen=True)
class FileAttachment:
    """
    File carried inline in a message.

    Attributes:
        name: Original file name
        byte_size: Size of the raw file in bytes
        mime_type: MIME type of the file
        payload: Inline-encoded bytes (a base64 data URL)
    """

    name: str
    byte_size: int
    mime_type: str
    payload: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "byte_size": self.byte_size,
            "mime_type": self.mime_type,
            "payload": self.payload,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileAttachment":
        return cls(
            name=data["name"],
            byte_size=data["byte_size"],
            mime_type=data["mime_type"],
            payload=data["payload"],
        )


@dataclass(frozen=True)
class Message:
    """
    A chat message relayed to every participant.

    Attributes:
        id: Unique message identifier
        sender_id: ID of the sending user at send time
        sender_name: Sender display name captured at send time
        content: Message text (possibly produced by a command expansion)
        timestamp: ISO 8601 timestamp set by the sender
        kind: text, file or system
        file_attachment: Attached file for kind == file
    """

    id: str
    sender_id: str
    sender_name: str
    content: str
    timestamp: str = field(default_factory=utc_now)
    kind: MessageKind = MessageKind.TEXT
    file_attachment: Optional[FileAttachment] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = {
            "id": self.id,
            "sender_id": self.sender_id,
            "sender_name": self.sender_name,
            "content": self.content,
            "timestamp": self.timestamp,
            "kind": self.kind.value,
        }
        if self.file_attachment is not None:
            data["file_attachment"] = self.file_attachment.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        """Create from a dictionary produced by to_dict()."""
        attachment = data.get("file_attachment")
        return cls(
            id=data["id"],
            sender_id=data["sender_id"],
            sender_name=data["sender_name"],
            content=data["content"],
            timestamp=data["timestamp"],
            kind=MessageKind(data.get("kind", "text")),
            file_attachment=(
                FileAttachment.from_dict(attachment) if attachment else None
            ),
        )
