"""
Network Event Definitions

The closed set of events that may be placed on the event bus, plus the
JSON wire codec used when an event crosses into another context.

Every event is framed as:
    {"type": "<TAG>", "data": {...}}
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Union

from .models import Message, Session

SYNC_SESSION = "SYNC_SESSION"
NEW_MESSAGE = "NEW_MESSAGE"
KICKED = "KICKED"
SESSION_ENDED = "SESSION_ENDED"


@dataclass(frozen=True)
class SyncSession:
    """Full replacement snapshot of the session."""

    session: Session


@dataclass(frozen=True)
class NewMessage:
    """A chat or file message to append to every message list."""

    message: Message


@dataclass(frozen=True)
class Kicked:
    """The identified user was removed by the host."""

    user_id: str


@dataclass(frozen=True)
class SessionEnded:
    """The host ended the session; every participant must leave."""


NetworkEvent = Union[SyncSession, NewMessage, Kicked, SessionEnded]


def event_type(event: NetworkEvent) -> str:
    """Return the wire tag for an event."""
    if isinstance(event, SyncSession):
        return SYNC_SESSION
    if isinstance(event, NewMessage):
        return NEW_MESSAGE
    if isinstance(event, Kicked):
        return KICKED
    if isinstance(event, SessionEnded):
        return SESSION_ENDED
    raise TypeError(f"Not a network event: {event!r}")


def encode_event(event: NetworkEvent) -> Dict[str, Any]:
    """
    Convert an event to its wire dictionary.

    Args:
        event: Event to encode

    Returns:
        dict: {"type": tag, "data": payload}
    """
    if isinstance(event, SyncSession):
        data = event.session.to_dict()
    elif isinstance(event, NewMessage):
        data = event.message.to_dict()
    elif isinstance(event, Kicked):
        data = {"user_id": event.user_id}
    elif isinstance(event, SessionEnded):
        data = None
    else:
        raise TypeError(f"Not a network event: {event!r}")
    return {"type": event_type(event), "data": data}


def decode_event(frame: Dict[str, Any]) -> NetworkEvent:
    """
    Build an event from its wire dictionary.

    Raises:
        ValueError: If the frame is malformed or the type is unknown
    """
    if not isinstance(frame, dict):
        raise ValueError("Event frame must be an object")

    tag = frame.get("type")
    data = frame.get("data")

    try:
        if tag == SYNC_SESSION:
            return SyncSession(Session.from_dict(data))
        if tag == NEW_MESSAGE:
            return NewMessage(Message.from_dict(data))
        if tag == KICKED:
            return Kicked(user_id=data["user_id"])
        if tag == SESSION_ENDED:
            return SessionEnded()
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed {tag} event: {e}") from e

    raise ValueError(f"Unknown event type: {tag}")


def event_to_json(event: NetworkEvent) -> str:
    return json.dumps(encode_event(event))


def event_from_json(raw: str) -> NetworkEvent:
    """
    Parse a JSON frame into an event.

    Raises:
        ValueError: If the text is not valid JSON or not a valid event
    """
    try:
        frame = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON event frame: {e}") from e
    return decode_event(frame)
