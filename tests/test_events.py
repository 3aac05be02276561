"""
Tests for the Event Wire Format
"""

import json

import pytest

from room import (
    FileAttachment,
    Kicked,
    Message,
    MessageKind,
    NewMessage,
    Session,
    SessionConfig,
    SessionEnded,
    SyncSession,
    User,
    UserRole,
    decode_event,
    encode_event,
)
from room.events import event_from_json, event_to_json


def make_user(user_id="u1", role=UserRole.HOST):
    return User(
        id=user_id,
        display_name=f"name{user_id}",
        role=role,
        joined_at="2025-01-01T00:00:00+00:00",
        device_info="Linux (Desktop)",
        network_address="10.0.0.5",
    )


def make_session():
    return Session(
        id="1234567890",
        host_id="u1",
        created_at="2025-01-01T00:00:00+00:00",
        config=SessionConfig(max_users=3, enable_2fa=True, pin="12345678"),
        users=(make_user("u1"), make_user("u2", UserRole.GUEST)),
    )


# ----------------------------------------------------------------------------
# Wire format
# ----------------------------------------------------------------------------

def test_sync_session_frame_carries_full_snapshot():
    frame = encode_event(SyncSession(make_session()))

    assert frame["type"] == "SYNC_SESSION"
    assert frame["data"]["id"] == "1234567890"
    assert frame["data"]["config"]["pin"] == "12345678"
    assert [u["role"] for u in frame["data"]["users"]] == ["HOST", "GUEST"]


def test_kicked_frame():
    assert encode_event(Kicked(user_id="u2")) == {
        "type": "KICKED",
        "data": {"user_id": "u2"},
    }


def test_session_ended_frame_has_null_data():
    frame = encode_event(SessionEnded())
    assert frame == {"type": "SESSION_ENDED", "data": None}
    assert json.loads(json.dumps(frame))["data"] is None


def test_file_message_survives_json_transport():
    message = Message(
        id="m1",
        sender_id="u1",
        sender_name="nameu1",
        content="Shared a file: a.txt",
        timestamp="2025-01-01T00:00:00+00:00",
        kind=MessageKind.FILE,
        file_attachment=FileAttachment(
            name="a.txt",
            byte_size=3,
            mime_type="text/plain",
            payload="data:text/plain;base64,YWJj",
        ),
    )
    decoded = event_from_json(event_to_json(NewMessage(message)))

    assert decoded == NewMessage(message)
    assert decoded.message is not message


def test_decode_unknown_type_raises():
    with pytest.raises(ValueError, match="Unknown event type"):
        decode_event({"type": "SOMETHING_ELSE", "data": {}})


def test_decode_malformed_payload_raises():
    with pytest.raises(ValueError, match="Malformed"):
        decode_event({"type": "KICKED", "data": {}})


def test_decode_invalid_json_raises():
    with pytest.raises(ValueError):
        event_from_json("not-json")
