"""
Message Construction

Builds Message records at the caller boundary: assigns the id, stamps the
time, snapshots the sender and expands slash commands. The relay sends
whatever it is given.
"""

import base64
import logging
import mimetypes
import uuid
from pathlib import Path
from typing import Optional

from room import FileAttachment, Message, MessageKind, User, utc_now

from .commands import expand_command
from .validation import require, validate_message_content

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


def new_message_id() -> str:
    return str(uuid.uuid4())


def build_text_message(user: User, text: str) -> Message:
    """
    Build a text message from raw input.

    Args:
        user: Sending user
        text: Raw input; surrounding whitespace is stripped and
              commands are expanded

    Raises:
        ValidationError: If the content is empty or too long
    """
    content = text.strip()
    require(validate_message_content(content), "content")

    return Message(
        id=new_message_id(),
        sender_id=user.id,
        sender_name=user.display_name,
        content=expand_command(content, user),
        timestamp=utc_now(),
        kind=MessageKind.TEXT,
    )


def encode_data_url(data: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def decode_data_url(payload: str) -> bytes:
    """
    Recover the raw bytes from a data URL payload.

    Raises:
        ValueError: If payload is not a base64 data URL
    """
    header, sep, encoded = payload.partition(",")
    if not sep or not header.startswith("data:") or ";base64" not in header:
        raise ValueError("Attachment payload is not a base64 data URL")
    return base64.b64decode(encoded)


def build_file_message(
    user: User,
    name: str,
    data: bytes,
    mime_type: Optional[str] = None,
) -> Message:
    """
    Build a file message carrying data inline.

    Args:
        user: Sending user
        name: File name shown to participants
        data: Raw file bytes
        mime_type: MIME type (guessed from name when omitted)
    """
    if mime_type is None:
        mime_type = mimetypes.guess_type(name)[0] or DEFAULT_MIME_TYPE

    attachment = FileAttachment(
        name=name,
        byte_size=len(data),
        mime_type=mime_type,
        payload=encode_data_url(data, mime_type),
    )
    return Message(
        id=new_message_id(),
        sender_id=user.id,
        sender_name=user.display_name,
        content=f"Shared a file: {name}",
        timestamp=utc_now(),
        kind=MessageKind.FILE,
        file_attachment=attachment,
    )


def build_file_message_from_path(user: User, path) -> Message:
    """
    Read a file from disk and build a file message for it.

    Raises:
        OSError: If the file cannot be read
    """
    path = Path(path)
    data = path.read_bytes()
    logger.info(f"Attaching {path.name} ({len(data)} bytes)")
    return build_file_message(user, path.name, data)
