"""
Client Package

Caller-facing side of a room sync participant: input validation, slash
command expansion, message construction, the Participant controller and
the terminal user interface (in the `ui` subpackage).
"""

from .participant import (
    Participant,
    NotInSessionError,
    EXIT_LEFT,
    EXIT_KICKED,
    EXIT_ENDED,
)
from .validation import (
    ValidationError,
    validate_display_name,
    validate_pin,
    validate_max_users,
    validate_message_content,
)
from .commands import expand_command
from .messages import (
    build_text_message,
    build_file_message,
    build_file_message_from_path,
    decode_data_url,
)

__all__ = [
    "Participant",
    "NotInSessionError",
    "EXIT_LEFT",
    "EXIT_KICKED",
    "EXIT_ENDED",
    "ValidationError",
    "validate_display_name",
    "validate_pin",
    "validate_max_users",
    "validate_message_content",
    "expand_command",
    "build_text_message",
    "build_file_message",
    "build_file_message_from_path",
    "decode_data_url",
]
