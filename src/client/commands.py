"""
Slash Commands

Expands command tokens typed into the message box before the message is
sent. A command must be the whole (trimmed) input; matching ignores case.

    /date      -> "Friday, December 2025 (05/12/25)"
    /myip      -> the sender's advisory network address
    /mydevice  -> "Currently device: <descriptor>"
"""

from datetime import datetime
from typing import Optional

from room import User
from room.device import UNKNOWN_ADDRESS

COMMANDS = ("/date", "/myip", "/mydevice")


def format_date(now: datetime) -> str:
    long_date = now.strftime("%A, %B %Y")
    short_date = now.strftime("%d/%m/%y")
    return f"{long_date} ({short_date})"


def expand_command(
    text: str, user: User, now: Optional[datetime] = None
) -> str:
    """
    Return the expansion of text if it is a command, otherwise text.

    Args:
        text: Trimmed input text
        user: The sending user
        now: Time used for /date (defaults to local now)
    """
    command = text.lower()
    if command == "/date":
        return format_date(now or datetime.now())
    if command == "/myip":
        return user.network_address or UNKNOWN_ADDRESS
    if command == "/mydevice":
        return f"Currently device: {user.device_info}"
    return text
