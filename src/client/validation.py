"""
Validation Utilities

Checks applied at the caller-facing boundary before anything reaches the
membership core: display names, PINs, capacity and message content.
"""

import re
from typing import Optional, Tuple

# Display names: English letters and digits only, at least 3 characters
NAME_PATTERN = re.compile(r"^[A-Za-z0-9]{3,}$")

MIN_USERS = 2
MAX_USERS = 20
DEFAULT_MAX_USERS = 5

PIN_LENGTH = 8

MAX_MESSAGE_LENGTH = 5000


class ValidationError(ValueError):
    """
    Input rejected at the boundary.

    Attributes:
        field: Name of the offending input
    """

    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


def validate_display_name(name: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a display name.

    Args:
        name: The display name to validate

    Returns:
        tuple: (is_valid, error_message)
    """
    if not isinstance(name, str) or not NAME_PATTERN.match(name):
        return (
            False,
            "Name must be at least 3 characters long and contain only "
            "English letters and numbers.",
        )
    return True, None


def validate_pin(pin: Optional[str]) -> Tuple[bool, Optional[str]]:
    """Validate a session PIN (exactly 8 digits)."""
    if (
        not isinstance(pin, str)
        or len(pin) != PIN_LENGTH
        or not pin.isdigit()
    ):
        return False, f"PIN must be {PIN_LENGTH} digits"
    return True, None


def validate_max_users(max_users: int) -> Tuple[bool, Optional[str]]:
    """Validate session capacity."""
    if (
        not isinstance(max_users, int)
        or isinstance(max_users, bool)
        or not MIN_USERS <= max_users <= MAX_USERS
    ):
        return (
            False,
            f"Max users must be between {MIN_USERS} and {MAX_USERS}",
        )
    return True, None


def validate_message_content(content: str) -> Tuple[bool, Optional[str]]:
    """
    Validate message content.

    Args:
        content: The message content to validate

    Returns:
        tuple: (is_valid, error_message)
            - is_valid: True if content is valid, False otherwise
            - error_message: Error message if invalid, None if valid
    """
    if not content or not content.strip():
        return False, "Message content cannot be empty"

    if len(content) > MAX_MESSAGE_LENGTH:
        return (
            False,
            f"Message content too long (max {MAX_MESSAGE_LENGTH} characters)",
        )

    return True, None


def require(result: Tuple[bool, Optional[str]], field: str) -> None:
    """
    Raise ValidationError for a failed check.

    Args:
        result: (is_valid, error_message) from a validate_* function
        field: Input the check applies to
    """
    is_valid, error = result
    if not is_valid:
        raise ValidationError(error, field=field)
