"""
Device Descriptors

Free-text descriptions attached to each User. The network address is
advisory only and is never used to route anything.
"""

import logging
import platform
import socket

logger = logging.getLogger(__name__)

UNKNOWN_DEVICE = "Unknown Device"
UNKNOWN_ADDRESS = "Unknown IP"

_DEVICE_NAMES = {
    "Linux": "Linux (Desktop)",
    "Windows": "Windows (Desktop)",
    "Darwin": "Mac (Desktop)",
}


def describe_device(system: str = None) -> str:
    """
    Describe the current machine, e.g. "Linux (Desktop)".

    Args:
        system: Platform name override (defaults to platform.system())
    """
    if system is None:
        system = platform.system()
    return _DEVICE_NAMES.get(system, UNKNOWN_DEVICE)


def local_address() -> str:
    """
    Best-effort local IPv4 address of this machine.

    Opening a UDP socket towards a private address sends nothing but makes
    the OS pick the outgoing interface.
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("10.255.255.255", 1))
            return sock.getsockname()[0]
    except OSError as e:
        logger.debug(f"Could not determine local address: {e}")
        return UNKNOWN_ADDRESS
