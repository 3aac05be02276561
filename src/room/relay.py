"""
Message Relay

Relays chat and file messages to every participant through the bus.
Messages are never stored: history lives only in each replica's memory.
"""

import logging

from .bus import Bus
from .events import NewMessage
from .models import Message

logger = logging.getLogger(__name__)


class MessageRelay:
    """Publishes fully built messages as NewMessage events."""

    def __init__(self, bus: Bus):
        self.bus = bus

    def send(self, message: Message) -> None:
        """
        Publish a message.

        Fire-and-forget: there is no acknowledgement, no retry and no size
        limit. The id, timestamp and sender snapshot are set by the caller.
        """
        self.bus.publish(NewMessage(message))
        logger.debug(
            f"Relayed {message.kind.value} message {message.id} "
            f"from {message.sender_name}"
        )
