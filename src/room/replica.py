"""
Session Replica

One context's local view of the shared session. A replica subscribes to
the bus and applies every event it receives:

    SyncSession  -> replace the session and overwrite the stored copy
    NewMessage   -> append to the message list
    Kicked       -> if it names this replica's user, drop the user record
    SessionEnded -> clear the store and stop listening

Snapshots are applied unconditionally, so when two contexts publish
conflicting snapshots the last one applied wins.
"""

import logging
from typing import Callable, List, Optional, assert_never

from .bus import Bus, Unsubscribe
from .events import Kicked, NetworkEvent, NewMessage, SessionEnded, SyncSession
from .models import Message, Session, User
from .store import SessionStore

logger = logging.getLogger(__name__)


class SessionReplica:
    """
    Applies bus events to the in-memory state of one participant context.

    Attributes:
        session: Latest applied snapshot (None before the first one)
        user: The participant this context represents, if any
        messages: Messages received since the replica was attached
        kicked: True once a Kicked event named this replica's user
        ended: True once SessionEnded was received
    """

    def __init__(
        self,
        bus: Bus,
        store: Optional[SessionStore] = None,
        session: Optional[Session] = None,
        user: Optional[User] = None,
    ):
        """
        Initialize the replica.

        Args:
            bus: Bus to listen on
            store: Optional store receiving every applied snapshot
            session: Initial session (e.g., restored from the store)
            user: Participant represented by this context
        """
        self.bus = bus
        self.store = store
        self.session = session
        self.user = user
        self.messages: List[Message] = []
        self.kicked = False
        self.ended = False
        self._unsubscribe: Optional[Unsubscribe] = None

        self._on_session_synced: Optional[Callable[[Session], None]] = None
        self._on_message: Optional[Callable[[Message], None]] = None
        self._on_kicked: Optional[Callable[[str], None]] = None
        self._on_session_ended: Optional[Callable[[], None]] = None

    @property
    def is_attached(self) -> bool:
        return self._unsubscribe is not None

    def attach(self) -> None:
        """Start receiving events. Events published earlier are missed."""
        if self._unsubscribe is None:
            self._unsubscribe = self.bus.subscribe(self.apply)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def set_on_session_synced(self, callback: Callable[[Session], None]) -> None:
        self._on_session_synced = callback

    def set_on_message(self, callback: Callable[[Message], None]) -> None:
        self._on_message = callback

    def set_on_kicked(self, callback: Callable[[str], None]) -> None:
        """
        Register callback for when this replica's user is kicked.

        Args:
            callback: Function that receives the kicked user id
        """
        self._on_kicked = callback

    def set_on_session_ended(self, callback: Callable[[], None]) -> None:
        self._on_session_ended = callback

    def apply(self, event: NetworkEvent) -> None:
        """Apply one event to local state."""
        if isinstance(event, SyncSession):
            self._apply_sync(event.session)
        elif isinstance(event, NewMessage):
            self._apply_message(event.message)
        elif isinstance(event, Kicked):
            self._apply_kicked(event.user_id)
        elif isinstance(event, SessionEnded):
            self._apply_session_ended()
        else:
            assert_never(event)

    def _apply_sync(self, session: Session) -> None:
        self.session = session
        if self.store is not None:
            self.store.save_session(session)
        logger.debug(
            f"Applied snapshot of session {session.id} "
            f"({session.member_count} users)"
        )
        if self._on_session_synced:
            self._on_session_synced(session)

    def _apply_message(self, message: Message) -> None:
        self.messages.append(message)
        if self._on_message:
            self._on_message(message)

    def _apply_kicked(self, user_id: str) -> None:
        if self.user is None or user_id != self.user.id:
            return

        self.kicked = True
        if self.store is not None:
            self.store.clear_user()
        logger.info(f"User {user_id} was kicked from the session")
        if self._on_kicked:
            self._on_kicked(user_id)

    def _apply_session_ended(self) -> None:
        self.ended = True
        self.detach()
        if self.store is not None:
            self.store.clear()
        logger.info("Session ended by host")
        if self._on_session_ended:
            self._on_session_ended()
