"""
Participant Controller

Caller-facing entry point for one participant context. It validates user
input, drives the membership core, keeps a SessionReplica attached to the
bus and reports when the participant has to leave the session view.

Architecture:
    - Storage and bus are injected, so every test builds its own instances
    - All state the caller reads comes from the replica, i.e. from bus
      delivery, never from a separate direct write
    - Host-only actions are refused here; the core does not check them

Usage:
    participant = Participant(bus, SessionStore(storage))
    session = participant.create_session("alice", max_users=4)
    participant.send_text("hello")
"""

import logging
from typing import Callable, List, Optional

from room import (
    AdmissionError,
    Bus,
    MembershipManager,
    Message,
    MessageRelay,
    Session,
    SessionConfig,
    SessionReplica,
    SessionStore,
    User,
    UserRole,
)

from .messages import (
    build_file_message,
    build_file_message_from_path,
    build_text_message,
)
from .validation import (
    DEFAULT_MAX_USERS,
    ValidationError,
    require,
    validate_display_name,
    validate_max_users,
    validate_pin,
)

logger = logging.getLogger(__name__)

EXIT_LEFT = "left"
EXIT_KICKED = "kicked"
EXIT_ENDED = "ended"


class NotInSessionError(RuntimeError):
    """The operation needs an active session membership."""


class Participant:
    """
    One participant's view of and actions on the shared session.

    Attributes:
        bus: Event bus shared with sibling contexts
        store: This context's SessionStore
        manager: Membership operations
        relay: Message publishing
        replica: Local state, present while in a session
    """

    def __init__(
        self,
        bus: Bus,
        store: SessionStore,
        manager: Optional[MembershipManager] = None,
        relay: Optional[MessageRelay] = None,
    ):
        """
        Initialize the participant.

        Args:
            bus: Event bus
            store: Session store for this context
            manager: Optional membership manager (built from store and bus)
            relay: Optional message relay (built from bus)
        """
        self.bus = bus
        self.store = store
        self.manager = manager or MembershipManager(store, bus)
        self.relay = relay or MessageRelay(bus)
        self.replica: Optional[SessionReplica] = None

        self._on_exit: Optional[Callable[[str], None]] = None
        self._on_session_synced: Optional[Callable[[Session], None]] = None
        self._on_message: Optional[Callable[[Message], None]] = None

    # ----- state -----

    @property
    def in_session(self) -> bool:
        return self.replica is not None and self.replica.user is not None

    @property
    def session(self) -> Optional[Session]:
        return self.replica.session if self.replica else None

    @property
    def user(self) -> Optional[User]:
        return self.replica.user if self.replica else None

    @property
    def messages(self) -> List[Message]:
        return list(self.replica.messages) if self.replica else []

    @property
    def is_host(self) -> bool:
        user = self.user
        return user is not None and user.role == UserRole.HOST

    # ----- callbacks -----

    def set_on_exit(self, callback: Callable[[str], None]) -> None:
        """
        Register callback for leaving the session view.

        Args:
            callback: Function receiving the reason: "left", "kicked"
                      or "ended"
        """
        self._on_exit = callback

    def set_on_session_synced(self, callback: Callable[[Session], None]) -> None:
        self._on_session_synced = callback
        if self.replica:
            self.replica.set_on_session_synced(callback)

    def set_on_message(self, callback: Callable[[Message], None]) -> None:
        self._on_message = callback
        if self.replica:
            self.replica.set_on_message(callback)

    # ----- lifecycle -----

    def _new_replica(
        self, session: Optional[Session] = None, user: Optional[User] = None
    ) -> SessionReplica:
        replica = SessionReplica(self.bus, self.store, session, user)
        replica.set_on_kicked(lambda _user_id: self._exit(EXIT_KICKED))
        replica.set_on_session_ended(lambda: self._exit(EXIT_ENDED))
        if self._on_session_synced:
            replica.set_on_session_synced(self._on_session_synced)
        if self._on_message:
            replica.set_on_message(self._on_message)
        replica.attach()
        return replica

    def _drop_replica(self) -> None:
        if self.replica is not None:
            self.replica.detach()
            self.replica = None

    def _exit(self, reason: str) -> None:
        self._drop_replica()
        logger.info(f"Left session view ({reason})")
        if self._on_exit:
            self._on_exit(reason)

    def _require_session(self) -> None:
        if not self.in_session:
            raise NotInSessionError("Not in a session")

    def _require_host(self, action: str) -> None:
        self._require_session()
        if not self.is_host:
            raise PermissionError(f"Only the host can {action}")

    def resume(self) -> bool:
        """
        Resume the session stored on this device, if still valid.

        Returns:
            True if a session was resumed
        """
        restored = self.store.restore()
        if restored is None:
            return False

        session, user = restored
        self._drop_replica()
        self.replica = self._new_replica(session, user)
        logger.info(f"Resumed session {session.id} as '{user.display_name}'")
        return True

    def create_session(
        self,
        name: str,
        max_users: int = DEFAULT_MAX_USERS,
        enable_2fa: bool = False,
        pin: Optional[str] = None,
    ) -> Session:
        """
        Create and host a new session.

        Args:
            name: Host display name
            max_users: Capacity (2 to 20)
            enable_2fa: Require a PIN to join
            pin: 8-digit PIN, used only when enable_2fa is set

        Raises:
            ValidationError: If any input is invalid
        """
        require(validate_display_name(name), "name")
        require(validate_max_users(max_users), "max_users")
        if enable_2fa:
            require(validate_pin(pin), "pin")
        else:
            pin = None

        session = self.manager.create_session(
            name, SessionConfig(max_users, enable_2fa, pin)
        )
        self._drop_replica()
        self.replica = self._new_replica(session, session.host)
        return session

    def join_session(
        self, code: str, name: str, pin: Optional[str] = None
    ) -> Session:
        """
        Join the session identified by code.

        Raises:
            ValidationError: If the name or code is invalid
            AdmissionError: If the session rejects the join
        """
        require(validate_display_name(name), "name")
        code = (code or "").strip()
        if not code:
            raise ValidationError("Room code is required", field="code")

        self._drop_replica()
        # Attach first so this context applies its own snapshot
        replica = self._new_replica()
        try:
            result = self.manager.join_session(code, name, pin or None)
        except AdmissionError:
            replica.detach()
            raise

        replica.user = result.user
        self.replica = replica
        return replica.session or result.session

    def leave(self) -> None:
        """Leave the session and forget this device's user record."""
        if not self.in_session:
            return
        self.manager.leave_session(self.user.id)
        self.store.clear_user()
        self._exit(EXIT_LEFT)

    # ----- host actions -----

    def kick(self, user_id: str) -> None:
        """
        Remove another participant.

        Raises:
            PermissionError: If this participant is not the host
            ValidationError: If the host tries to kick themselves
        """
        self._require_host("kick participants")
        if user_id == self.user.id:
            raise ValidationError("The host cannot kick themselves", "user_id")
        self.manager.kick_user(user_id)

    def end_session(self) -> None:
        """
        End the session for everyone.

        Raises:
            PermissionError: If this participant is not the host
        """
        self._require_host("end the session")
        self.manager.end_session()

    # ----- messaging -----

    def send_text(self, text: str) -> Message:
        """
        Send a text message, expanding slash commands.

        Raises:
            NotInSessionError: If not in a session
            ValidationError: If the content is empty or too long
        """
        self._require_session()
        message = build_text_message(self.user, text)
        self.relay.send(message)
        return message

    def send_file(self, path) -> Message:
        """Send a file from disk as an inline attachment."""
        self._require_session()
        message = build_file_message_from_path(self.user, path)
        self.relay.send(message)
        return message

    def send_file_data(
        self, name: str, data: bytes, mime_type: Optional[str] = None
    ) -> Message:
        self._require_session()
        message = build_file_message(self.user, name, data, mime_type)
        self.relay.send(message)
        return message
