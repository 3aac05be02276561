"""
Membership Management

Owns the session lifecycle: creation, admission, departure and teardown.

Lifecycle per session:
    NONE -> ACTIVE -> ENDED (terminal)

Every membership change is persisted to this context's SessionStore and
then published as a full SyncSession snapshot. Admission checks run
against the snapshot read at the start of the call; two contexts joining
the same almost-full session concurrently can both succeed, and whichever
snapshot a replica applies last wins.

Host permission for kick_user() and end_session() is not checked here.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Callable, Optional

from .bus import Bus
from .codes import RoomCodeGenerator
from .device import describe_device, local_address
from .events import Kicked, SessionEnded, SyncSession
from .models import Session, SessionConfig, User, UserRole, utc_now
from .store import SessionStore

logger = logging.getLogger(__name__)


class AdmissionError(ValueError):
    """
    A join attempt was rejected. Terminal for the call.

    Attributes:
        code: Room code the caller tried to join
        error_code: Machine-readable reason
    """

    error_code = "ADMISSION_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class SessionNotFoundError(AdmissionError):
    error_code = "NOT_FOUND"


class InvalidPinError(AdmissionError):
    error_code = "INVALID_PIN"


class SessionFullError(AdmissionError):
    error_code = "SESSION_FULL"


@dataclass(frozen=True)
class JoinResult:
    """Outcome of a successful join."""

    session: Session
    user: User


class MembershipManager:
    """
    Creates, joins, leaves and ends the session known to this context.

    Attributes:
        store: This context's SessionStore
        bus: Bus receiving the membership events
    """

    def __init__(
        self,
        store: SessionStore,
        bus: Bus,
        code_generator: Optional[RoomCodeGenerator] = None,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], str]] = None,
        device_info: Optional[Callable[[], str]] = None,
        network_address: Optional[Callable[[], str]] = None,
    ):
        """
        Initialize the manager.

        Args:
            store: Persistence for the session and current user records
            bus: Event bus used to publish membership changes
            code_generator: Room code source
            id_factory: User id source (defaults to uuid4 strings)
            clock: Timestamp source (defaults to ISO 8601 UTC now)
            device_info: Device descriptor source
            network_address: Advisory address source
        """
        self.store = store
        self.bus = bus
        self._codes = code_generator or RoomCodeGenerator()
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))
        self._now = clock or utc_now
        self._device_info = device_info or describe_device
        self._network_address = network_address or local_address

    def _create_user(self, name: str, role: UserRole) -> User:
        return User(
            id=self._new_id(),
            display_name=name,
            role=role,
            joined_at=self._now(),
            device_info=self._device_info(),
            network_address=self._network_address(),
        )

    def create_session(self, host_name: str, config: SessionConfig) -> Session:
        """
        Create a new session hosted by host_name.

        The session is stored but not published: nobody else is listening
        for it yet.

        Args:
            host_name: Display name of the host (validated by the caller)
            config: Admission settings

        Returns:
            The new active Session containing only the host
        """
        host = self._create_user(host_name, UserRole.HOST)
        session = Session(
            id=self._codes.generate(),
            host_id=host.id,
            created_at=self._now(),
            config=config,
            users=(host,),
            is_active=True,
        )

        self.store.save_session(session)
        self.store.save_user(host)

        logger.info(
            f"Created session {session.id} hosted by '{host_name}' "
            f"(max_users={config.max_users}, 2fa={config.enable_2fa})"
        )
        return session

    def join_session(
        self, code: str, name: str, pin: Optional[str] = None
    ) -> JoinResult:
        """
        Admit name into the session identified by code.

        Args:
            code: Room code
            name: Display name of the joining user (validated by the caller)
            pin: PIN, required when the session has 2FA enabled

        Returns:
            JoinResult with the updated session and the new GUEST user

        Raises:
            SessionNotFoundError: No active session matches code
            InvalidPinError: 2FA is enabled and pin does not match
            SessionFullError: The session is at capacity
        """
        session = self.store.load_session()

        if session is None or session.id != code or not session.is_active:
            logger.warning(f"Join rejected: session {code} not found")
            raise SessionNotFoundError(
                "Session not found or ended.", code=code
            )

        if session.config.enable_2fa and session.config.pin != pin:
            logger.warning(f"Join rejected: invalid PIN for session {code}")
            raise InvalidPinError("Invalid Security PIN.", code=code)

        if session.is_full:
            logger.warning(
                f"Join rejected: session {code} is full "
                f"({session.member_count}/{session.config.max_users})"
            )
            raise SessionFullError("Session is full.", code=code)

        user = self._create_user(name, UserRole.GUEST)
        updated = session.with_user(user)

        self.store.save_session(updated)
        self.store.save_user(user)
        self.bus.publish(SyncSession(updated))

        logger.info(
            f"User '{name}' ({user.id}) joined session {code} "
            f"({updated.member_count}/{updated.config.max_users})"
        )
        return JoinResult(session=updated, user=user)

    def _remove(self, user_id: str) -> Optional[Session]:
        session = self.store.load_session()
        if session is None:
            logger.warning(f"No stored session to remove user {user_id} from")
            return None

        updated = session.without_user(user_id)
        self.store.save_session(updated)
        self.bus.publish(SyncSession(updated))
        return updated

    def leave_session(self, user_id: str) -> Optional[Session]:
        """
        Remove user_id from the session and publish the new snapshot.

        Removing an absent user republishes the unchanged snapshot.

        Returns:
            The updated session, or None if no session is stored
        """
        session = self._remove(user_id)
        if session is None:
            return None

        logger.info(f"User {user_id} left session {session.id}")
        if user_id == session.host_id:
            logger.warning(
                f"Host left session {session.id} without ending it; "
                f"no new host is elected"
            )
        return session

    def kick_user(self, user_id: str) -> Optional[Session]:
        """
        Remove user_id and tell that user's client it was removed.

        Publishes SyncSession followed by Kicked(user_id).

        Returns:
            The updated session, or None if no session is stored
        """
        session = self._remove(user_id)
        if session is None:
            return None

        self.bus.publish(Kicked(user_id=user_id))
        logger.info(f"User {user_id} kicked from session {session.id}")
        return session

    def end_session(self) -> None:
        """
        Publish SessionEnded and delete the stored session record.

        The session cannot be recovered afterwards.
        """
        session = self.store.load_session()
        self.bus.publish(SessionEnded())
        self.store.clear_session()

        if session is not None:
            logger.info(f"Ended session {session.id}")
        else:
            logger.info("Ended session (no stored record)")
