"""
Session Store

Durable-for-this-device record of the single active session and the
caller's own identity. Two records are kept under fixed keys and read at
process start to decide whether to resume a prior session.

The session record is shared by every context on the device. The user
record belongs to one context, so it may live in a separate backend:
contexts sharing a session backend must not share a user backend.
"""

import json
import logging
from typing import Any, Callable, Optional, Tuple, TypeVar

from .models import Session, User
from .storage import Storage

logger = logging.getLogger(__name__)

STORAGE_KEY_SESSION = "room_sync_session"
STORAGE_KEY_USER = "room_sync_current_user"

T = TypeVar("T")


class SessionStore:
    """
    Reads and writes the session and current-user records.

    Attributes:
        storage: Backend holding the session record
        user_storage: Backend holding this context's user record
    """

    def __init__(
        self, storage: Storage, user_storage: Optional[Storage] = None
    ):
        """
        Initialize the store.

        Args:
            storage: Device-shared backend for the session record
            user_storage: Per-context backend for the user record
                          (defaults to storage)
        """
        if user_storage is None:
            user_storage = storage
        self.storage = storage
        self.user_storage = user_storage

    def _load(
        self, storage: Storage, key: str, factory: Callable[[Any], T]
    ) -> Optional[T]:
        raw = storage.get_item(key)
        if raw is None:
            return None
        try:
            return factory(json.loads(raw))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable record '{key}': {e}")
            return None

    def load_session(self) -> Optional[Session]:
        return self._load(self.storage, STORAGE_KEY_SESSION, Session.from_dict)

    def save_session(self, session: Session) -> None:
        self.storage.set_item(
            STORAGE_KEY_SESSION, json.dumps(session.to_dict())
        )
        logger.debug(
            f"Stored session {session.id} with {session.member_count} users"
        )

    def clear_session(self) -> None:
        self.storage.remove_item(STORAGE_KEY_SESSION)

    def load_user(self) -> Optional[User]:
        return self._load(self.user_storage, STORAGE_KEY_USER, User.from_dict)

    def save_user(self, user: User) -> None:
        self.user_storage.set_item(
            STORAGE_KEY_USER, json.dumps(user.to_dict())
        )

    def clear_user(self) -> None:
        self.user_storage.remove_item(STORAGE_KEY_USER)

    def clear(self) -> None:
        """Remove both records."""
        self.clear_session()
        self.clear_user()

    def restore(self) -> Optional[Tuple[Session, User]]:
        """
        Look up a session this device can resume.

        Returns:
            (session, user) when the stored session is active and still
            lists the stored user as a member, otherwise None
        """
        session = self.load_session()
        user = self.load_user()
        if session is None or user is None or not session.is_active:
            return None

        member = session.get_user(user.id)
        if member is None:
            logger.info(
                f"Stored user {user.id} is no longer in session {session.id}"
            )
            return None
        return session, member
