import logging
import threading
from dataclasses import dataclass
from typing import Dict, Hashable, Optional

from solders.keypair import Keypair

from core.constants import InputMode
from schemas.transaction import PendingTransaction

logger = logging.getLogger(__name__)


@dataclass
class UserSession:
    user_id: Hashable
    keypair: Optional[Keypair] = None
    input_mode: InputMode = InputMode.NONE
    # a single optional slot: at most one pending transaction per user
    pending: Optional[PendingTransaction] = None

    @property
    def public_key(self) -> Optional[str]:
        return str(self.keypair.pubkey()) if self.keypair else None


class SessionStore:
    """Process-lifetime table of user sessions.

    Writes for one user are serialized by the caller (one in-flight update per
    user); the lock only protects the table itself against concurrent
    insertion for different users.
    """

    def __init__(self):
        self._sessions: Dict[Hashable, UserSession] = {}
        self._lock = threading.Lock()

    def get(self, user_id: Hashable) -> UserSession:
        session = self._sessions.get(user_id)
        if session is not None:
            return session
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None:
                session = UserSession(user_id=user_id)
                self._sessions[user_id] = session
                logger.info("Created session for user %s", user_id)
        return session

    def set_identity(self, user_id: Hashable, keypair: Keypair) -> UserSession:
        session = self.get(user_id)
        session.keypair = keypair
        return session

    def set_mode(self, user_id: Hashable, mode: InputMode) -> UserSession:
        session = self.get(user_id)
        session.input_mode = mode
        return session

    def set_pending(self, user_id: Hashable, tx: PendingTransaction) -> UserSession:
        session = self.get(user_id)
        if session.pending is not None:
            logger.info(
                "Replacing unconfirmed %s for user %s",
                session.pending.kind.value,
                user_id,
            )
        session.pending = tx
        return session

    def clear_pending(self, user_id: Hashable) -> Optional[PendingTransaction]:
        """Drop the pending transaction and return it, if any."""
        session = self.get(user_id)
        pending, session.pending = session.pending, None
        return pending

    def __len__(self):
        return len(self._sessions)

    def __contains__(self, user_id):
        return user_id in self._sessions
