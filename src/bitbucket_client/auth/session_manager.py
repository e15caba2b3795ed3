"""
Session handle shared by the API client and resource operations.
"""

import logging
from typing import Optional

from ..models import Session
from ..error_handling import NotAuthenticatedError, SessionStorageError
from .session_store import SessionStore

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Owns the single active session of a process.

    The manager is either empty (not logged in) or holds one fully
    resolved session. Opening a new session replaces the previous one.
    Persistence is explicit: ``persist`` writes the active session to the
    store, ``load`` rehydrates it and ``close`` discards both.
    """

    def __init__(self, store: Optional[SessionStore] = None):
        """
        Initialize session manager.

        Args:
            store: Store used by ``persist``, ``load`` and ``close``;
                without one the session lives only in memory
        """
        self.store = store
        self._session: Optional[Session] = None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def open(self, session: Session) -> Session:
        """
        Make ``session`` the active session.

        Args:
            session: Session with its user identity resolved

        Returns:
            The active session

        Raises:
            ValueError: If the session's identity has not been resolved
        """
        if not session.is_resolved:
            raise ValueError("Cannot open a session without a resolved user identity")

        self._session = session
        logger.info(f"Logged in as {session.display_name} ({session.auth_type.value} auth)")
        return session

    def get(self) -> Session:
        """
        Get the active session.

        Raises:
            NotAuthenticatedError: If no session is open
        """
        if self._session is None:
            raise NotAuthenticatedError()
        return self._session

    def close(self) -> None:
        """Discard the active session and its persisted form."""
        if self._session is not None:
            logger.info(f"Logged out {self._session.display_name}")
        self._session = None
        if self.store is not None:
            self.store.clear()

    def select_team(self, team: str) -> Session:
        """
        Record ``team`` as the selected team of the active session.

        Raises:
            NotAuthenticatedError: If no session is open
        """
        session = self.get()
        session.selected_team = team
        logger.info(f"Selected team: {team}")
        return session

    def auth_header(self) -> str:
        """Authorization header value of the active session."""
        return self.get().auth_header()

    def persist(self) -> None:
        """
        Write the active session to the store.

        Raises:
            NotAuthenticatedError: If no session is open
        """
        session = self.get()
        if self.store is None:
            logger.debug("No session store configured; session kept in memory only")
            return
        self.store.save(session.to_dict())

    def load(self) -> Optional[Session]:
        """
        Rehydrate the persisted session, if any.

        Returns:
            The loaded session, or None when nothing is persisted

        Raises:
            SessionStorageError: If the persisted session is malformed or unresolved
        """
        if self.store is None:
            return None

        data = self.store.load()
        if data is None:
            return None

        session = Session.from_dict(data)
        if not session.is_resolved:
            raise SessionStorageError("Persisted session has no user identity; log in again")

        self._session = session
        logger.debug(f"Loaded persisted session for {self._session.display_name}")
        return self._session
