"""
Service factory and session registry for the officiating desk.

The factory builds fully wired :class:`MatchSession` instances from the
runtime settings; the registry keeps one session per match id so that the
web app never shares timers between matches.
"""
import logging
import threading
from typing import Dict, List, Optional

from ..models import LiveMatch
from ..utils import Settings
from .backend_client import MatchBackendClient
from .match_session import MatchSession
from .snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


class ServiceFactory:
    """
    Factory for creating match sessions with their dependencies injected.

    The backend client and the snapshot store are shared by every session
    created from the same factory.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self._backend: Optional[MatchBackendClient] = None
        self._snapshot_store: Optional[SnapshotStore] = None

    def create_session(self, match: LiveMatch) -> MatchSession:
        """
        Create a MatchSession for ``match``.

        Args:
            match: Match metadata, period schedule and any known state

        Returns:
            A session that has not been activated yet
        """
        return MatchSession(
            match,
            backend=self.get_backend(),
            settings=self.settings,
            snapshot_store=self.get_snapshot_store(),
        )

    def get_backend(self) -> MatchBackendClient:
        """Get singleton backend client."""
        if self._backend is None:
            self._backend = MatchBackendClient(
                self.settings.backend_url, timeout=self.settings.request_timeout_seconds
            )
        return self._backend

    def get_snapshot_store(self) -> Optional[SnapshotStore]:
        """Get singleton snapshot store, or None when snapshots are disabled."""
        if self._snapshot_store is None and self.settings.snapshot_dir:
            self._snapshot_store = SnapshotStore(self.settings.snapshot_dir)
        return self._snapshot_store

    def configure_backend(self, backend: MatchBackendClient) -> None:
        """Use a custom backend client for sessions created from now on."""
        self._backend = backend

    def configure_snapshot_store(self, store: Optional[SnapshotStore]) -> None:
        self._snapshot_store = store


class SessionRegistry:
    """One active officiating session per match id."""

    def __init__(self, factory: Optional[ServiceFactory] = None):
        self.factory = factory or ServiceFactory()
        self._sessions: Dict[str, MatchSession] = {}
        self._lock = threading.Lock()

    def open(self, match: LiveMatch) -> MatchSession:
        """
        Create and activate a session, replacing any previous one for the match.

        Returns:
            The activated session
        """
        session = self.factory.create_session(match)
        with self._lock:
            previous = self._sessions.pop(match.id, None)
        if previous is not None:
            logger.info("Match %s: replacing existing session", match.id)
            previous.close()
        session.activate()
        with self._lock:
            self._sessions[match.id] = session
        return session

    def get(self, match_id: str) -> Optional[MatchSession]:
        with self._lock:
            return self._sessions.get(match_id)

    def match_ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def close(self, match_id: str) -> bool:
        """Close and forget the session for ``match_id``. Returns False if none was open."""
        with self._lock:
            session = self._sessions.pop(match_id, None)
        if session is None:
            return False
        session.close()
        return True

    def close_all(self) -> None:
        for match_id in self.match_ids():
            self.close(match_id)
