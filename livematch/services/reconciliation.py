"""
Reconciliation between the local officiating session and the backend.

The local session is authoritative while it is active. Writes are issued in
the order the local transitions happened (one worker, one queue) and never
block or roll back the local state; their failures become dismissible
warnings. Loads are only accepted when no local write could be newer.
"""
import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Deque, List, Optional, Sequence

from ..exceptions import TransientPersistenceError
from ..models import Checkpoint, MatchEvent, MatchStatus, Period
from ..utils import MAX_WARNINGS, now_ms
from .backend_client import MatchBackendClient

logger = logging.getLogger(__name__)


class LoadOutcome(Enum):
    LOADED = "loaded"
    NOT_FOUND = "not_found"
    FAILED = "failed"
    DISCARDED = "discarded"


@dataclass
class LoadResult:
    """Outcome of :meth:`ReconciliationLayer.load_checkpoint`."""
    outcome: LoadOutcome
    checkpoint: Optional[Checkpoint] = None
    error: Optional[TransientPersistenceError] = None

    @property
    def is_fresh_start(self) -> bool:
        return self.outcome is LoadOutcome.NOT_FOUND


@dataclass
class SyncResult:
    """Outcome of a single backend call made through the reconciliation layer."""
    operation: str
    success: bool
    value: Any = None
    error: Optional[TransientPersistenceError] = None


@dataclass
class SyncWarning:
    """A non-fatal sync failure shown to the official until dismissed."""
    operation: str
    message: str
    at: int = field(default_factory=now_ms)

    def to_json(self) -> dict:
        return {"operation": self.operation, "message": self.message, "at": self.at}


class ReconciliationLayer:
    """Persistence boundary for one match; never raises transport errors."""

    def __init__(self, match_id: str, backend: MatchBackendClient):
        self.match_id = match_id
        self.backend = backend
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"sync-{match_id}")
        self._lock = threading.Lock()
        self._warnings: Deque[SyncWarning] = deque(maxlen=MAX_WARNINGS)
        self._in_flight = 0
        self._issued = 0
        self._confirmed_version = 0
        self._latest: Optional[Checkpoint] = None
        self._last_future: Optional[Future] = None
        self._closed = False

    # ------------------------------------------------------------------
    # Loads
    # ------------------------------------------------------------------
    def load_checkpoint(self) -> LoadResult:
        """
        Load the saved checkpoint for this match.

        Absence is reported as NOT_FOUND, a fresh session. A checkpoint that
        arrives while a local write is in flight, or that is older than a
        write the backend already confirmed, is DISCARDED.
        """
        with self._lock:
            issued_before = self._issued

        try:
            checkpoint = self.backend.get_state(self.match_id)
        except TransientPersistenceError as e:
            self._warn("load_state", "Could not load the saved match clock; continuing locally")
            return LoadResult(LoadOutcome.FAILED, error=e)

        if checkpoint is None:
            return LoadResult(LoadOutcome.NOT_FOUND)

        with self._lock:
            superseded = self._in_flight > 0 or self._issued != issued_before
            stale = checkpoint.version < self._confirmed_version
        if superseded or stale:
            logger.info(
                "Match %s: discarding loaded checkpoint v%s (in flight: %s, confirmed: v%s)",
                self.match_id, checkpoint.version, superseded, self._confirmed_version,
            )
            return LoadResult(LoadOutcome.DISCARDED, checkpoint=checkpoint)
        return LoadResult(LoadOutcome.LOADED, checkpoint=checkpoint)

    def load_events(self) -> SyncResult:
        return self._call("load_events", "Could not load match events",
                          lambda: self.backend.get_events(self.match_id))

    # ------------------------------------------------------------------
    # Synchronous writes
    # ------------------------------------------------------------------
    def save_checkpoint(self, checkpoint: Checkpoint, reason: str = "Match clock") -> SyncResult:
        result = self._call(
            "save_state", f"{reason} saved locally but failed to sync",
            lambda: self.backend.put_state(self.match_id, checkpoint),
        )
        if result.success:
            with self._lock:
                self._confirmed_version = max(self._confirmed_version, checkpoint.version)
        return result

    def save_event(self, event: MatchEvent) -> SyncResult:
        return self._call(
            "post_event", "Event recorded locally but failed to save to server",
            lambda: self.backend.post_event(self.match_id, event),
        )

    def save_score(self, home_score: int, away_score: int) -> SyncResult:
        return self._call(
            "put_score", "Score updated locally but failed to sync",
            lambda: self.backend.put_score(self.match_id, home_score, away_score),
        )

    def save_status(self, status: MatchStatus) -> SyncResult:
        return self._call(
            "put_status", f"Match status '{status.value}' set locally but failed to sync",
            lambda: self.backend.put_status(self.match_id, status),
        )

    def save_periods(self, periods: Sequence[Period]) -> SyncResult:
        return self._call(
            "put_periods", "Periods updated locally but failed to save to server",
            lambda: self.backend.put_periods(self.match_id, periods),
        )

    def reset_match(self) -> SyncResult:
        return self._call(
            "reset_match", "Match reset locally but failed to save to server",
            lambda: self.backend.reset_match(self.match_id),
        )

    # ------------------------------------------------------------------
    # Fire-and-forget writes, issued in call order
    # ------------------------------------------------------------------
    def submit_checkpoint(self, checkpoint: Checkpoint, reason: str = "Match clock") -> Optional[Future]:
        snapshot = checkpoint.copy()
        with self._lock:
            self._latest = snapshot
        return self._submit(lambda: self.save_checkpoint(snapshot, reason), tracks_state=True)

    def submit_event(self, event: MatchEvent) -> Optional[Future]:
        return self._submit(lambda: self.save_event(event))

    def submit_score(self, home_score: int, away_score: int) -> Optional[Future]:
        return self._submit(lambda: self.save_score(home_score, away_score))

    def submit_status(self, status: MatchStatus) -> Optional[Future]:
        return self._submit(lambda: self.save_status(status))

    def submit_periods(self, periods: Sequence[Period]) -> Optional[Future]:
        periods = list(periods)
        return self._submit(lambda: self.save_periods(periods))

    def submit_reset(self) -> Optional[Future]:
        with self._lock:
            self._latest = None
        return self._submit(self.reset_match, tracks_state=True)

    def retry(self) -> Optional[Future]:
        """Re-send the latest checkpoint if the backend has not confirmed it."""
        with self._lock:
            latest = self._latest
            confirmed = self._confirmed_version
        if latest is None or latest.version <= confirmed:
            return None
        return self.submit_checkpoint(latest, reason="Retry")

    @property
    def has_pending_writes(self) -> bool:
        with self._lock:
            return self._in_flight > 0

    @property
    def confirmed_version(self) -> int:
        with self._lock:
            return self._confirmed_version

    def flush(self, timeout: Optional[float] = None) -> None:
        """Block until every write issued so far has completed."""
        future = self._last_future
        if future is not None:
            future.result(timeout=timeout)

    def close(self, wait: bool = True) -> None:
        self._closed = True
        self._executor.shutdown(wait=wait)

    # ------------------------------------------------------------------
    # Warnings
    # ------------------------------------------------------------------
    @property
    def warnings(self) -> List[SyncWarning]:
        with self._lock:
            return list(self._warnings)

    def dismiss_warnings(self) -> None:
        with self._lock:
            self._warnings.clear()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _call(self, operation: str, warning: str, fn: Callable[[], Any]) -> SyncResult:
        try:
            value = fn()
        except TransientPersistenceError as e:
            self._warn(operation, warning)
            return SyncResult(operation, False, error=e)
        return SyncResult(operation, True, value=value)

    def _submit(self, fn: Callable[[], SyncResult], tracks_state: bool = False) -> Optional[Future]:
        if self._closed:
            logger.debug("Match %s: sync layer closed, dropping write", self.match_id)
            return None

        with self._lock:
            if tracks_state:
                self._in_flight += 1
                self._issued += 1

        def _run() -> SyncResult:
            try:
                return fn()
            finally:
                if tracks_state:
                    with self._lock:
                        self._in_flight -= 1

        future = self._executor.submit(_run)
        self._last_future = future
        return future

    def _warn(self, operation: str, message: str) -> None:
        logger.warning("Match %s: %s", self.match_id, message)
        with self._lock:
            self._warnings.append(SyncWarning(operation, message))
