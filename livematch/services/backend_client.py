"""
REST client for the match backend of record.

Every call either returns normally or raises
:class:`~livematch.exceptions.TransientPersistenceError`; a missing clock
state (HTTP 404) is the only "not found" answer and is returned as ``None``.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from ..exceptions import TransientPersistenceError
from ..models import Checkpoint, MatchEvent, MatchStatus, Period
from ..utils import REQUEST_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "User-Agent": "livematch-officiating/1.0",
}


class MatchBackendClient:
    """Thin wrapper over the match endpoints of the league backend."""

    def __init__(
        self,
        base_url: str,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(HEADERS)

    # ------------------------------------------------------------------
    # Clock state
    # ------------------------------------------------------------------
    def get_state(self, match_id: str) -> Optional[Checkpoint]:
        """Fetch the saved checkpoint, or ``None`` if the match has none yet."""
        response = self._request("get_state", "GET", f"/{match_id}/state", allow_not_found=True)
        if response is None:
            return None
        data = self._json(response, "get_state")
        if not data:
            return None
        try:
            return Checkpoint.from_json(data)
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning("get_state returned an unreadable checkpoint: %s", e)
            raise TransientPersistenceError("get_state", "Malformed response body") from e

    def put_state(self, match_id: str, checkpoint: Checkpoint) -> None:
        self._request("put_state", "PUT", f"/{match_id}/state", json=checkpoint.to_json())

    # ------------------------------------------------------------------
    # Events and score
    # ------------------------------------------------------------------
    def post_event(self, match_id: str, event: MatchEvent) -> None:
        self._request("post_event", "POST", f"/{match_id}/events", json=event.to_json())

    def get_events(self, match_id: str) -> List[MatchEvent]:
        """Fetch the recorded events; entries that cannot be read are skipped."""
        response = self._request("get_events", "GET", f"/{match_id}/events")
        data = self._json(response, "get_events") or []
        if not isinstance(data, list):
            raise TransientPersistenceError("get_events", "Malformed response body")

        events = []
        for item in data:
            try:
                events.append(MatchEvent.from_json(item))
            except (AttributeError, TypeError, ValueError) as e:
                logger.warning("Skipping unreadable event from match %s: %s", match_id, e)
        return events

    def put_score(self, match_id: str, home_score: int, away_score: int) -> None:
        self._request(
            "put_score", "PUT", f"/{match_id}/score",
            json={"homeScore": home_score, "awayScore": away_score},
        )

    # ------------------------------------------------------------------
    # Match metadata
    # ------------------------------------------------------------------
    def put_periods(self, match_id: str, periods: Sequence[Period]) -> Dict[str, Any]:
        """Save the period schedule; the backend answers with the updated match."""
        response = self._request(
            "put_periods", "PUT", f"/{match_id}/periods",
            json=[p.to_json() for p in periods],
        )
        return self._json(response, "put_periods") or {}

    def put_status(self, match_id: str, status: MatchStatus) -> None:
        self._request("put_status", "PUT", f"/{match_id}/status", json={"status": status.value})

    def reset_match(self, match_id: str) -> None:
        """Clear score, events and clock state on the backend."""
        self._request(
            "reset_match", "POST", f"/{match_id}/reset",
            json={
                "status": MatchStatus.ACTIVE.value,
                "homeScore": 0,
                "awayScore": 0,
                "currentMinute": 0,
                "periodState": None,
            },
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _request(
        self,
        operation: str,
        method: str,
        path: str,
        allow_not_found: bool = False,
        **kwargs,
    ) -> Optional[requests.Response]:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning("%s failed: %s", operation, e)
            raise TransientPersistenceError(operation, "No response from server") from e

        if allow_not_found and response.status_code == 404:
            return None
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            status = response.status_code
            logger.warning("%s failed with HTTP %s", operation, status)
            raise TransientPersistenceError(operation, f"HTTP {status}", status_code=status) from e
        return response

    @staticmethod
    def _json(response: requests.Response, operation: str) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransientPersistenceError(operation, "Malformed response body") from e
