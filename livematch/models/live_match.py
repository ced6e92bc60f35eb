"""
LiveMatch model for the live match officiating desk.

This module contains the LiveMatch dataclass, the snapshot of everything the
officiating desk knows about one match: teams, status, period schedule,
clock checkpoint and recorded events.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .checkpoint import Checkpoint, MatchStatus
from .match_event import MatchEvent
from .period import Period, normalize_periods


@dataclass
class LiveMatch:
    """
    Represents the officiating state of a single match.

    Attributes:
        id: Backend match id
        home_team: Home team display name
        away_team: Away team display name
        status: Coarse match status (Scheduled, Active, Live, Finished)
        periods: Normalized period schedule
        checkpoint: Durable clock state, None until kickoff
        events: Recorded events in insertion order
        home_score: Last known home score
        away_score: Last known away score
        match_duration: Total playing minutes of the schedule, as reported by the backend
    """
    id: str
    home_team: str = "Home"
    away_team: str = "Away"
    status: MatchStatus = MatchStatus.SCHEDULED
    periods: List[Period] = field(default_factory=list)
    checkpoint: Optional[Checkpoint] = None
    events: List[MatchEvent] = field(default_factory=list)
    home_score: int = 0
    away_score: int = 0
    match_duration: Optional[int] = None

    def team_name(self, side: str) -> str:
        return self.home_team if side == "home" else self.away_team

    def to_json(self) -> Dict[str, Any]:
        """
        Convert LiveMatch to a JSON-serializable dictionary.

        Returns:
            Dictionary representation using the backend's camelCase keys
        """
        return {
            "id": self.id,
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
            "status": self.status.value,
            "periods": [p.to_json() for p in self.periods],
            "periodState": self.checkpoint.to_json() if self.checkpoint else None,
            "events": [e.to_json() for e in self.events],
            "homeScore": self.home_score,
            "awayScore": self.away_score,
            "matchDuration": self.match_duration,
        }

    @staticmethod
    def from_json(data: Dict[str, Any]) -> "LiveMatch":
        """
        Create LiveMatch from a JSON dictionary.

        Args:
            data: Dictionary with match data, as produced by :meth:`to_json`
                or returned by the backend

        Returns:
            New LiveMatch instance
        """
        state = data.get("periodState")
        return LiveMatch(
            id=str(data["id"]),
            home_team=data.get("homeTeam") or "Home",
            away_team=data.get("awayTeam") or "Away",
            status=MatchStatus.parse(data.get("status")),
            periods=normalize_periods(data.get("periods")),
            checkpoint=Checkpoint.from_json(state) if state else None,
            events=[MatchEvent.from_json(e) for e in data.get("events") or []],
            home_score=int(data.get("homeScore") or 0),
            away_score=int(data.get("awayScore") or 0),
            match_duration=data.get("matchDuration"),
        )
