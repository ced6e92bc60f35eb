"""Dataclasses representing statistics reports for an officiated match."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .match_event import MatchEvent


@dataclass
class TeamStatistics:
    """Event counts for one side of the match."""

    team: str
    name: str
    goals: int = 0
    yellow_cards: int = 0
    red_cards: int = 0
    substitutions: int = 0
    timeouts: int = 0

    def to_json(self) -> Dict[str, Any]:
        return {
            "team": self.team,
            "name": self.name,
            "goals": self.goals,
            "yellowCards": self.yellow_cards,
            "redCards": self.red_cards,
            "substitutions": self.substitutions,
            "timeouts": self.timeouts,
        }


@dataclass
class MatchReport:
    """Snapshot of the score and event counts for the current match state."""

    generated_ts: float
    match_id: str
    status: str
    clock_state: str
    period_name: Optional[str]
    total_playing_ms: int
    home: TeamStatistics
    away: TeamStatistics
    timeline: List[MatchEvent] = field(default_factory=list)

    @property
    def score_line(self) -> str:
        return f"{self.home.name} {self.home.goals} - {self.away.goals} {self.away.name}"

    def to_json(self) -> Dict[str, Any]:
        return {
            "generatedTs": self.generated_ts,
            "matchId": self.match_id,
            "status": self.status,
            "clockState": self.clock_state,
            "periodName": self.period_name,
            "totalPlayingMs": self.total_playing_ms,
            "scoreLine": self.score_line,
            "home": self.home.to_json(),
            "away": self.away.to_json(),
            "timeline": [e.to_json() for e in self.timeline],
        }
