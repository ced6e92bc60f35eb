"""
Match event models for the live match officiating desk.

Events are the discrete, time-stamped occurrences recorded while a match is
officiated. Goals are a view over ``goal`` events used for score derivation.
"""
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class Team(Enum):
    """Side of the match an event belongs to."""
    HOME = "home"
    AWAY = "away"

    @property
    def opponent(self) -> "Team":
        return Team.AWAY if self is Team.HOME else Team.HOME

    @classmethod
    def parse(cls, value: Any) -> Optional["Team"]:
        if value is None or value == "":
            return None
        if isinstance(value, Team):
            return value
        return cls(str(value).lower())


# Event types written by earlier front ends
LEGACY_EVENT_TYPES = {
    "kick_off": "kickoff",
    "half_time": "pause",
    "full_time": "final_whistle",
    "second_half_start": "period_start",
    "extra_time_start": "period_start",
    "extra_time_second_start": "period_start",
}


class EventType(Enum):
    """Kinds of match event."""
    GOAL = "goal"
    YELLOW_CARD = "yellow_card"
    RED_CARD = "red_card"
    SUBSTITUTION = "substitution"
    TIMEOUT = "timeout"
    KICKOFF = "kickoff"
    PERIOD_START = "period_start"
    PAUSE = "pause"
    RESUME = "resume"
    FINAL_WHISTLE = "final_whistle"

    @classmethod
    def parse(cls, value: Any) -> "EventType":
        """
        Parse a stored event type, folding older names into current ones.

        Raises:
            ValueError: If the type is unknown
        """
        if isinstance(value, EventType):
            return value
        text = str(value).lower()
        if text in LEGACY_EVENT_TYPES:
            return cls(LEGACY_EVENT_TYPES[text])
        return cls(text)


class GoalType(Enum):
    """How a goal was scored."""
    GOAL = "goal"
    PENALTY = "penalty"
    OWN_GOAL = "own_goal"


CLOCK_EVENT_TYPES = frozenset({
    EventType.KICKOFF,
    EventType.PERIOD_START,
    EventType.PAUSE,
    EventType.RESUME,
    EventType.FINAL_WHISTLE,
})


def new_event_id() -> str:
    """Generate a unique id for a locally created event."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class MatchEvent:
    """
    A single recorded occurrence in a match.

    Attributes:
        id: Unique event id
        match_id: Match the event belongs to
        type: Kind of event
        minute: Match clock reading (total playing minutes, fractional)
        team: Side the event is attributed to, if any
        player_id: Primary player involved, if any
        player_name: Display name of the primary player
        description: Human readable summary
        additional_info: Type-specific payload (substitution players, goal type...)
    """
    id: str
    match_id: str
    type: EventType
    minute: float
    team: Optional[Team] = None
    player_id: Optional[str] = None
    player_name: Optional[str] = None
    description: str = ""
    additional_info: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "matchId": self.match_id,
            "type": self.type.value,
            "minute": self.minute,
            "team": self.team.value if self.team else None,
            "playerId": self.player_id,
            "playerName": self.player_name,
            "description": self.description,
            "additionalInfo": dict(self.additional_info),
        }

    @staticmethod
    def from_json(data: Dict[str, Any]) -> "MatchEvent":
        player_id = data.get("playerId")
        return MatchEvent(
            id=str(data.get("id") or new_event_id()),
            match_id=str(data.get("matchId", "")),
            type=EventType.parse(data.get("type")),
            minute=float(data.get("minute") or 0),
            team=Team.parse(data.get("team")),
            player_id=str(player_id) if player_id is not None else None,
            player_name=data.get("playerName"),
            description=data.get("description") or "",
            additional_info=dict(data.get("additionalInfo") or {}),
        )


@dataclass(frozen=True)
class Goal:
    """
    A goal derived from a ``goal`` event.

    ``team`` is the side of the scoring player; ``credited_team`` is the side
    whose score the goal counts towards (the opponent, for own goals).
    """
    id: str
    match_id: str
    player_id: str
    player_name: Optional[str]
    team: Team
    minute: float
    type: GoalType = GoalType.GOAL
    assist_player_id: Optional[str] = None
    assist_player_name: Optional[str] = None

    @property
    def credited_team(self) -> Team:
        return self.team.opponent if self.type is GoalType.OWN_GOAL else self.team

    @staticmethod
    def from_event(event: MatchEvent) -> "Goal":
        if event.type is not EventType.GOAL:
            raise ValueError(f"Event {event.id} is not a goal")
        info = event.additional_info
        return Goal(
            id=event.id,
            match_id=event.match_id,
            player_id=event.player_id or "",
            player_name=event.player_name,
            team=event.team,
            minute=event.minute,
            type=GoalType(info.get("goalType", GoalType.GOAL.value)),
            assist_player_id=info.get("assistPlayerId"),
            assist_player_name=info.get("assistPlayerName"),
        )
