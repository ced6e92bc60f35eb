"""
Event log for the live match officiating desk.

The log is the single authoritative list of recorded events for a match.
Scores are never stored separately: they are recounted from the goal events
every time they are asked for.
"""
import logging
import math
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from ..exceptions import AppendError
from ..models import EventType, Goal, GoalType, MatchEvent, Team, new_event_id

logger = logging.getLogger(__name__)

EventListener = Callable[[MatchEvent], None]

PLAYER_EVENTS = frozenset({EventType.GOAL, EventType.YELLOW_CARD, EventType.RED_CARD})
TEAM_EVENTS = frozenset({
    EventType.GOAL, EventType.YELLOW_CARD, EventType.RED_CARD,
    EventType.SUBSTITUTION, EventType.TIMEOUT,
})


def event_errors(event: MatchEvent) -> List[str]:
    """Return the reasons an event is malformed (empty if it is well formed)."""
    errors: List[str] = []

    if not event.id:
        errors.append("Event id is required")
    if not event.match_id:
        errors.append("Event match id is required")
    if not isinstance(event.type, EventType):
        errors.append(f"Unknown event type: {event.type!r}")
        return errors
    if event.minute is None or not math.isfinite(event.minute) or event.minute < 0:
        errors.append("Event minute must be a non-negative number")

    if event.type in TEAM_EVENTS and event.team is None:
        errors.append(f"{event.type.value} requires a team")
    if event.type in PLAYER_EVENTS and not event.player_id:
        errors.append(f"{event.type.value} requires a player")

    if event.type is EventType.GOAL:
        goal_type = event.additional_info.get("goalType", GoalType.GOAL.value)
        if goal_type not in {g.value for g in GoalType}:
            errors.append(f"Unknown goal type: {goal_type}")

    if event.type is EventType.SUBSTITUTION:
        info = event.additional_info
        if not info.get("playerInId") or not info.get("playerOutId"):
            errors.append("substitution requires both an incoming and an outgoing player")
        elif info.get("playerInId") == info.get("playerOutId"):
            errors.append("substitution players must be different")

    return errors


class GoalSequence:
    """
    Restartable view over the goals in an event log.

    Iterating re-reads the log each time, so the sequence always reflects the
    current event list.
    """

    def __init__(self, log: "EventLog", team: Optional[Team] = None):
        self._log = log
        self._team = team

    def __iter__(self) -> Iterator[Goal]:
        for event in self._log.events:
            if event.type is not EventType.GOAL:
                continue
            goal = Goal.from_event(event)
            if self._team is None or goal.credited_team is self._team:
                yield goal

    def __len__(self) -> int:
        return sum(1 for _ in self)


class EventLog:
    """Append-only list of events for one match."""

    def __init__(self, match_id: str, events: Optional[Iterable[MatchEvent]] = None):
        self.match_id = match_id
        self._events: List[MatchEvent] = []
        self._ids: set = set()
        self._listeners: List[EventListener] = []
        if events:
            self.merge(events)

    @property
    def events(self) -> Tuple[MatchEvent, ...]:
        """Events in insertion order."""
        return tuple(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def subscribe(self, listener: EventListener) -> None:
        """Register a callback run after every local append."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def append(self, event: MatchEvent) -> MatchEvent:
        """
        Validate and append a locally created event.

        Listeners are notified after the append; a failing listener is logged
        and never undoes the append.

        Raises:
            AppendError: If the event is missing fields required by its type
                or repeats an id already in the log
        """
        errors = event_errors(event)
        if event.id in self._ids:
            errors.append(f"Duplicate event id: {event.id}")
        if errors:
            raise AppendError(errors)

        self._events.append(event)
        self._ids.add(event.id)
        logger.info("Match %s: %s at %.2f'", self.match_id, event.type.value, event.minute)

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Event listener failed for event %s", event.id)
        return event

    def record(
        self,
        event_type: EventType,
        minute: float,
        *,
        team: Optional[Team] = None,
        player_id: Optional[str] = None,
        player_name: Optional[str] = None,
        description: Optional[str] = None,
        additional_info: Optional[Dict] = None,
    ) -> MatchEvent:
        """Build an event for this match and :meth:`append` it."""
        event = MatchEvent(
            id=new_event_id(),
            match_id=self.match_id,
            type=event_type,
            minute=minute,
            team=team,
            player_id=player_id,
            player_name=player_name,
            description=description or f"{event_type.value} event",
            additional_info=dict(additional_info or {}),
        )
        return self.append(event)

    def merge(self, events: Iterable[MatchEvent]) -> int:
        """
        Add already-persisted events (e.g. loaded from the backend).

        Events whose id is already present are skipped and listeners are not
        notified. Malformed events are dropped with a warning.

        Returns:
            Number of events added
        """
        added = 0
        for event in events:
            if event.id in self._ids:
                continue
            errors = event_errors(event)
            if errors:
                logger.warning("Dropping malformed event %s: %s", event.id, "; ".join(errors))
                continue
            self._events.append(event)
            self._ids.add(event.id)
            added += 1
        return added

    def clear(self) -> None:
        """Drop every event. Only a confirmed match reset should call this."""
        self._events.clear()
        self._ids.clear()

    def ordered(self) -> List[MatchEvent]:
        """Events sorted by minute; ties keep insertion order."""
        return sorted(self._events, key=lambda e: e.minute)

    def has(self, event_type: EventType, minute: Optional[float] = None) -> bool:
        """True if an event of ``event_type`` is logged (at ``minute``, when given)."""
        return any(
            e.type is event_type and (minute is None or e.minute == minute)
            for e in self._events
        )

    def count(self, event_type: EventType, team: Optional[Team] = None) -> int:
        return sum(
            1 for e in self._events
            if e.type is event_type and (team is None or e.team is team)
        )

    def goals(self) -> GoalSequence:
        return GoalSequence(self)

    def goals_for(self, team: Team) -> GoalSequence:
        """Goals counting towards ``team``'s score (own goals go to the opponent)."""
        return GoalSequence(self, team)

    def score(self) -> Tuple[int, int]:
        """Current (home, away) score, recounted from the goal events."""
        return len(self.goals_for(Team.HOME)), len(self.goals_for(Team.AWAY))
