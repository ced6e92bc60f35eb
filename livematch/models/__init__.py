"""
Models package for the live match officiating desk.

This package contains the core data models used throughout the application.
"""
from .period import Period, normalize_periods
from .checkpoint import Checkpoint, ClockProjection, ClockState, MatchStatus
from .match_event import (
    CLOCK_EVENT_TYPES, EventType, Goal, GoalType, MatchEvent, Team, new_event_id
)
from .live_match import LiveMatch
from .match_report import MatchReport, TeamStatistics

__all__ = [
    "Period", "normalize_periods",
    "Checkpoint", "ClockProjection", "ClockState", "MatchStatus",
    "CLOCK_EVENT_TYPES", "EventType", "Goal", "GoalType", "MatchEvent", "Team", "new_event_id",
    "LiveMatch", "MatchReport", "TeamStatistics",
]
