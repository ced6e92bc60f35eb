"""
Clock state models for the live match officiating desk.

The :class:`Checkpoint` is the durable clock state that is saved to the
backend; :class:`ClockProjection` is the live reading derived from a
checkpoint and the current wall-clock time.
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional

from ..utils import fmt_mmss, floor_minute, MS_PER_MINUTE, MS_PER_SECOND


class ClockState(Enum):
    """States of the match clock."""
    NOT_STARTED = "not_started"
    RUNNING = "running"
    PAUSED_IN_PLAY = "paused_in_play"
    PAUSED_AT_BREAK = "paused_at_break"
    FINISHED = "finished"


class MatchStatus(Enum):
    """Coarse officiating status of a match, independent of the clock."""
    SCHEDULED = "Scheduled"
    ACTIVE = "Active"
    LIVE = "Live"
    FINISHED = "Finished"

    @classmethod
    def parse(cls, value: Optional[str]) -> "MatchStatus":
        if not value:
            return cls.SCHEDULED
        for status in cls:
            if status.value.lower() == str(value).lower():
                return status
        raise ValueError(f"Unknown match status: {value}")


@dataclass
class Checkpoint:
    """
    Durable clock state for one match.

    Attributes:
        current_period_order: Index of the active period in the schedule
        elapsed_in_period_ms: Time spent in the active period
        total_playing_ms: Playing time across all non-break periods, including
            the active one when it is a playing period
        last_updated_at: Epoch milliseconds at which the fields above were exact
        is_paused: Whether the clock is stopped
        is_finished: Whether the schedule has been played out or the match ended
        current_period_id: Id of the active period, for the backend's benefit
        version: Monotonic counter bumped on every change, used to order saves
    """
    current_period_order: int = 0
    elapsed_in_period_ms: int = 0
    total_playing_ms: int = 0
    last_updated_at: int = 0
    is_paused: bool = False
    is_finished: bool = False
    current_period_id: Optional[str] = None
    version: int = 0

    def copy(self) -> "Checkpoint":
        return replace(self)

    def to_json(self) -> Dict[str, Any]:
        return {
            "currentPeriodId": self.current_period_id,
            "currentPeriodOrder": self.current_period_order,
            "elapsedInPeriodMs": self.elapsed_in_period_ms,
            "totalPlayingMs": self.total_playing_ms,
            "lastUpdatedAt": self.last_updated_at,
            "isPaused": self.is_paused,
            "isFinished": self.is_finished,
            "version": self.version,
        }

    @staticmethod
    def from_json(data: Dict[str, Any]) -> "Checkpoint":
        """
        Create a Checkpoint from a backend payload.

        Older payloads used ``elapsedTimeInCurrentPeriodMs``,
        ``totalPlayingTimeMs``, ``lastUpdatedTimestamp`` and ``matchPaused``;
        those keys are still accepted.
        """
        def _pick(*keys: str, default: Any = None) -> Any:
            for key in keys:
                if data.get(key) is not None:
                    return data[key]
            return default

        period_id = _pick("currentPeriodId")
        return Checkpoint(
            current_period_order=int(_pick("currentPeriodOrder", default=0)),
            elapsed_in_period_ms=max(0, int(_pick("elapsedInPeriodMs", "elapsedTimeInCurrentPeriodMs", default=0))),
            total_playing_ms=max(0, int(_pick("totalPlayingMs", "totalPlayingTimeMs", default=0))),
            last_updated_at=int(_pick("lastUpdatedAt", "lastUpdatedTimestamp", default=0)),
            is_paused=bool(_pick("isPaused", "matchPaused", default=False)),
            is_finished=bool(_pick("isFinished", default=False)),
            current_period_id=str(period_id) if period_id is not None else None,
            version=int(_pick("version", default=0)),
        )


@dataclass(frozen=True)
class ClockProjection:
    """Live clock reading for display and event stamping."""
    state: ClockState
    period_index: int
    period_name: str
    is_break: bool
    elapsed_in_period_ms: int
    total_playing_ms: int
    at: int

    @property
    def minute(self) -> float:
        """Canonical event minute: total playing time, floored to hundredths."""
        return floor_minute(self.total_playing_ms)

    @property
    def period_minute(self) -> int:
        return self.elapsed_in_period_ms // MS_PER_MINUTE

    @property
    def period_second(self) -> int:
        return (self.elapsed_in_period_ms % MS_PER_MINUTE) // MS_PER_SECOND

    @property
    def period_clock(self) -> str:
        return fmt_mmss(self.elapsed_in_period_ms)

    @property
    def total_playing_minutes(self) -> int:
        return self.total_playing_ms // MS_PER_MINUTE

    @property
    def is_running(self) -> bool:
        return self.state is ClockState.RUNNING

    def status_label(self) -> str:
        """Human readable status line shown above the clock."""
        if self.state is ClockState.FINISHED:
            return "Finished"
        if self.state is ClockState.NOT_STARTED:
            return "Scheduled"
        if self.is_break:
            return self.period_name
        if self.state is ClockState.RUNNING:
            return f"LIVE - {self.period_name}"
        return f"PAUSED - {self.period_name}"

    def to_json(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "statusLabel": self.status_label(),
            "periodIndex": self.period_index,
            "periodName": self.period_name,
            "isBreak": self.is_break,
            "elapsedInPeriodMs": self.elapsed_in_period_ms,
            "totalPlayingMs": self.total_playing_ms,
            "periodClock": self.period_clock,
            "totalPlayingMinutes": self.total_playing_minutes,
            "minute": self.minute,
            "at": self.at,
        }
