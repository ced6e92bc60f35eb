"""Clock engine for the live match officiating desk.

The engine never counts time itself. A running clock is always re-derived
from the checkpoint (``last_updated_at``, ``elapsed_in_period_ms``,
``is_paused``) plus the current wall-clock time, so a reload or a missed
tick loses nothing and any number of small ticks lands on the same reading
as one large one.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..exceptions import ClockTransitionError, StateDesyncError
from ..models import Checkpoint, ClockProjection, ClockState, EventType, Period
from ..utils import floor_minute, now_ms
from .event_log import EventLog
from .period_schedule import next_playing_index, validate_periods

logger = logging.getLogger(__name__)


@dataclass
class ClockAdvance:
    """Result of running the clock forward by some amount of time."""
    order: int
    elapsed_ms: int
    total_playing_ms: int
    finished: bool = False
    # (period index, playing total when it was entered) for every rollover
    entered: List[Tuple[int, int]] = field(default_factory=list)


def advance_clock(
    periods: Sequence[Period],
    order: int,
    elapsed_ms: int,
    total_playing_ms: int,
    delta_ms: int,
) -> ClockAdvance:
    """
    Run a clock position forward by ``delta_ms`` across the schedule.

    Time that overflows a period rolls into the next one; zero-length or
    already-elapsed periods are passed through in the same call. When the
    schedule runs out the result is clamped to the end of the last period
    and marked finished.
    """
    delta_ms = max(0, delta_ms)
    result = ClockAdvance(order, elapsed_ms, total_playing_ms)

    while result.order < len(periods):
        period = periods[result.order]
        remaining = period.duration_ms - result.elapsed_ms
        if remaining > delta_ms:
            result.elapsed_ms += delta_ms
            if not period.is_break:
                result.total_playing_ms += delta_ms
            return result

        consumed = max(0, remaining)
        delta_ms -= consumed
        if not period.is_break:
            result.total_playing_ms += consumed
        result.order += 1
        result.elapsed_ms = 0
        if result.order < len(periods):
            result.entered.append((result.order, result.total_playing_ms))

    result.finished = True
    if periods:
        result.order = len(periods) - 1
        result.elapsed_ms = periods[-1].duration_ms
    else:
        result.order = 0
    return result


class ClockEngine:
    """
    State machine for the match clock.

    States: NOT_STARTED -> RUNNING <-> PAUSED_IN_PLAY / PAUSED_AT_BREAK -> FINISHED.
    Every transition mutates the checkpoint and records the matching clock
    event (kickoff, pause, resume, period_start, final_whistle) in the log.
    """

    def __init__(self, match_id: str, periods: Sequence[Period], event_log: EventLog):
        self.match_id = match_id
        self.event_log = event_log
        self._periods: List[Period] = list(periods)
        self.checkpoint: Optional[Checkpoint] = None
        self._last_version = 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def periods(self) -> List[Period]:
        return list(self._periods)

    @property
    def version(self) -> int:
        return self._last_version

    @property
    def state(self) -> ClockState:
        cp = self.checkpoint
        if cp is None:
            return ClockState.NOT_STARTED
        if cp.is_finished:
            return ClockState.FINISHED
        if not cp.is_paused:
            return ClockState.RUNNING
        period = self._period_at(cp.current_period_order)
        if period is not None and period.is_break:
            return ClockState.PAUSED_AT_BREAK
        return ClockState.PAUSED_IN_PLAY

    def current_period(self) -> Optional[Period]:
        if self.checkpoint is None:
            return self._period_at(0)
        return self._period_at(self.checkpoint.current_period_order)

    def project(self, now: Optional[int] = None) -> ClockProjection:
        """Derive the live clock reading at ``now`` without changing state."""
        now = now_ms() if now is None else now
        cp = self.checkpoint
        state = self.state

        if cp is None:
            return self._projection(ClockState.NOT_STARTED, 0, 0, 0, now)

        if state is ClockState.RUNNING and cp.current_period_order < len(self._periods):
            adv = advance_clock(
                self._periods,
                cp.current_period_order,
                cp.elapsed_in_period_ms,
                cp.total_playing_ms,
                now - cp.last_updated_at,
            )
            state = ClockState.FINISHED if adv.finished else state
            return self._projection(state, adv.order, adv.elapsed_ms, adv.total_playing_ms, now)

        order = min(cp.current_period_order, max(0, len(self._periods) - 1))
        if cp.current_period_order >= len(self._periods):
            state = ClockState.FINISHED
        return self._projection(state, order, cp.elapsed_in_period_ms, cp.total_playing_ms, now)

    def current_minute(self, now: Optional[int] = None) -> float:
        """Canonical minute for stamping an event at ``now``."""
        return self.project(now).minute

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def start(self, now: Optional[int] = None) -> ClockProjection:
        """
        Kick off: NOT_STARTED -> RUNNING at period 0.

        Raises:
            ClockTransitionError: If the clock has already been started
            ValidationError: If the period schedule is not valid
        """
        if self.state is not ClockState.NOT_STARTED:
            raise ClockTransitionError("Match clock has already been started")
        validate_periods(self._periods)

        now = now_ms() if now is None else now
        self.checkpoint = Checkpoint(
            current_period_order=0,
            elapsed_in_period_ms=0,
            total_playing_ms=0,
            last_updated_at=now,
            is_paused=False,
            current_period_id=self._periods[0].id,
            version=self._next_version(),
        )
        logger.info("Match %s: clock started", self.match_id)
        self._emit(EventType.KICKOFF, 0, "Kick off")
        return self.project(now)

    def pause(self, now: Optional[int] = None) -> ClockProjection:
        """
        Freeze a running clock at ``now``.

        If the schedule runs out before ``now`` the clock finishes instead.

        Raises:
            ClockTransitionError: If the clock is not running
        """
        if self.state is not ClockState.RUNNING:
            raise ClockTransitionError(f"Cannot pause a clock that is {self.state.value}")

        now = now_ms() if now is None else now
        self._commit(now)
        if self.state is ClockState.FINISHED:
            return self.project(now)

        cp = self.checkpoint
        cp.is_paused = True
        cp.last_updated_at = max(cp.last_updated_at, now)
        cp.version = self._next_version()
        logger.info("Match %s: clock paused", self.match_id)
        self._emit(EventType.PAUSE, cp.total_playing_ms, "Match paused")
        return self.project(now)

    def resume(self, now: Optional[int] = None) -> ClockProjection:
        """
        Restart a paused clock.

        From PAUSED_IN_PLAY the same period continues. From PAUSED_AT_BREAK the
        clock jumps to the start of the next playing period. Resuming a clock
        that is already running changes nothing.

        Raises:
            ClockTransitionError: If the clock has not started, is finished, or
                a break has no playing period after it
        """
        state = self.state
        now = now_ms() if now is None else now
        if state is ClockState.RUNNING:
            return self.project(now)
        if state in (ClockState.NOT_STARTED, ClockState.FINISHED):
            raise ClockTransitionError(f"Cannot resume a clock that is {state.value}")

        cp = self.checkpoint
        if state is ClockState.PAUSED_AT_BREAK:
            next_index = next_playing_index(self._periods, cp.current_period_order)
            if next_index is None:
                raise ClockTransitionError("No more playing periods left to resume.")
            period = self._periods[next_index]
            cp.current_period_order = next_index
            cp.current_period_id = period.id
            cp.elapsed_in_period_ms = 0
            cp.is_paused = False
            cp.last_updated_at = now
            cp.version = self._next_version()
            logger.info("Match %s: %s started", self.match_id, period.name)
            self._emit(EventType.PERIOD_START, cp.total_playing_ms, f"{period.name} started")
        else:
            cp.is_paused = False
            cp.last_updated_at = now
            cp.version = self._next_version()
            logger.info("Match %s: clock resumed", self.match_id)
            self._emit(EventType.RESUME, cp.total_playing_ms, "Match resumed")
        return self.project(now)

    def tick(self, now: Optional[int] = None) -> ClockProjection:
        """
        Re-derive a running clock at ``now`` and store the result.

        Zero or negative deltas (clock skew, rapid repeats) leave the
        checkpoint untouched.
        """
        now = now_ms() if now is None else now
        if self.state is ClockState.RUNNING:
            self._commit(now)
        return self.project(now)

    def finish(self, now: Optional[int] = None) -> ClockProjection:
        """
        End the match early with a final whistle.

        Raises:
            ClockTransitionError: If the clock has not started or is already finished
        """
        state = self.state
        if state in (ClockState.NOT_STARTED, ClockState.FINISHED):
            raise ClockTransitionError(f"Cannot end a match whose clock is {state.value}")

        now = now_ms() if now is None else now
        if state is ClockState.RUNNING:
            self._commit(now)
            if self.state is ClockState.FINISHED:
                return self.project(now)

        cp = self.checkpoint
        cp.is_paused = True
        cp.is_finished = True
        cp.last_updated_at = max(cp.last_updated_at, now)
        cp.version = self._next_version()
        logger.info("Match %s: ended by official", self.match_id)
        self._emit(EventType.FINAL_WHISTLE, cp.total_playing_ms, "Match ended")
        return self.project(now)

    def reset(self, confirm: bool = False) -> None:
        """
        Discard the checkpoint and every recorded event.

        Raises:
            ClockTransitionError: If ``confirm`` is not set
        """
        if not confirm:
            raise ClockTransitionError("Resetting a match clears all events and must be confirmed")
        self.checkpoint = None
        self.event_log.clear()
        self._next_version()
        logger.warning("Match %s: clock and events reset", self.match_id)

    def restore(self, checkpoint: Optional[Checkpoint], now: Optional[int] = None) -> ClockProjection:
        """
        Adopt a persisted checkpoint and catch the clock up to ``now``.

        A checkpoint pointing past the end of the schedule is clamped to
        FINISHED with a warning.
        """
        now = now_ms() if now is None else now
        if checkpoint is None:
            self.checkpoint = None
            return self.project(now)

        self.checkpoint = checkpoint.copy()
        self._last_version = max(self._last_version, checkpoint.version)
        if not self._check_in_range():
            return self.project(now)
        if self.state is ClockState.RUNNING:
            self._commit(now)
        return self.project(now)

    def update_schedule(self, periods: Sequence[Period]) -> None:
        """
        Replace the period schedule.

        Raises:
            ClockTransitionError: If the clock is running
            ValidationError: If the new schedule is not valid
        """
        if self.state is ClockState.RUNNING:
            raise ClockTransitionError("Pause the match before editing its periods")
        validate_periods(periods)
        self._periods = list(periods)

        cp = self.checkpoint
        if cp is not None and self._check_in_range():
            cp.current_period_id = self._periods[cp.current_period_order].id
            cp.version = self._next_version()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _period_at(self, index: int) -> Optional[Period]:
        if 0 <= index < len(self._periods):
            return self._periods[index]
        return None

    def _next_version(self) -> int:
        self._last_version += 1
        return self._last_version

    def _check_in_range(self) -> bool:
        """Clamp to FINISHED when the checkpoint's period no longer exists."""
        cp = self.checkpoint
        if cp.is_finished or cp.current_period_order < len(self._periods):
            return True

        error = StateDesyncError(
            f"Checkpoint period {cp.current_period_order} is beyond a schedule of "
            f"{len(self._periods)} periods"
        )
        logger.warning("Match %s: %s; clamping clock to finished", self.match_id, error)
        cp.current_period_order = max(0, len(self._periods) - 1)
        last = self._period_at(cp.current_period_order)
        cp.current_period_id = last.id if last else None
        cp.elapsed_in_period_ms = last.duration_ms if last else 0
        cp.is_paused = True
        cp.is_finished = True
        cp.version = self._next_version()
        return False

    def _commit(self, now: int) -> None:
        cp = self.checkpoint
        if not self._check_in_range():
            return
        delta = now - cp.last_updated_at
        if delta <= 0:
            return

        adv = advance_clock(
            self._periods,
            cp.current_period_order,
            cp.elapsed_in_period_ms,
            cp.total_playing_ms,
            delta,
        )
        cp.current_period_order = adv.order
        cp.current_period_id = self._periods[adv.order].id
        cp.elapsed_in_period_ms = adv.elapsed_ms
        cp.total_playing_ms = adv.total_playing_ms
        cp.last_updated_at = now
        cp.version = self._next_version()

        for index, playing_ms in adv.entered:
            period = self._periods[index]
            logger.debug("Match %s: rolled over into %s", self.match_id, period.name)
            if period.is_break:
                continue
            # A reload can re-derive a rollover whose event is already logged
            if self.event_log.has(EventType.PERIOD_START, floor_minute(playing_ms)):
                continue
            self._emit(EventType.PERIOD_START, playing_ms, f"{period.name} started")

        if adv.finished:
            cp.is_paused = True
            cp.is_finished = True
            logger.info("Match %s: schedule complete", self.match_id)
            if not self.event_log.has(EventType.FINAL_WHISTLE):
                self._emit(EventType.FINAL_WHISTLE, cp.total_playing_ms, "Full time")

    def _emit(self, event_type: EventType, playing_ms: int, description: str) -> None:
        self.event_log.record(event_type, floor_minute(playing_ms), description=description)

    def _projection(
        self,
        state: ClockState,
        order: int,
        elapsed_ms: int,
        total_playing_ms: int,
        now: int,
    ) -> ClockProjection:
        period = self._period_at(order)
        return ClockProjection(
            state=state,
            period_index=order,
            period_name=period.name if period else "",
            is_break=period.is_break if period else False,
            elapsed_in_period_ms=elapsed_ms,
            total_playing_ms=total_playing_ms,
            at=now,
        )
