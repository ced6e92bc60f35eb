"""
Officiating session for a single live match.

A session wires the clock engine, the event log and the reconciliation layer
together for one match and owns the two timers that run while the clock is
running: the tick that re-derives the clock and the heartbeat that saves it.
Every public method and both timer callbacks serialize on the session lock.
"""
import logging
import threading
from typing import List, Optional, Sequence

from ..exceptions import AppendError, ClockTransitionError, ValidationError
from ..models import (
    Checkpoint, ClockProjection, ClockState, EventType, GoalType,
    LiveMatch, MatchEvent, MatchStatus, Period, Team, normalize_periods,
)
from ..utils import Settings, TIMEOUT_REASON, TIMEOUT_SECONDS
from .backend_client import MatchBackendClient
from .clock_engine import ClockEngine
from .event_log import EventLog
from .period_schedule import PeriodSchedule, total_playing_minutes
from .reconciliation import LoadOutcome, LoadResult, ReconciliationLayer, SyncWarning
from .report_service import MatchReportService
from .snapshot_store import SnapshotStore
from .timers import RepeatingTimer

logger = logging.getLogger(__name__)


class MatchSession:
    """Live officiating of one match: clock, events and background sync."""

    def __init__(
        self,
        match: LiveMatch,
        backend: MatchBackendClient,
        settings: Optional[Settings] = None,
        snapshot_store: Optional[SnapshotStore] = None,
    ):
        self.settings = settings or Settings()
        self.match_id = match.id
        self.home_team = match.home_team
        self.away_team = match.away_team
        self.status = match.status
        self.match_duration = match.match_duration or total_playing_minutes(match.periods)

        self.event_log = EventLog(match.id, match.events)
        self.engine = ClockEngine(match.id, match.periods, self.event_log)
        self.sync = ReconciliationLayer(match.id, backend)
        self.reports = MatchReportService(match.id, self.event_log, match.home_team, match.away_team)
        self.snapshot_store = snapshot_store

        self._fallback_checkpoint = match.checkpoint
        self._lock = threading.RLock()
        self._ticker: Optional[RepeatingTimer] = None
        self._heartbeat: Optional[RepeatingTimer] = None
        self.active = False

        self.event_log.subscribe(self.sync.submit_event)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def activate(self) -> LoadResult:
        """
        Load persisted state and start the timers if the clock is running.

        The clock is caught up to the current time in one step; missed time
        is never replayed.
        """
        with self._lock:
            self._cancel_timers()

            events = self.sync.load_events()
            if events.success:
                self.event_log.merge(events.value or [])

            result = self.sync.load_checkpoint()
            if result.outcome is LoadOutcome.LOADED:
                self._restore(result.checkpoint)
            elif result.outcome is LoadOutcome.NOT_FOUND:
                self._restore(None)
            elif result.outcome is LoadOutcome.FAILED:
                self._restore(self._local_checkpoint())

            self._sync_status_with_clock()
            self.active = True
            self._restart_timers()
            logger.info(
                "Match %s: session activated (%s, clock %s)",
                self.match_id, result.outcome.value, self.engine.state.value,
            )
            return result

    def deactivate(self) -> None:
        """Stop the tick and heartbeat timers; local state is kept."""
        with self._lock:
            self.active = False
            self._cancel_timers()
            logger.info("Match %s: session deactivated", self.match_id)

    def close(self) -> None:
        """Deactivate and stop accepting background writes."""
        self.deactivate()
        self.sync.close(wait=False)

    # ------------------------------------------------------------------
    # Clock actions
    # ------------------------------------------------------------------
    def start(self, now: Optional[int] = None) -> ClockProjection:
        with self._lock:
            projection = self.engine.start(now)
            self._set_status(MatchStatus.LIVE)
            self._persist("Kick off")
            self._restart_timers()
            return projection

    def pause(self, now: Optional[int] = None) -> ClockProjection:
        with self._lock:
            projection = self.engine.pause(now)
            self._sync_status_with_clock()
            self._persist("Pause")
            self._restart_timers()
            return projection

    def resume(self, now: Optional[int] = None) -> ClockProjection:
        with self._lock:
            version = self.engine.version
            projection = self.engine.resume(now)
            if self.engine.version != version:
                self._persist("Resume")
                self._restart_timers()
            return projection

    def end_match(self, now: Optional[int] = None) -> ClockProjection:
        with self._lock:
            projection = self.engine.finish(now)
            self._set_status(MatchStatus.FINISHED)
            self._persist("Final whistle")
            if self.snapshot_store is not None:
                self.snapshot_store.auto_save(self.snapshot())
            self._restart_timers()
            return projection

    def reset(self, confirm: bool = False) -> ClockProjection:
        """
        Clear the clock, the events and the score.

        Raises:
            ClockTransitionError: If ``confirm`` is not set
        """
        with self._lock:
            self.engine.reset(confirm)
            self.status = MatchStatus.ACTIVE
            self.sync.submit_reset()
            self._save_snapshot()
            self._restart_timers()
            return self.engine.project()

    def tick(self, now: Optional[int] = None) -> ClockProjection:
        """Re-derive the clock; called by the tick timer once per interval."""
        with self._lock:
            was_running = self.engine.state is ClockState.RUNNING
            projection = self.engine.tick(now)
            if was_running and self.engine.state is ClockState.FINISHED:
                self._set_status(MatchStatus.FINISHED)
                self._persist("Full time")
                self._restart_timers()
            return projection

    def heartbeat(self) -> None:
        """Save the running clock; called by the heartbeat timer."""
        with self._lock:
            if self.engine.state is not ClockState.RUNNING:
                return
            self.tick()
            if self.engine.state is ClockState.RUNNING:
                self._persist("Heartbeat")

    def update_periods(self, periods: Sequence) -> None:
        """
        Replace the period schedule (accepts names, dicts or Periods).

        Raises:
            ClockTransitionError: If the clock is running
            ValidationError: If the schedule is not valid
        """
        with self._lock:
            try:
                normalized = normalize_periods(periods)
            except (TypeError, ValueError) as e:
                raise ValidationError([str(e)]) from None
            version = self.engine.version
            self.engine.update_schedule(normalized)
            self.match_duration = total_playing_minutes(normalized)
            self.sync.submit_periods(normalized)
            if self.engine.version != version:
                self._sync_status_with_clock()
                self._persist("Period change")
            else:
                self._save_snapshot()
            self._restart_timers()

    def add_period(
        self,
        is_break: bool = False,
        name: Optional[str] = None,
        duration_minutes: Optional[int] = None,
    ) -> Period:
        """Append a period (default "Period N", or "Break N" for a break) and save the schedule."""
        with self._lock:
            schedule = PeriodSchedule(self.engine.periods)
            try:
                period = schedule.add_period(is_break, name, duration_minutes)
            except (TypeError, ValueError) as e:
                raise ValidationError([str(e)]) from None
            self.update_periods(schedule.periods)
            return period

    def remove_period(self, period_id: str) -> Period:
        """
        Remove one period and save the re-numbered schedule.

        Raises:
            ValidationError: If no period has that id or the schedule would be invalid
        """
        with self._lock:
            schedule = PeriodSchedule(self.engine.periods)
            try:
                removed = schedule.remove_period(period_id)
            except KeyError:
                raise ValidationError([f"Period not found: {period_id}"]) from None
            self.update_periods(schedule.periods)
            return removed

    # ------------------------------------------------------------------
    # Officiating events
    # ------------------------------------------------------------------
    def add_goal(
        self,
        player_id: str,
        player_name: Optional[str],
        team,
        goal_type: str = GoalType.GOAL.value,
        assist_player_id: Optional[str] = None,
        assist_player_name: Optional[str] = None,
        now: Optional[int] = None,
    ) -> MatchEvent:
        """Record a goal at the current clock reading and push the new score."""
        with self._lock:
            projection = self._require_in_play("record a goal", now)
            side = self._parse_team(team)
            try:
                kind = GoalType(goal_type)
            except ValueError:
                raise AppendError([f"Unknown goal type: {goal_type}"]) from None

            name = player_name or player_id
            if kind is GoalType.OWN_GOAL:
                description = f"Own goal by {name}"
            elif kind is GoalType.PENALTY:
                description = f"Penalty goal by {name}"
            else:
                description = f"Goal by {name}"

            info = {"goalType": kind.value}
            if assist_player_id:
                info["assistPlayerId"] = assist_player_id
                info["assistPlayerName"] = assist_player_name

            event = self.event_log.record(
                EventType.GOAL, projection.minute,
                team=side, player_id=player_id, player_name=player_name,
                description=description, additional_info=info,
            )
            home, away = self.event_log.score()
            self.sync.submit_score(home, away)
            self._save_snapshot()
            return event

    def add_card(
        self,
        team,
        player_id: str,
        player_name: Optional[str],
        red: bool = False,
        now: Optional[int] = None,
    ) -> MatchEvent:
        with self._lock:
            projection = self._require_started("show a card", now)
            card = "Red" if red else "Yellow"
            event = self.event_log.record(
                EventType.RED_CARD if red else EventType.YELLOW_CARD, projection.minute,
                team=self._parse_team(team), player_id=player_id, player_name=player_name,
                description=f"{card} card for {player_name or player_id}",
            )
            self._save_snapshot()
            return event

    def add_substitution(
        self,
        team,
        player_out_id: str,
        player_out_name: Optional[str],
        player_in_id: str,
        player_in_name: Optional[str],
        now: Optional[int] = None,
    ) -> MatchEvent:
        with self._lock:
            projection = self._require_started("make a substitution", now)
            event = self.event_log.record(
                EventType.SUBSTITUTION, projection.minute,
                team=self._parse_team(team),
                player_id=player_out_id, player_name=player_out_name,
                description=f"Substitution: {player_in_name or player_in_id} in for {player_out_name or player_out_id}",
                additional_info={
                    "playerInId": player_in_id,
                    "playerInName": player_in_name,
                    "playerOutId": player_out_id,
                    "playerOutName": player_out_name,
                },
            )
            self._save_snapshot()
            return event

    def add_timeout(self, team, now: Optional[int] = None) -> MatchEvent:
        with self._lock:
            projection = self._require_started("call a timeout", now)
            side = self._parse_team(team)
            team_name = self.home_team if side is Team.HOME else self.away_team
            event = self.event_log.record(
                EventType.TIMEOUT, projection.minute,
                team=side,
                description=f"Timeout called by {team_name}",
                additional_info={"timeoutDuration": TIMEOUT_SECONDS, "timeoutReason": TIMEOUT_REASON},
            )
            self._save_snapshot()
            return event

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def projection(self, now: Optional[int] = None) -> ClockProjection:
        with self._lock:
            return self.engine.project(now)

    def score(self):
        with self._lock:
            return self.event_log.score()

    @property
    def warnings(self) -> List[SyncWarning]:
        return self.sync.warnings

    def dismiss_warnings(self) -> None:
        self.sync.dismiss_warnings()

    def retry_sync(self) -> bool:
        """Re-send the latest unconfirmed clock state. Returns True if a save was issued."""
        with self._lock:
            return self.sync.retry() is not None

    def snapshot(self) -> LiveMatch:
        with self._lock:
            home, away = self.event_log.score()
            checkpoint = self.engine.checkpoint
            return LiveMatch(
                id=self.match_id,
                home_team=self.home_team,
                away_team=self.away_team,
                status=self.status,
                periods=self.engine.periods,
                checkpoint=checkpoint.copy() if checkpoint else None,
                events=list(self.event_log.events),
                home_score=home,
                away_score=away,
                match_duration=self.match_duration,
            )

    def report(self, now: Optional[int] = None):
        with self._lock:
            return self.reports.generate_report(self.status.value, self.engine.project(now))

    def export_report_csv(self, now: Optional[int] = None) -> str:
        with self._lock:
            return self.reports.export_report_csv(self.status.value, self.engine.project(now))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _restore(self, checkpoint: Optional[Checkpoint]) -> None:
        self.engine.restore(checkpoint)
        restored = self.engine.checkpoint
        if checkpoint is not None and restored is not None and restored.version != checkpoint.version:
            self._persist("Catch-up")

    def _local_checkpoint(self) -> Optional[Checkpoint]:
        """Best checkpoint available without the backend: match payload or local snapshot."""
        candidates = [self._fallback_checkpoint]
        if self.snapshot_store is not None:
            saved = self.snapshot_store.load(self.match_id)
            if saved is not None:
                candidates.append(saved.checkpoint)
                self.event_log.merge(saved.events)
        candidates = [c for c in candidates if c is not None]
        if not candidates:
            return None
        return max(candidates, key=lambda c: c.version)

    def _require_started(self, action: str, now: Optional[int]) -> ClockProjection:
        projection = self.engine.project(now)
        if projection.state is ClockState.NOT_STARTED:
            raise ClockTransitionError(f"Start the match before you {action}")
        if projection.state is ClockState.FINISHED:
            raise ClockTransitionError(f"Cannot {action}: the match is finished")
        return projection

    def _require_in_play(self, action: str, now: Optional[int]) -> ClockProjection:
        projection = self._require_started(action, now)
        if projection.is_break:
            raise ClockTransitionError(f"Cannot {action} during {projection.period_name}")
        return projection

    @staticmethod
    def _parse_team(team) -> Optional[Team]:
        try:
            return Team.parse(team)
        except ValueError:
            raise AppendError([f"Unknown team: {team}"]) from None

    def _set_status(self, status: MatchStatus) -> None:
        if self.status is status:
            return
        self.status = status
        self.sync.submit_status(status)

    def _sync_status_with_clock(self) -> None:
        state = self.engine.state
        if state is ClockState.FINISHED:
            self._set_status(MatchStatus.FINISHED)
        elif state is not ClockState.NOT_STARTED and self.status is not MatchStatus.LIVE:
            self._set_status(MatchStatus.LIVE)

    def _persist(self, reason: str) -> None:
        checkpoint = self.engine.checkpoint
        if checkpoint is not None:
            self.sync.submit_checkpoint(checkpoint, reason)
        self._save_snapshot()

    def _save_snapshot(self) -> None:
        if self.snapshot_store is None:
            return
        try:
            self.snapshot_store.save(self.snapshot())
        except OSError as e:
            logger.warning("Match %s: local snapshot failed: %s", self.match_id, e)

    def _cancel_timers(self) -> None:
        for timer in (self._ticker, self._heartbeat):
            if timer is not None:
                timer.cancel()
        self._ticker = None
        self._heartbeat = None

    def _on_tick(self) -> None:
        # A callback can still be waiting on the lock when the session is deactivated
        with self._lock:
            if self.active:
                self.tick()

    def _on_heartbeat(self) -> None:
        with self._lock:
            if self.active:
                self.heartbeat()

    def _restart_timers(self) -> None:
        self._cancel_timers()
        if not self.active or self.engine.state is not ClockState.RUNNING:
            return
        self._ticker = RepeatingTimer(
            self.settings.tick_interval_seconds, self._on_tick, name=f"tick-{self.match_id}"
        ).start()
        self._heartbeat = RepeatingTimer(
            self.settings.heartbeat_interval_seconds, self._on_heartbeat, name=f"heartbeat-{self.match_id}"
        ).start()
