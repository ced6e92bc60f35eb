"""
Services package for the live match officiating desk.

This package contains the clock engine, the event log, backend
reconciliation and the session that wires them together.
"""
from .period_schedule import PeriodSchedule, validate_periods, period_errors, total_playing_minutes
from .event_log import EventLog, GoalSequence, event_errors
from .clock_engine import ClockEngine, ClockAdvance, advance_clock
from .backend_client import MatchBackendClient
from .reconciliation import LoadOutcome, LoadResult, ReconciliationLayer, SyncResult, SyncWarning
from .timers import RepeatingTimer
from .snapshot_store import SnapshotStore
from .report_service import MatchReportExporter, MatchReportService
from .match_session import MatchSession
from .service_factory import ServiceFactory, SessionRegistry

__all__ = [
    "PeriodSchedule", "validate_periods", "period_errors", "total_playing_minutes",
    "EventLog", "GoalSequence", "event_errors",
    "ClockEngine", "ClockAdvance", "advance_clock",
    "MatchBackendClient",
    "LoadOutcome", "LoadResult", "ReconciliationLayer", "SyncResult", "SyncWarning",
    "RepeatingTimer", "SnapshotStore",
    "MatchReportExporter", "MatchReportService",
    "MatchSession", "ServiceFactory", "SessionRegistry",
]
