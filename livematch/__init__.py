"""
Live Match Control

Drives a match clock over a schedule of playing periods and breaks, records
match events against it and keeps the backend of record in sync.

This package provides the clock and event services and a Flask web interface
for the match official.
"""
from .models import LiveMatch, Period, Checkpoint, MatchEvent
from .services import ClockEngine, EventLog, MatchSession, ReconciliationLayer, SessionRegistry
from .ui import create_app, run_web_app
from .utils import fmt_mmss, now_ms, APP_TITLE, Settings

__version__ = "1.0.0"

__all__ = [
    "LiveMatch", "Period", "Checkpoint", "MatchEvent",
    "ClockEngine", "EventLog", "MatchSession", "ReconciliationLayer", "SessionRegistry",
    "create_app", "run_web_app", "fmt_mmss", "now_ms", "APP_TITLE", "Settings",
]
