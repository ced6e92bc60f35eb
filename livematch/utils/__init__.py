"""
Utilities package for the live match officiating desk.

This package contains utility functions and settings used throughout the application.
"""
from .time_utils import fmt_mmss, now_ms, minutes_to_ms, floor_minute, MS_PER_MINUTE, MS_PER_SECOND
from .constants import (
    APP_TITLE, MIN_PERIOD_MINUTES, MAX_PERIOD_MINUTES,
    DEFAULT_PLAYING_MINUTES, DEFAULT_BREAK_MINUTES, LEGACY_PERIOD_MINUTES,
    TIMEOUT_SECONDS, TIMEOUT_REASON, MAX_WARNINGS,
    TICK_INTERVAL_SECONDS, HEARTBEAT_INTERVAL_SECONDS,
    DEFAULT_BACKEND_URL, REQUEST_TIMEOUT_SECONDS, DEFAULT_HOST, DEFAULT_PORT,
)
from .config import Settings
from .log_setup import configure_logging

__all__ = [
    "fmt_mmss", "now_ms", "minutes_to_ms", "floor_minute", "MS_PER_MINUTE", "MS_PER_SECOND",
    "APP_TITLE", "MIN_PERIOD_MINUTES", "MAX_PERIOD_MINUTES",
    "DEFAULT_PLAYING_MINUTES", "DEFAULT_BREAK_MINUTES", "LEGACY_PERIOD_MINUTES",
    "TIMEOUT_SECONDS", "TIMEOUT_REASON", "MAX_WARNINGS",
    "TICK_INTERVAL_SECONDS", "HEARTBEAT_INTERVAL_SECONDS",
    "DEFAULT_BACKEND_URL", "REQUEST_TIMEOUT_SECONDS", "DEFAULT_HOST", "DEFAULT_PORT",
    "Settings", "configure_logging",
]
