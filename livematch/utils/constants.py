"""
Constants for the live match officiating desk.

This module contains configuration constants used throughout the application.
"""

# Application metadata
APP_TITLE = "Live Match Control"

# Period schedule limits (minutes)
MIN_PERIOD_MINUTES = 1
MAX_PERIOD_MINUTES = 120

# Defaults used by the schedule editor when adding periods
DEFAULT_PLAYING_MINUTES = 20
DEFAULT_BREAK_MINUTES = 5

# Periods that arrive as bare names carry no duration
LEGACY_PERIOD_MINUTES = 20

# Futsal tactical timeout
TIMEOUT_SECONDS = 60
TIMEOUT_REASON = "tactical"

# Clock scheduling (seconds)
TICK_INTERVAL_SECONDS = 1.0
HEARTBEAT_INTERVAL_SECONDS = 5.0

# Backend defaults
DEFAULT_BACKEND_URL = "http://127.0.0.1:8080/api/futsal/matches"
REQUEST_TIMEOUT_SECONDS = 10.0

# Web app defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 7122

# Maximum number of unsynced warnings kept for display
MAX_WARNINGS = 20
