"""
Time helpers for the live match officiating desk.

All clock arithmetic is done in integer milliseconds; the helpers in this
module convert to the floored minute/second values shown to officials.
"""
import math
import time

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND


def fmt_mmss(milliseconds: int) -> str:
    """
    Format a millisecond duration as a floored MM:SS string.

    Args:
        milliseconds: Duration to format (negative values display as 00:00)

    Returns:
        Formatted time string in MM:SS format

    Example:
        >>> fmt_mmss(90_999)
        '01:30'
        >>> fmt_mmss(3_661_000)
        '61:01'
    """
    total_seconds = max(0, int(milliseconds)) // MS_PER_SECOND
    m = total_seconds // 60
    s = total_seconds % 60
    return f"{m:02d}:{s:02d}"


def now_ms() -> int:
    """
    Get current wall-clock time in epoch milliseconds.

    Returns:
        Current time as integer epoch milliseconds
    """
    return int(time.time() * MS_PER_SECOND)


def minutes_to_ms(minutes: float) -> int:
    """Convert a period duration in minutes to milliseconds."""
    return int(minutes * MS_PER_MINUTE)


def floor_minute(milliseconds: int, places: int = 2) -> float:
    """
    Convert milliseconds to a fractional minute, floored to ``places`` decimals.

    Example:
        >>> floor_minute(12 * 60_000 + 59_999)
        12.99
    """
    scale = 10 ** places
    return math.floor(max(0, milliseconds) * scale / MS_PER_MINUTE) / scale
