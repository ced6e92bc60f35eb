"""
Period model for the live match officiating desk.

A match is played over an ordered schedule of named periods, each either a
playing period or a break. Periods arrive from the backend in two shapes:
bare name strings (older matches) or structured objects. Both are normalized
here into :class:`Period` so nothing downstream handles the union.
"""
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Union

from ..utils import LEGACY_PERIOD_MINUTES, minutes_to_ms

RawPeriod = Union[str, Dict[str, Any], "Period"]


@dataclass(frozen=True)
class Period:
    """
    A single entry in a match's period schedule.

    Attributes:
        id: Stable identifier (backend id, or the 1-based position for legacy names)
        name: Display name, e.g. "First Half" or "Half Time"
        duration_minutes: Length of the period in whole minutes
        order_index: 0-based position in the schedule
        is_break: True for intervals where the match clock runs but play is stopped
    """
    id: str
    name: str
    duration_minutes: int
    order_index: int
    is_break: bool = False

    @property
    def duration_ms(self) -> int:
        return minutes_to_ms(self.duration_minutes)

    def to_json(self) -> Dict[str, Any]:
        """Serialize using the backend's period keys."""
        return {
            "id": self.id,
            "name": self.name,
            "duration": self.duration_minutes,
            "orderIndex": self.order_index,
            "breakPeriod": self.is_break,
        }

    @staticmethod
    def from_json(data: Dict[str, Any], fallback_index: int = 0) -> "Period":
        """
        Create a Period from a backend or editor dictionary.

        Accepts both the backend keys (``duration``, ``breakPeriod``) and the
        long-form keys (``durationMinutes``, ``isBreak``).
        """
        order_index = data.get("orderIndex", data.get("order_index", fallback_index))
        duration = data.get("duration", data.get("durationMinutes", data.get("duration_minutes", 0)))
        is_break = data.get("breakPeriod", data.get("isBreak", data.get("is_break", False)))
        period_id = data.get("id")
        return Period(
            id=str(period_id) if period_id not in (None, "") else str(fallback_index + 1),
            name=str(data.get("name") or ""),
            duration_minutes=int(duration or 0),
            order_index=int(order_index if order_index is not None else fallback_index),
            is_break=bool(is_break),
        )


def normalize_periods(raw: Optional[Iterable[RawPeriod]]) -> List[Period]:
    """
    Normalize a legacy or structured period list into ordered Periods.

    Bare strings become playing periods of the legacy default length. The
    result is sorted by ``order_index`` (ties keep input order) and
    re-numbered so indices form a contiguous 0-based sequence.

    Example:
        >>> [p.name for p in normalize_periods(["First Half", "Second Half"])]
        ['First Half', 'Second Half']
    """
    if not raw:
        return []

    periods: List[Period] = []
    for index, item in enumerate(raw):
        if isinstance(item, Period):
            periods.append(item)
        elif isinstance(item, str):
            periods.append(
                Period(
                    id=str(index + 1),
                    name=item,
                    duration_minutes=LEGACY_PERIOD_MINUTES,
                    order_index=index,
                    is_break=False,
                )
            )
        elif isinstance(item, dict):
            periods.append(Period.from_json(item, fallback_index=index))
        else:
            raise TypeError(f"Unsupported period entry: {item!r}")

    ordered = sorted(enumerate(periods), key=lambda pair: (pair[1].order_index, pair[0]))
    return [replace(period, order_index=idx) for idx, (_, period) in enumerate(ordered)]
