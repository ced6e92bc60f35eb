"""Period schedule validation and editing for the live match officiating desk."""

import logging
import uuid
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence

from ..exceptions import ValidationError
from ..models import Period, normalize_periods
from ..utils import (
    DEFAULT_BREAK_MINUTES, DEFAULT_PLAYING_MINUTES,
    MAX_PERIOD_MINUTES, MIN_PERIOD_MINUTES,
)

logger = logging.getLogger(__name__)


def period_errors(periods: Sequence[Period]) -> List[str]:
    """
    Validate a period schedule and return list of validation errors.

    Args:
        periods: Schedule to validate, in order

    Returns:
        List of validation error messages (empty if valid)
    """
    errors: List[str] = []

    if not periods:
        errors.append("At least one period is required.")
        return errors

    for period in periods:
        if not period.name or not period.name.strip():
            errors.append("Period name cannot be empty.")
        if not MIN_PERIOD_MINUTES <= period.duration_minutes <= MAX_PERIOD_MINUTES:
            errors.append(
                f"Period '{period.name}' duration must be between "
                f"{MIN_PERIOD_MINUTES} and {MAX_PERIOD_MINUTES} minutes."
            )

    order = sorted(p.order_index for p in periods)
    if order != list(range(len(periods))):
        errors.append("Period order must be a contiguous sequence starting at 0.")

    return errors


def validate_periods(periods: Sequence[Period]) -> None:
    """
    Validate a period schedule.

    Raises:
        ValidationError: If the schedule is empty, a name is blank, a duration
            is outside the allowed range, or the order is not contiguous
    """
    errors = period_errors(periods)
    if errors:
        raise ValidationError(errors)


def total_playing_minutes(periods: Iterable[Period]) -> int:
    """Sum of the durations of all non-break periods."""
    return sum(p.duration_minutes for p in periods if not p.is_break)


def next_playing_index(periods: Sequence[Period], after_index: int) -> Optional[int]:
    """Index of the first playing period after ``after_index``, if any."""
    for idx in range(after_index + 1, len(periods)):
        if not periods[idx].is_break:
            return idx
    return None


class PeriodSchedule:
    """
    Editable period schedule.

    Used by officials to build or adjust the list of periods before kickoff
    or while the clock is paused. Every edit keeps ``order_index`` contiguous;
    validation is only enforced by :meth:`validate`, so an official can pass
    through an invalid intermediate state while editing.
    """

    def __init__(self, periods=None):
        self._periods: List[Period] = normalize_periods(periods)

    @property
    def periods(self) -> List[Period]:
        return list(self._periods)

    def __len__(self) -> int:
        return len(self._periods)

    def add_period(
        self,
        is_break: bool = False,
        name: Optional[str] = None,
        duration_minutes: Optional[int] = None,
    ) -> Period:
        """Append a period with the editor's default name and length."""
        position = len(self._periods) + 1
        if name is None:
            name = f"Break {position}" if is_break else f"Period {position}"
        if duration_minutes is None:
            duration_minutes = DEFAULT_BREAK_MINUTES if is_break else DEFAULT_PLAYING_MINUTES

        period = Period(
            id=uuid.uuid4().hex[:12],
            name=name,
            duration_minutes=int(duration_minutes),
            order_index=len(self._periods),
            is_break=is_break,
        )
        self._periods.append(period)
        return period

    def remove_period(self, period_id: str) -> Period:
        """
        Remove a period and re-number the remaining ones.

        Raises:
            KeyError: If no period has the given id
        """
        removed = self._find(period_id)
        self._periods = [
            replace(p, order_index=idx)
            for idx, p in enumerate(p for p in self._periods if p.id != period_id)
        ]
        return removed

    def update_period(
        self,
        period_id: str,
        *,
        name: Optional[str] = None,
        duration_minutes: Optional[int] = None,
        is_break: Optional[bool] = None,
    ) -> Period:
        """
        Change fields of one period in place.

        Raises:
            KeyError: If no period has the given id
        """
        current = self._find(period_id)
        changes = {}
        if name is not None:
            changes["name"] = name
        if duration_minutes is not None:
            changes["duration_minutes"] = int(duration_minutes)
        if is_break is not None:
            changes["is_break"] = bool(is_break)

        updated = replace(current, **changes)
        self._periods[current.order_index] = updated
        return updated

    def validate(self) -> None:
        validate_periods(self._periods)

    def total_playing_minutes(self) -> int:
        return total_playing_minutes(self._periods)

    def to_json(self) -> List[dict]:
        return [p.to_json() for p in self._periods]

    def _find(self, period_id: str) -> Period:
        for period in self._periods:
            if period.id == period_id:
                return period
        raise KeyError(f"Period not found: {period_id}")
