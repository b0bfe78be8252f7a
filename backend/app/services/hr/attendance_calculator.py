"""
Attendance hours and overtime calculation.

Worked time is ``check_out - check_in`` minus the break window (when both
break timestamps are present), floored at zero. Anything above the standard
workday is split off into overtime so that regular hours never exceed it.
Shifts that cross midnight (check_out earlier than check_in) come out as zero.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from app.core.config import settings

SECONDS_PER_HOUR = 3600.0


@dataclass(frozen=True)
class WorkedHours:
    total_hours: float = 0.0
    overtime_hours: float = 0.0


class AttendanceState(str, Enum):
    NOT_STARTED = "not-started"
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"


def as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _hours_between(start: datetime, end: datetime) -> float:
    return (as_naive_utc(end) - as_naive_utc(start)).total_seconds() / SECONDS_PER_HOUR


def calculate_worked_hours(
    check_in: Optional[datetime],
    check_out: Optional[datetime],
    break_start: Optional[datetime] = None,
    break_end: Optional[datetime] = None,
    *,
    standard_hours: Optional[float] = None,
) -> WorkedHours:
    """
    Compute regular and overtime hours for one attendance record.

    Args:
        check_in: Clock-in time
        check_out: Clock-out time
        break_start: Start of the break window
        break_end: End of the break window
        standard_hours: Regular-hours cap, defaults to STANDARD_WORKDAY_HOURS

    Returns:
        WorkedHours with both fields zero unless check_in and check_out are set
    """
    if check_in is None or check_out is None:
        return WorkedHours()

    cap = settings.STANDARD_WORKDAY_HOURS if standard_hours is None else standard_hours

    break_hours = 0.0
    if break_start is not None and break_end is not None:
        break_hours = _hours_between(break_start, break_end)

    total = max(0.0, _hours_between(check_in, check_out) - break_hours)
    overtime = 0.0
    if total > cap:
        overtime = total - cap
        total = cap

    return WorkedHours(total_hours=total, overtime_hours=overtime)


def attendance_state(check_in: Optional[datetime], check_out: Optional[datetime]) -> AttendanceState:
    """Where a record sits in the check-in/check-out cycle."""
    if check_in is None:
        return AttendanceState.NOT_STARTED
    if check_out is None:
        return AttendanceState.CHECKED_IN
    return AttendanceState.CHECKED_OUT
