"""
Shift boundary rules: late check-in / early check-out flags.

Shift times are "HH:MM" wall-clock strings in the deployment timezone. The comparison is
same-day: an overnight shift (end before start, e.g. 22:00-06:00) is compared against the
event's own calendar day, so a 05:00 check-out counts as early and a 07:00 one does not.
"""
from datetime import datetime, time, timedelta, tzinfo
from typing import NamedTuple, Optional

from app.models.attendance import AttendanceStatus


class ShiftFlags(NamedTuple):
    is_late: bool = False
    is_early: bool = False


def parse_wall_clock(value: str) -> time:
    """Parse "HH:MM" (24h). Raises ValueError on anything else."""
    try:
        hours, minutes = value.strip().split(":")
        parsed = time(int(hours), int(minutes))
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return parsed


def _local_naive(event_at: datetime, tz: Optional[tzinfo]) -> datetime:
    if event_at.tzinfo is None:
        return event_at
    if tz is not None:
        event_at = event_at.astimezone(tz)
    return event_at.replace(tzinfo=None)


def classify(
    event_at: datetime,
    shift,
    status: AttendanceStatus,
    grace_minutes: int = 0,
    tz: Optional[tzinfo] = None,
) -> ShiftFlags:
    """
    Classify an attendance event against the employee's shift.

    Args:
        event_at: Event time. Aware datetimes are converted to tz; naive ones are taken as local wall-clock.
        shift: Object with start_time/end_time "HH:MM" strings, or None when no shift is assigned
        status: CHECK_IN or CHECK_OUT
        grace_minutes: Minutes after start_time before a check-in counts as late
        tz: Deployment timezone

    Returns:
        ShiftFlags; both False when there is no shift
    """
    if shift is None:
        return ShiftFlags()

    local = _local_naive(event_at, tz)

    if AttendanceStatus(status) == AttendanceStatus.CHECK_IN:
        start = datetime.combine(local.date(), parse_wall_clock(shift.start_time))
        return ShiftFlags(is_late=local > start + timedelta(minutes=grace_minutes))

    end = datetime.combine(local.date(), parse_wall_clock(shift.end_time))
    return ShiftFlags(is_early=local < end)
