"""Date/time helpers for projecting slots across days."""

import os
from datetime import date, datetime, timedelta, tzinfo
from typing import Optional, Union

import pytz

from models.entities import TimeSlot, WallClockWindow


DEFAULT_TIMEZONE = "America/New_York"


def resolve_timezone(tz: Optional[Union[str, tzinfo]] = None) -> tzinfo:
    """Return a tzinfo for a name, an existing tzinfo, or SLOT_TIMEZONE."""
    if tz is None:
        tz = os.getenv("SLOT_TIMEZONE", DEFAULT_TIMEZONE)
    if isinstance(tz, str):
        return pytz.timezone(tz)
    return tz


def localize(value: datetime, tz: tzinfo) -> datetime:
    """Attach tz to a naive datetime, or convert an aware one into tz."""
    if value.tzinfo is None:
        if hasattr(tz, "localize"):
            return tz.localize(value)
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def overlaps(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime
) -> bool:
    """Half-open interval overlap: [a_start, a_end) intersects [b_start, b_end)."""
    return a_start < b_end and b_start < a_end


def wall_clock_window(slot: TimeSlot, tz: tzinfo) -> WallClockWindow:
    """Local time-of-day range of a slot in tz."""
    start_local = localize(slot.start_time, tz)
    end_local = localize(slot.end_time, tz)
    return WallClockWindow(
        start=start_local.time().replace(tzinfo=None),
        end=end_local.time().replace(tzinfo=None)
    )


def project_window(window: WallClockWindow, day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """
    Turn a wall-clock window into concrete instants on day.

    A window whose end is not after its start finishes on the following
    calendar day.
    """
    start = localize(datetime.combine(day, window.start), tz)
    end_day = day if window.end > window.start else day + timedelta(days=1)
    end = localize(datetime.combine(end_day, window.end), tz)
    return start, end


def reassign_slot(slot: TimeSlot, day: date, tz: tzinfo) -> TimeSlot:
    """Copy a proposed slot onto another day, keeping its local times."""
    start, end = project_window(wall_clock_window(slot, tz), day, tz)
    return TimeSlot(
        day_date=day,
        start_time=start,
        end_time=end,
        max_signups=slot.max_signups,
        location=slot.location,
        notes=slot.notes,
        id=None
    )
