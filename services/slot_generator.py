"""Generates runs of back-to-back callback slots."""

from datetime import date, timedelta, tzinfo
from typing import Iterable, Optional, Union

from models.entities import TimeSlot, WallClockWindow
from models.errors import SlotValidationError
from services.slot_time import project_window, resolve_timezone


def generate_slots(
    day: date,
    window: WallClockWindow,
    duration_minutes: int,
    buffer_minutes: int = 0,
    location: Optional[str] = None,
    max_signups: int = 1,
    timezone: Optional[Union[str, tzinfo]] = None
) -> list[TimeSlot]:
    """
    Split a time window into slots of a fixed length.

    Args:
        day: Day the slots belong to
        window: Local time range to fill
        duration_minutes: Length of each slot
        buffer_minutes: Gap left after each slot
        location: Location for every slot
        max_signups: Capacity for every slot
        timezone: Zone of the window (defaults to env var SLOT_TIMEZONE)

    Returns:
        Slots in start order. Only whole slots that fit are produced.
    """
    if duration_minutes <= 0:
        raise SlotValidationError("Slot duration must be positive")
    if buffer_minutes < 0:
        raise SlotValidationError("Buffer time cannot be negative")
    if max_signups < 1:
        raise SlotValidationError("Slots must allow at least one signup")

    tz = resolve_timezone(timezone)
    window_start, window_end = project_window(window, day, tz)

    duration_delta = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=duration_minutes + buffer_minutes)

    result = []
    current_start = window_start
    while current_start + duration_delta <= window_end:
        result.append(TimeSlot(
            day_date=day,
            start_time=current_start,
            end_time=current_start + duration_delta,
            max_signups=max_signups,
            location=location
        ))
        current_start += step

    return result


def selectable_target_dates(available_dates: Iterable[date], source_day: date) -> list[date]:
    """Dates a source day's slots may be copied to: every other available date, sorted."""
    return sorted({d for d in available_dates if d != source_day})
