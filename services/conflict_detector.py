"""Overlap detection between proposed slots and existing target-day slots."""

from datetime import date, tzinfo
from typing import Optional, Union

from models.entities import ConflictReport, TargetDay, TimeSlot
from models.errors import SlotValidationError
from services.slot_time import overlaps, reassign_slot, resolve_timezone


def validate_copy_request(
    proposed_slots: list[TimeSlot],
    target_days: list[TargetDay],
    source_day: Optional[date] = None
) -> None:
    """Reject malformed slots and target days before any detection runs."""
    for index, slot in enumerate(proposed_slots):
        _require_aware(slot, f"Proposed slot #{index + 1}")
        if slot.end_time <= slot.start_time:
            raise SlotValidationError(
                f"Proposed slot #{index + 1} ends at {slot.end_time.isoformat()}, "
                f"not after its start {slot.start_time.isoformat()}",
                slot=slot
            )
        if slot.max_signups < 1:
            raise SlotValidationError(
                f"Proposed slot #{index + 1} must allow at least one signup",
                slot=slot
            )

    if source_day is None and proposed_slots:
        source_day = proposed_slots[0].day_date

    for target in target_days:
        if source_day is not None and target.date == source_day:
            raise SlotValidationError(
                f"Target day {target.date.isoformat()} is the source day",
                day=target.date
            )
        for slot in target.existing_slots:
            _require_aware(slot, f"Existing slot {slot.id or '(unsaved)'} on {target.date.isoformat()}")


def _require_aware(slot: TimeSlot, label: str) -> None:
    if slot.start_time.tzinfo is None or slot.end_time.tzinfo is None:
        raise SlotValidationError(f"{label} has times without a timezone", slot=slot)


class ConflictDetector:
    """Finds existing slots that a copy would overlap on each target day."""

    def __init__(self, timezone: Optional[Union[str, tzinfo]] = None):
        """
        Initialize the detector.

        Args:
            timezone: Zone whose wall-clock times are copied
                (defaults to env var SLOT_TIMEZONE)
        """
        self.timezone = resolve_timezone(timezone)

    def detect_conflicts(
        self,
        proposed_slots: list[TimeSlot],
        target_days: list[TargetDay],
        source_day: Optional[date] = None
    ) -> list[ConflictReport]:
        """
        Report the conflicting existing slots for every target day.

        Args:
            proposed_slots: Slots being copied (times taken as local wall-clock)
            target_days: Days to copy onto, with their existing slots
            source_day: Day being copied from (defaults to the first slot's day)

        Returns:
            One ConflictReport per target day with at least one conflict,
            in target-day order. Empty when nothing conflicts.
        """
        validate_copy_request(proposed_slots, target_days, source_day)

        reports = []
        for target in target_days:
            projected = [reassign_slot(slot, target.date, self.timezone) for slot in proposed_slots]
            conflicting = self._find_conflicting(projected, target.existing_slots)
            if conflicting:
                reports.append(ConflictReport(
                    target_day=target,
                    conflicting_existing_slots=conflicting
                ))

        return reports

    def _find_conflicting(
        self,
        projected: list[TimeSlot],
        existing_slots: list[TimeSlot]
    ) -> list[TimeSlot]:
        """Existing slots hit by any projected slot, in their original order."""
        result = []
        for existing in existing_slots:
            for proposed in projected:
                if overlaps(existing.start_time, existing.end_time, proposed.start_time, proposed.end_time):
                    result.append(existing)
                    break
        return result
