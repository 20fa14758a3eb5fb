"""Exceptions raised by the slot copy services."""

from datetime import date
from typing import Optional


class SlotValidationError(ValueError):
    """Invalid slot, day or policy input, raised before any detection runs."""

    def __init__(self, message: str, slot=None, day: Optional[date] = None):
        super().__init__(message)
        self.slot = slot
        self.day = day


class ApplyError(Exception):
    """Storage failure while applying one target day's plan."""

    def __init__(self, day: date, stage: str, cause: Exception):
        super().__init__(f"Failed to {stage} slots for {day.isoformat()}: {cause}")
        self.day = day
        self.stage = stage
        self.cause = cause


class WorkflowStateError(RuntimeError):
    """An event was sent to the copy workflow in a state that cannot accept it."""


class NotificationError(Exception):
    """Notification could not be delivered to one party."""
