"""Domain models for the Callback Slot Copier."""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Literal, Optional


ResolutionPolicy = Literal["replace", "allow_overlapping", "cancel"]
RESOLUTION_POLICIES: tuple[ResolutionPolicy, ...] = ("replace", "allow_overlapping", "cancel")

RelationKind = Literal["signup", "callback_invitation"]

DayStatus = Literal["applied", "partially_applied", "failed", "skipped"]


@dataclass
class TimeSlot:
    """A bookable callback slot on a specific day."""
    day_date: date
    start_time: datetime
    end_time: datetime
    max_signups: int = 1
    location: Optional[str] = None
    notes: Optional[str] = None
    id: Optional[str] = None  # None until the slot is stored

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() / 60)


@dataclass(frozen=True)
class WallClockWindow:
    """Time-of-day range with no calendar date attached."""
    start: time
    end: time


@dataclass
class ProposedSlotSet:
    """Slots on the source day that are being copied."""
    source_day: date
    slots: list[TimeSlot]


@dataclass
class TargetDay:
    """A day the proposed slots are copied onto."""
    date: date
    existing_slots: list[TimeSlot] = field(default_factory=list)


@dataclass
class ConflictReport:
    """Existing slots on a target day that overlap a proposed slot."""
    target_day: TargetDay
    conflicting_existing_slots: list[TimeSlot]


@dataclass(frozen=True)
class SlotRelation:
    """A signup or invitation tying a user to a callback slot."""
    user_id: str
    relation_kind: RelationKind


@dataclass
class AffectedParty:
    """A user whose signup or invitation is cancelled by a slot deletion."""
    user_id: str
    slot_id: str
    relation_kind: RelationKind
    slot: Optional[TimeSlot] = None


@dataclass
class DayPlan:
    """What happens to one target day."""
    date: date
    slots_to_create: list[TimeSlot] = field(default_factory=list)
    slots_to_delete: list[TimeSlot] = field(default_factory=list)


@dataclass
class ResolutionPlan:
    """Per-day create/delete sets computed for a policy."""
    policy: ResolutionPolicy
    days: list[DayPlan]

    def day(self, day: date) -> Optional[DayPlan]:
        for day_plan in self.days:
            if day_plan.date == day:
                return day_plan
        return None

    @property
    def is_empty(self) -> bool:
        return all(not d.slots_to_create and not d.slots_to_delete for d in self.days)

    @property
    def create_count(self) -> int:
        return sum(len(d.slots_to_create) for d in self.days)

    @property
    def delete_count(self) -> int:
        return sum(len(d.slots_to_delete) for d in self.days)


@dataclass
class NotificationPayload:
    """Parties to notify and the director's optional message."""
    parties: list[AffectedParty]
    custom_message: Optional[str] = None


@dataclass
class DayOutcome:
    """Result of applying one day's plan."""
    date: date
    status: DayStatus
    created_slots: list[TimeSlot] = field(default_factory=list)
    deleted_slot_ids: list[str] = field(default_factory=list)
    notified_parties: list[AffectedParty] = field(default_factory=list)
    notification_failures: int = 0
    error: Optional[str] = None


@dataclass
class ApplyReport:
    """Aggregated per-day results of applying a plan."""
    outcomes: list[DayOutcome]

    def outcome(self, day: date) -> Optional[DayOutcome]:
        for outcome in self.outcomes:
            if outcome.date == day:
                return outcome
        return None

    @property
    def succeeded_days(self) -> list[date]:
        return [o.date for o in self.outcomes if o.status == "applied"]

    @property
    def failed_days(self) -> list[date]:
        """Days that need a retry (failed, partially applied or never started)."""
        return [o.date for o in self.outcomes if o.status != "applied"]

    @property
    def all_applied(self) -> bool:
        return all(o.status == "applied" for o in self.outcomes)
