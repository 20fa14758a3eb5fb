"""Resolution planning and affected-party collection for slot copies."""

from datetime import tzinfo
from typing import Callable, Optional, Union

from models.entities import (
    RESOLUTION_POLICIES,
    AffectedParty,
    ConflictReport,
    DayPlan,
    NotificationPayload,
    ResolutionPlan,
    ResolutionPolicy,
    SlotRelation,
    TargetDay,
    TimeSlot,
)
from models.errors import SlotValidationError
from services.slot_time import reassign_slot, resolve_timezone


# slot_id -> signups or invitations referencing that slot
RelationIndex = Callable[[str], list[SlotRelation]]


def plan_resolution(
    proposed_slots: list[TimeSlot],
    target_days: list[TargetDay],
    conflicts: list[ConflictReport],
    policy: ResolutionPolicy,
    timezone: Optional[Union[str, tzinfo]] = None
) -> ResolutionPlan:
    """
    Compute what to create and delete on each target day.

    Args:
        proposed_slots: Slots being copied
        target_days: Days to copy onto
        conflicts: Output of ConflictDetector.detect_conflicts for the same input
        policy: "replace", "allow_overlapping" or "cancel"
        timezone: Zone whose wall-clock times are copied

    Returns:
        ResolutionPlan with one DayPlan per target day. Nothing is stored here.
    """
    if policy not in RESOLUTION_POLICIES:
        raise SlotValidationError(f"Unknown resolution policy: {policy!r}")

    tz = resolve_timezone(timezone)
    conflicts_by_day = {
        report.target_day.date: report.conflicting_existing_slots
        for report in conflicts
    }

    days = []
    for target in target_days:
        if policy == "cancel":
            days.append(DayPlan(date=target.date))
            continue

        to_create = [reassign_slot(slot, target.date, tz) for slot in proposed_slots]
        to_delete = []
        if policy == "replace":
            to_delete = list(conflicts_by_day.get(target.date, []))

        days.append(DayPlan(
            date=target.date,
            slots_to_create=to_create,
            slots_to_delete=to_delete
        ))

    return ResolutionPlan(policy=policy, days=days)


def collect_affected_parties(
    plan: ResolutionPlan,
    signup_index: RelationIndex,
    invitation_index: RelationIndex
) -> list[AffectedParty]:
    """
    List every (user, deleted slot) pair that must be notified.

    Records are not deduplicated across days: a user booked into two deleted
    slots gets two records.
    """
    parties = []
    for day_plan in plan.days:
        for slot in day_plan.slots_to_delete:
            if slot.id is None:
                continue
            relations = list(signup_index(slot.id)) + list(invitation_index(slot.id))
            for relation in relations:
                parties.append(AffectedParty(
                    user_id=relation.user_id,
                    slot_id=slot.id,
                    relation_kind=relation.relation_kind,
                    slot=slot
                ))
    return parties


def parties_for_day(plan: ResolutionPlan, parties: list[AffectedParty], day) -> list[AffectedParty]:
    """Parties whose slot is deleted on the given day."""
    day_plan = plan.day(day)
    if day_plan is None:
        return []
    slot_ids = {slot.id for slot in day_plan.slots_to_delete}
    return [p for p in parties if p.slot_id in slot_ids]


def unique_user_ids(parties: list[AffectedParty]) -> list[str]:
    """Distinct users in first-seen order."""
    seen = {}
    for party in parties:
        seen.setdefault(party.user_id, None)
    return list(seen)


def build_notification_payload(
    parties: list[AffectedParty],
    custom_message: Optional[str] = None
) -> NotificationPayload:
    """Bundle parties with the trimmed custom message (None when blank)."""
    message = (custom_message or "").strip()
    return NotificationPayload(parties=list(parties), custom_message=message or None)
