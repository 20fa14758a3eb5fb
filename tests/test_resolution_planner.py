import pytest

from models.entities import AffectedParty, SlotRelation, TargetDay
from models.errors import SlotValidationError
from services.resolution_planner import (
    build_notification_payload,
    collect_affected_parties,
    plan_resolution,
    unique_user_ids,
)

from conftest import DAY_A, DAY_B, SOURCE_DAY, TZ_NAME


@pytest.fixture
def copy_setup(detector, make_slot):
    """One proposed slot; day A conflicts, day B does not."""
    proposed = [make_slot(SOURCE_DAY, "10:00", "11:00", slot_id="slot_src")]
    conflicting = make_slot(DAY_A, "10:30", "11:30", slot_id="slot_a1")
    kept = make_slot(DAY_A, "15:00", "16:00", slot_id="slot_a2")
    targets = [
        TargetDay(DAY_A, [conflicting, kept]),
        TargetDay(DAY_B, [make_slot(DAY_B, "11:00", "12:00", slot_id="slot_b1")]),
    ]
    conflicts = detector.detect_conflicts(proposed, targets)
    return proposed, targets, conflicts, conflicting


def test_replace_deletes_exactly_the_reported_slots(copy_setup):
    proposed, targets, conflicts, conflicting = copy_setup

    plan = plan_resolution(proposed, targets, conflicts, "replace", TZ_NAME)

    assert plan.day(DAY_A).slots_to_delete == conflicts[0].conflicting_existing_slots == [conflicting]
    assert plan.day(DAY_B).slots_to_delete == []
    assert plan.delete_count == 1


def test_replace_creates_full_proposed_set_on_every_day(copy_setup, tz):
    proposed, targets, conflicts, _ = copy_setup

    plan = plan_resolution(proposed, targets, conflicts, "replace", TZ_NAME)

    for day in (DAY_A, DAY_B):
        created = plan.day(day).slots_to_create
        assert len(created) == 1
        assert created[0].day_date == day
        assert created[0].id is None
        assert created[0].start_time.astimezone(tz).strftime("%H:%M") == "10:00"
        assert created[0].end_time.astimezone(tz).strftime("%H:%M") == "11:00"


def test_allow_overlapping_never_deletes(copy_setup):
    proposed, targets, conflicts, _ = copy_setup

    plan = plan_resolution(proposed, targets, conflicts, "allow_overlapping", TZ_NAME)

    assert all(d.slots_to_delete == [] for d in plan.days)
    assert plan.create_count == 2


def test_cancel_plans_nothing(copy_setup):
    proposed, targets, conflicts, _ = copy_setup

    plan = plan_resolution(proposed, targets, conflicts, "cancel", TZ_NAME)

    assert [d.date for d in plan.days] == [DAY_A, DAY_B]
    assert plan.is_empty


@pytest.mark.parametrize("policy", ["replace", "allow_overlapping", "cancel"])
def test_no_conflicts_means_no_deletions(policy, make_slot):
    proposed = [make_slot(SOURCE_DAY, "09:00", "10:00")]
    targets = [TargetDay(DAY_B, [make_slot(DAY_B, "10:00", "11:00", slot_id="slot_b1")])]

    plan = plan_resolution(proposed, targets, [], policy, TZ_NAME)

    assert plan.day(DAY_B).slots_to_delete == []


def test_unknown_policy_is_rejected(copy_setup):
    proposed, targets, conflicts, _ = copy_setup

    with pytest.raises(SlotValidationError):
        plan_resolution(proposed, targets, conflicts, "overwrite", TZ_NAME)


def _index(mapping):
    return lambda slot_id: mapping.get(slot_id, [])


def test_affected_parties_come_from_deleted_slots_only(copy_setup):
    proposed, targets, conflicts, conflicting = copy_setup
    plan = plan_resolution(proposed, targets, conflicts, "replace", TZ_NAME)
    signups = _index({
        "slot_a1": [SlotRelation("user_1", "signup")],
        "slot_a2": [SlotRelation("user_2", "signup")],
        "slot_b1": [SlotRelation("user_3", "signup")],
    })
    invitations = _index({"slot_a1": [SlotRelation("user_4", "callback_invitation")]})

    parties = collect_affected_parties(plan, signups, invitations)

    deleted_ids = {s.id for d in plan.days for s in d.slots_to_delete}
    assert {p.slot_id for p in parties} <= deleted_ids
    assert [(p.user_id, p.relation_kind) for p in parties] == [
        ("user_1", "signup"),
        ("user_4", "callback_invitation"),
    ]
    assert parties[0].slot is conflicting


def test_allow_overlapping_affects_nobody(copy_setup):
    proposed, targets, conflicts, _ = copy_setup
    plan = plan_resolution(proposed, targets, conflicts, "allow_overlapping", TZ_NAME)
    signups = _index({"slot_a1": [SlotRelation("user_1", "signup")]})

    assert collect_affected_parties(plan, signups, _index({})) == []


def test_same_user_on_two_days_yields_two_records(detector, make_slot):
    proposed = [make_slot(SOURCE_DAY, "10:00", "11:00")]
    targets = [
        TargetDay(DAY_A, [make_slot(DAY_A, "10:00", "11:00", slot_id="slot_a1")]),
        TargetDay(DAY_B, [make_slot(DAY_B, "10:15", "10:45", slot_id="slot_b1")]),
    ]
    conflicts = detector.detect_conflicts(proposed, targets)
    plan = plan_resolution(proposed, targets, conflicts, "replace", TZ_NAME)
    invitations = _index({
        "slot_a1": [SlotRelation("user_1", "callback_invitation")],
        "slot_b1": [SlotRelation("user_1", "callback_invitation")],
    })

    parties = collect_affected_parties(plan, _index({}), invitations)

    assert [p.slot_id for p in parties] == ["slot_a1", "slot_b1"]
    assert unique_user_ids(parties) == ["user_1"]


def test_notification_payload_trims_blank_message():
    parties = [AffectedParty("user_1", "slot_a1", "signup")]

    assert build_notification_payload(parties, "   ").custom_message is None
    assert build_notification_payload(parties, "  See you Friday \n").custom_message == "See you Friday"
    assert build_notification_payload(parties).parties == parties
