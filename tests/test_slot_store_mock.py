import pytest

from services.slot_store_mock import InMemorySlotStore

from conftest import DAY_A, DAY_B, TZ_NAME


def test_created_slots_get_ids_and_sort_by_start(store, make_slot):
    created = store.create_slots(DAY_A, [
        make_slot(DAY_A, "14:00", "15:00"),
        make_slot(DAY_A, "09:00", "10:00"),
    ])

    assert all(s.id for s in created)
    assert [s.id for s in store.get_slots_for_day(DAY_A)] == [created[1].id, created[0].id]
    assert store.list_days() == [DAY_A]


def test_deleting_a_slot_drops_its_relations(store, make_slot):
    slot = store.create_slots(DAY_A, [make_slot(DAY_A, "10:00", "11:00")])[0]
    store.add_signup(slot.id, "user_1")
    store.add_invitation(slot.id, "user_2")

    store.delete_slots([slot.id])

    assert store.get_slot(slot.id) is None
    assert store.find_signups_by_callback_slot_id(slot.id) == []
    assert store.find_invitations_by_callback_slot_id(slot.id) == []


def test_slot_is_full_once_accepted_invitations_reach_capacity(store, make_slot):
    slot = store.create_slots(DAY_A, [make_slot(DAY_A, "10:00", "11:00", max_signups=2)])[0]
    store.add_invitation(slot.id, "user_1", status="accepted")
    store.add_invitation(slot.id, "user_2", status="pending")
    assert not store.is_slot_full(slot.id)

    store.add_invitation(slot.id, "user_3", status="accepted")
    assert store.is_slot_full(slot.id)
    assert store.is_slot_full("missing")


def test_injected_failures_fire_once(store, make_slot):
    store.fail_next_create(DAY_B)

    with pytest.raises(ConnectionError):
        store.create_slots(DAY_B, [make_slot(DAY_B, "10:00", "11:00")])
    assert len(store.create_slots(DAY_B, [make_slot(DAY_B, "10:00", "11:00")])) == 1


def test_demo_data_has_slots_and_relations():
    store = InMemorySlotStore(timezone=TZ_NAME, seed_demo_data=True)

    days = store.list_days()
    assert len(days) == 5
    first_day_slots = store.get_slots_for_day(days[0])
    assert len(first_day_slots) == 2
    assert store.find_signups_by_callback_slot_id(first_day_slots[0].id)
    assert store.get_user("user_001")["name"] == "Maya Alvarez"


def test_deleting_unknown_slot_raises_and_keeps_the_rest(store, make_slot):
    slot = store.create_slots(DAY_A, [make_slot(DAY_A, "10:00", "11:00")])[0]

    with pytest.raises(KeyError):
        store.delete_slots([slot.id, "slot_9999"])
    assert store.get_slot(slot.id) is not None
