"""In-memory callback slot storage with synthetic audition data."""

import itertools
from dataclasses import replace
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional, Union

from models.entities import SlotRelation, TargetDay, TimeSlot
from services.slot_time import localize, resolve_timezone


class InMemorySlotStore:
    """
    Stand-in for the application's callback slot tables.

    Holds slots, signups, callback invitations and a small user directory.
    Failures can be injected per day to exercise partial application.
    """

    def __init__(
        self,
        timezone: Optional[Union[str, tzinfo]] = None,
        seed_demo_data: bool = False
    ):
        """Initialize an empty store, optionally with synthetic slots."""
        self.timezone = resolve_timezone(timezone)
        self._slots: dict[str, TimeSlot] = {}
        self._signups: dict[str, list[str]] = {}
        self._invitations: dict[str, list[tuple[str, str]]] = {}  # slot_id -> [(user_id, status)]
        self._users: dict[str, dict[str, str]] = {}
        self._fail_create_days: set[date] = set()
        self._fail_delete_days: set[date] = set()
        self._ids = itertools.count(1)

        if seed_demo_data:
            self._initialize_synthetic_slots()

    def _initialize_synthetic_slots(self):
        """Seed a week of callback slots with a few signups and invitations."""
        users = [
            ("user_001", "Maya Alvarez", "maya.alvarez@example.com"),
            ("user_002", "Jonah Brooks", "jonah.brooks@example.com"),
            ("user_003", "Priya Nair", "priya.nair@example.com"),
            ("user_004", "Theo Laurent", "theo.laurent@example.com"),
        ]
        for user_id, name, email in users:
            self.add_user(user_id, name, email)

        today = date.today()
        for day_offset in range(1, 6):
            current_date = today + timedelta(days=day_offset)

            # Afternoon callbacks every day (14:00-15:00)
            afternoon = self._make_slot(current_date, time(14, 0), time(15, 0), location="Studio A")

            # Morning callbacks every other day (10:30-11:30)
            if day_offset % 2 == 1:
                morning = self._make_slot(current_date, time(10, 30), time(11, 30), location="Main Stage")
                created = self.create_slots(current_date, [morning, afternoon])
                self.add_signup(created[0].id, users[day_offset % len(users)][0])
                self.add_invitation(created[1].id, users[(day_offset + 1) % len(users)][0], status="accepted")
            else:
                self.create_slots(current_date, [afternoon])

    def _make_slot(
        self,
        day: date,
        start: time,
        end: time,
        location: Optional[str] = None,
        max_signups: int = 1
    ) -> TimeSlot:
        return TimeSlot(
            day_date=day,
            start_time=localize(datetime.combine(day, start), self.timezone),
            end_time=localize(datetime.combine(day, end), self.timezone),
            max_signups=max_signups,
            location=location
        )

    # Slot storage collaborator

    def create_slots(self, day: date, slots: list[TimeSlot]) -> list[TimeSlot]:
        """Store slots on day and return them with ids assigned."""
        if day in self._fail_create_days:
            self._fail_create_days.discard(day)
            raise ConnectionError(f"Simulated storage failure creating slots on {day.isoformat()}")

        created = []
        for slot in slots:
            stored = replace(slot, day_date=day, id=f"slot_{next(self._ids):04d}")
            self._slots[stored.id] = stored
            created.append(stored)
        return created

    def delete_slots(self, slot_ids: list[str]) -> None:
        """
        Delete slots along with their signups and invitations.

        Raises:
            KeyError: if any id is not stored; nothing is deleted in that case
        """
        missing = [sid for sid in slot_ids if sid not in self._slots]
        if missing:
            raise KeyError(f"Unknown slot id(s): {', '.join(missing)}")

        days = {self._slots[sid].day_date for sid in slot_ids}
        failing = days & self._fail_delete_days
        if failing:
            day = min(failing)
            self._fail_delete_days.discard(day)
            raise ConnectionError(f"Simulated storage failure deleting slots on {day.isoformat()}")

        for slot_id in slot_ids:
            self._slots.pop(slot_id, None)
            self._signups.pop(slot_id, None)
            self._invitations.pop(slot_id, None)

    def fail_next_create(self, day: date):
        """Make the next create_slots call for day raise."""
        self._fail_create_days.add(day)

    def fail_next_delete(self, day: date):
        """Make the next delete_slots call touching day raise."""
        self._fail_delete_days.add(day)

    def get_slot(self, slot_id: str) -> Optional[TimeSlot]:
        return self._slots.get(slot_id)

    def get_slots_for_day(self, day: date) -> list[TimeSlot]:
        """Slots on day sorted by start time."""
        slots = [s for s in self._slots.values() if s.day_date == day]
        return sorted(slots, key=lambda s: s.start_time)

    def target_day(self, day: date) -> TargetDay:
        return TargetDay(date=day, existing_slots=self.get_slots_for_day(day))

    def list_days(self) -> list[date]:
        """Days that have at least one slot."""
        return sorted({s.day_date for s in self._slots.values()})

    # Signup and invitation index

    def add_signup(self, slot_id: str, user_id: str):
        self._signups.setdefault(slot_id, []).append(user_id)

    def add_invitation(self, slot_id: str, user_id: str, status: str = "pending"):
        self._invitations.setdefault(slot_id, []).append((user_id, status))

    def find_signups_by_callback_slot_id(self, slot_id: str) -> list[SlotRelation]:
        return [
            SlotRelation(user_id=user_id, relation_kind="signup")
            for user_id in self._signups.get(slot_id, [])
        ]

    def find_invitations_by_callback_slot_id(self, slot_id: str) -> list[SlotRelation]:
        return [
            SlotRelation(user_id=user_id, relation_kind="callback_invitation")
            for user_id, _status in self._invitations.get(slot_id, [])
        ]

    def is_slot_full(self, slot_id: str) -> bool:
        """
        Check whether accepted invitations have reached the slot's capacity.

        Unknown slots count as full.
        """
        slot = self._slots.get(slot_id)
        if not slot:
            return True
        accepted = sum(1 for _, status in self._invitations.get(slot_id, []) if status == "accepted")
        return accepted >= (slot.max_signups or 1)

    # User directory

    def add_user(self, user_id: str, name: str, email: str):
        self._users[user_id] = {"id": user_id, "name": name, "email": email}

    def get_user(self, user_id: str) -> Optional[dict[str, str]]:
        return self._users.get(user_id)
