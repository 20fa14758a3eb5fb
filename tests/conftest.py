from datetime import date, datetime, time

import pytest
import pytz

from models.entities import ProposedSlotSet, TimeSlot
from services.conflict_detector import ConflictDetector
from services.notification_service_mock import NotificationServiceMock
from services.plan_applier import PlanApplier
from services.slot_copy_workflow import SlotCopyWorkflow
from services.slot_store_mock import InMemorySlotStore

TZ_NAME = "America/New_York"

SOURCE_DAY = date(2026, 5, 4)
DAY_A = date(2026, 5, 5)
DAY_B = date(2026, 5, 6)


def _parse(value: str) -> time:
    hour, minute = value.split(":")
    return time(int(hour), int(minute))


@pytest.fixture
def tz():
    return pytz.timezone(TZ_NAME)


@pytest.fixture
def make_slot(tz):
    """Build a slot from 'HH:MM' strings in the test timezone."""
    def _make(day, start, end, slot_id=None, location=None, max_signups=1):
        return TimeSlot(
            day_date=day,
            start_time=tz.localize(datetime.combine(day, _parse(start))),
            end_time=tz.localize(datetime.combine(day, _parse(end))),
            max_signups=max_signups,
            location=location,
            id=slot_id
        )
    return _make


@pytest.fixture
def detector():
    return ConflictDetector(TZ_NAME)


@pytest.fixture
def store():
    store = InMemorySlotStore(timezone=TZ_NAME)
    store.add_user("user_1", "Maya Alvarez", "maya@example.com")
    store.add_user("user_2", "Jonah Brooks", "jonah@example.com")
    return store


@pytest.fixture
def notifier(store):
    return NotificationServiceMock(store, timezone=TZ_NAME)


@pytest.fixture
def applier(store, notifier):
    return PlanApplier(store, notifier)


@pytest.fixture
def make_workflow(store, detector, applier):
    """Workflow copying whatever is stored on SOURCE_DAY."""
    def _make():
        proposed = ProposedSlotSet(source_day=SOURCE_DAY, slots=store.get_slots_for_day(SOURCE_DAY))
        return SlotCopyWorkflow(
            proposed,
            detector,
            applier,
            signup_index=store.find_signups_by_callback_slot_id,
            invitation_index=store.find_invitations_by_callback_slot_id
        )
    return _make
