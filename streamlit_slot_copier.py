"""Callback Slot Copier - copy a day's callback slots to other audition days."""

import logging
import os
from datetime import date, time, timedelta

import streamlit as st
from dotenv import load_dotenv

from models.entities import ProposedSlotSet, WallClockWindow
from models.errors import SlotValidationError, WorkflowStateError
from services.conflict_detector import ConflictDetector
from services.notification_client import NotificationClient
from services.notification_service_mock import NotificationServiceMock
from services.plan_applier import PlanApplier
from services.response_formatter import ResponseFormatter
from services.slot_copy_workflow import SlotCopyWorkflow
from services.slot_generator import generate_slots, selectable_target_dates
from services.slot_store_mock import InMemorySlotStore
from services.slot_time import resolve_timezone

# ============================================================================
# CONFIGURATION
# ============================================================================

# Load environment variables from .env file
load_dotenv()

SLOT_TIMEZONE = os.getenv("SLOT_TIMEZONE", "America/New_York")
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

st.set_page_config(
    page_title="Callback Slot Copier",
    page_icon="🎭",
    layout="wide"
)

# ============================================================================
# SERVICE INITIALIZATION
# ============================================================================

@st.cache_resource
def get_services(_cache_version="v1.0"):
    """Initialize and cache services against the in-memory slot store."""
    slot_store = InMemorySlotStore(timezone=SLOT_TIMEZONE, seed_demo_data=True)
    detector = ConflictDetector(SLOT_TIMEZONE)

    # Real notification endpoint only when one is configured
    if os.getenv("NOTIFICATION_API_URL"):
        notifier = NotificationClient()
    else:
        notifier = NotificationServiceMock(slot_store, timezone=SLOT_TIMEZONE)

    applier = PlanApplier(slot_store, notifier)
    return slot_store, detector, notifier, applier


slot_store, detector, notifier, applier = get_services()
tz = resolve_timezone(SLOT_TIMEZONE)

# ============================================================================
# SESSION STATE INITIALIZATION
# ============================================================================

if "workflow" not in st.session_state:
    st.session_state.workflow = None
    st.session_state.source_day = None
    st.session_state.last_error = None

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def start_workflow(source_day: date) -> SlotCopyWorkflow:
    """Create a workflow for copying source_day's slots."""
    proposed = ProposedSlotSet(
        source_day=source_day,
        slots=slot_store.get_slots_for_day(source_day)
    )
    return SlotCopyWorkflow(
        proposed,
        detector,
        applier,
        signup_index=slot_store.find_signups_by_callback_slot_id,
        invitation_index=slot_store.find_invitations_by_callback_slot_id
    )


def reset_workflow():
    st.session_state.workflow = None
    st.session_state.last_error = None


def run_step(step, *args, **kwargs):
    """Call a workflow step, keeping validation/state errors on screen."""
    try:
        result = step(*args, **kwargs)
        st.session_state.last_error = None
        return result
    except (SlotValidationError, WorkflowStateError) as e:
        st.session_state.last_error = str(e)
        return None


def candidate_days(source_day: date) -> list[date]:
    """Days with slots plus the next two weeks, minus the source day."""
    upcoming = [date.today() + timedelta(days=i) for i in range(1, 15)]
    return selectable_target_dates(slot_store.list_days() + upcoming, source_day)

# ============================================================================
# SIDEBAR - SLOT GENERATION
# ============================================================================

with st.sidebar:
    st.header("Generate Slots")
    gen_day = st.date_input("Day", value=date.today() + timedelta(days=1), key="gen_day")
    gen_start = st.time_input("From", value=time(10, 0), key="gen_start")
    gen_end = st.time_input("Until", value=time(12, 0), key="gen_end")
    gen_duration = st.number_input("Slot duration (minutes)", min_value=1, value=30)
    gen_buffer = st.number_input("Buffer between slots (minutes)", min_value=0, value=0)
    gen_location = st.text_input("Location", value="")
    gen_capacity = st.number_input("Max signups per slot", min_value=1, value=1)

    if st.button("Create slots"):
        try:
            new_slots = generate_slots(
                gen_day,
                WallClockWindow(start=gen_start, end=gen_end),
                int(gen_duration),
                buffer_minutes=int(gen_buffer),
                location=gen_location or None,
                max_signups=int(gen_capacity),
                timezone=tz
            )
            created = slot_store.create_slots(gen_day, new_slots)
            st.success(f"Created {len(created)} slot(s) on {gen_day.strftime('%b %d')}")
        except SlotValidationError as e:
            st.error(str(e))

# ============================================================================
# MAIN PAGE
# ============================================================================

st.title("🎭 Copy Callback Slots")

days_with_slots = slot_store.list_days()
if not days_with_slots:
    st.info("No callback slots yet. Generate some from the sidebar.")
    st.stop()

source_day = st.selectbox(
    "Copy slots from",
    days_with_slots,
    format_func=lambda d: d.strftime("%A, %B %d, %Y")
)
if source_day != st.session_state.source_day:
    st.session_state.source_day = source_day
    reset_workflow()

for slot in slot_store.get_slots_for_day(source_day):
    where = f" · {slot.location}" if slot.location else ""
    full = " · full" if slot_store.is_slot_full(slot.id) else ""
    st.markdown(f"• {ResponseFormatter.format_slot_time(slot, tz)}{where}{full}")

workflow = st.session_state.workflow

if st.session_state.last_error:
    st.markdown(ResponseFormatter.format_error("Cannot Copy Slots", st.session_state.last_error))

if workflow is None or workflow.state == "cancelled":
    target_dates = st.multiselect(
        "Copy to days",
        candidate_days(source_day),
        format_func=lambda d: d.strftime("%a, %b %d")
    )
    if st.button("Check for conflicts", disabled=not target_dates):
        workflow = start_workflow(source_day)
        st.session_state.workflow = workflow
        run_step(workflow.select_days, [slot_store.target_day(d) for d in target_dates])
        st.rerun()

elif workflow.state == "awaiting_policy_choice":
    st.markdown(ResponseFormatter.format_conflicts(workflow.conflicts, tz))
    col1, col2, col3 = st.columns(3)
    if col1.button("Replace conflicting slots"):
        run_step(workflow.choose_policy, "replace")
        st.rerun()
    if col2.button("Allow overlapping slots"):
        run_step(workflow.choose_policy, "allow_overlapping")
        st.rerun()
    if col3.button("Cancel"):
        run_step(workflow.choose_policy, "cancel")
        st.rerun()

elif workflow.state in ("ready_to_apply", "policy_chosen"):
    run_step(workflow.request_confirmation)
    st.rerun()

elif workflow.state == "awaiting_confirmation":
    summary = workflow.confirmation_summary()
    st.markdown(ResponseFormatter.format_confirmation(summary))

    custom_message = ""
    if summary["affected_parties"]:
        with st.expander("Show affected users"):
            for party in summary["affected_parties"]:
                user = slot_store.get_user(party.user_id)
                name = user["name"] if user else "Unknown User"
                st.caption(f"{name} · {ResponseFormatter.format_slot_time(party.slot, tz)}")
        custom_message = st.text_area(
            "Custom message (optional)",
            placeholder="Add any additional context for affected users..."
        )

    col1, col2 = st.columns(2)
    if col1.button("Cancel"):
        run_step(workflow.dismiss)
        st.rerun()
    confirm_label = "Confirm & Notify" if summary["affected_parties"] else "Confirm & Copy"
    if col2.button(confirm_label, type="primary"):
        run_step(workflow.confirm, custom_message)
        st.rerun()

elif workflow.state in ("applied", "failed"):
    st.markdown(ResponseFormatter.format_apply_report(workflow.report))

    if workflow.state == "failed":
        if st.button("Retry failed days"):
            run_step(workflow.retry_failed, [slot_store.target_day(d) for d in workflow.failed_days])
            st.rerun()
    else:
        st.markdown(ResponseFormatter.format_success(
            "Slots Copied",
            f"Copied {len(workflow.proposed.slots)} slot(s) to {len(workflow.target_days)} day(s)."
        ))

    if st.button("Start over"):
        reset_workflow()
        st.rerun()
