"""Applies a resolution plan to slot storage, one target day at a time."""

import logging
from typing import Callable, Optional

from models.entities import AffectedParty, ApplyReport, DayOutcome, DayPlan, ResolutionPlan
from models.errors import ApplyError
from services.resolution_planner import build_notification_payload, parties_for_day

logger = logging.getLogger(__name__)


class PlanApplier:
    """
    Executes a ResolutionPlan against storage and notifies affected users.

    Days are processed sequentially and independently: a storage or
    notification failure on one day is recorded in that day's outcome and
    the next day proceeds.
    """

    def __init__(self, slot_store, notifier=None):
        """
        Initialize the applier.

        Args:
            slot_store: Object with create_slots(day, slots) and delete_slots(ids)
            notifier: Object with dispatch(payload) -> (sent, failed parties), optional
        """
        self.slot_store = slot_store
        self.notifier = notifier

    def apply(
        self,
        plan: ResolutionPlan,
        affected_parties: list[AffectedParty],
        custom_message: Optional[str] = None,
        should_continue: Optional[Callable[[], bool]] = None
    ) -> ApplyReport:
        """
        Apply the plan and report per-day results.

        Args:
            plan: Plan from plan_resolution
            affected_parties: Output of collect_affected_parties for the plan
            custom_message: Optional note included in every notification
            should_continue: Checked before each day; when it returns False the
                remaining days are reported as skipped

        Returns:
            ApplyReport with one DayOutcome per day in the plan
        """
        message = build_notification_payload(affected_parties, custom_message).custom_message
        outcomes = []
        stopped = False

        for day_plan in plan.days:
            if not stopped and should_continue is not None and not should_continue():
                logger.info("Slot copy stopped before %s", day_plan.date.isoformat())
                stopped = True
            if stopped:
                outcomes.append(DayOutcome(date=day_plan.date, status="skipped"))
                continue

            day_parties = parties_for_day(plan, affected_parties, day_plan.date)
            outcomes.append(self._apply_day(day_plan, day_parties, message))

        return ApplyReport(outcomes=outcomes)

    def _apply_day(
        self,
        day_plan: DayPlan,
        parties: list[AffectedParty],
        custom_message: Optional[str]
    ) -> DayOutcome:
        """Delete, then create, then notify for a single day."""
        outcome = DayOutcome(date=day_plan.date, status="applied")
        delete_ids = [s.id for s in day_plan.slots_to_delete if s.id is not None]

        if delete_ids:
            try:
                self.slot_store.delete_slots(delete_ids)
            except Exception as e:
                error = ApplyError(day_plan.date, "delete", e)
                logger.error(str(error))
                outcome.status = "failed"
                outcome.error = str(error)
                return outcome
            outcome.deleted_slot_ids = delete_ids

        if day_plan.slots_to_create:
            try:
                outcome.created_slots = self.slot_store.create_slots(day_plan.date, day_plan.slots_to_create)
            except Exception as e:
                error = ApplyError(day_plan.date, "create", e)
                logger.error(str(error))
                # Deleted slots stay deleted; the caller decides how to recover
                outcome.status = "partially_applied" if delete_ids else "failed"
                outcome.error = str(error)

        if delete_ids:
            self._notify(outcome, parties, custom_message)

        logger.info(
            "Slot copy %s on %s: created %d, deleted %d, notified %d",
            outcome.status,
            day_plan.date.isoformat(),
            len(outcome.created_slots),
            len(outcome.deleted_slot_ids),
            len(outcome.notified_parties)
        )
        return outcome

    def _notify(self, outcome: DayOutcome, parties: list[AffectedParty], custom_message: Optional[str]):
        if self.notifier is None or not parties:
            return
        try:
            _sent, failed = self.notifier.dispatch(build_notification_payload(parties, custom_message))
        except Exception as e:
            logger.error("Notification dispatch failed for %s: %s", outcome.date.isoformat(), e)
            failed = list(parties)
        failed_ids = {id(p) for p in failed}
        outcome.notified_parties = [p for p in parties if id(p) not in failed_ids]
        outcome.notification_failures = len(failed)
        if failed:
            logger.warning(
                "Could not notify %d user(s) about cancelled slots on %s",
                len(failed),
                outcome.date.isoformat()
            )
