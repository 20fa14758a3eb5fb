"""State machine for the copy-slots-to-many-days workflow."""

import logging
from datetime import date
from typing import Any, Callable, Dict, Literal, Optional

from models.entities import (
    RESOLUTION_POLICIES,
    AffectedParty,
    ApplyReport,
    ConflictReport,
    DayOutcome,
    ProposedSlotSet,
    ResolutionPlan,
    ResolutionPolicy,
    TargetDay,
)
from models.errors import SlotValidationError, WorkflowStateError
from services.conflict_detector import ConflictDetector
from services.plan_applier import PlanApplier
from services.resolution_planner import (
    RelationIndex,
    collect_affected_parties,
    plan_resolution,
    unique_user_ids,
)

logger = logging.getLogger(__name__)

WorkflowState = Literal[
    "idle",
    "detecting",
    "no_conflict",
    "has_conflict",
    "ready_to_apply",
    "awaiting_policy_choice",
    "policy_chosen",
    "awaiting_confirmation",
    "applying",
    "applied",
    "failed",
    "cancelled",
]

_BEFORE_APPLY = {
    "idle",
    "ready_to_apply",
    "awaiting_policy_choice",
    "policy_chosen",
    "awaiting_confirmation",
}


class SlotCopyWorkflow:
    """
    Drives one copy of a source day's slots onto a set of target days.

    Idle -> Detecting -> {NoConflict -> ReadyToApply,
    HasConflict -> AwaitingPolicyChoice} -> PolicyChosen ->
    AwaitingConfirmation -> Applying -> {Applied, Failed}

    Dismissing at any point before Applying discards the plan without
    touching storage.
    """

    def __init__(
        self,
        proposed: ProposedSlotSet,
        detector: ConflictDetector,
        applier: PlanApplier,
        signup_index: RelationIndex,
        invitation_index: RelationIndex
    ):
        self.proposed = proposed
        self.detector = detector
        self.applier = applier
        self.signup_index = signup_index
        self.invitation_index = invitation_index

        self.state: WorkflowState = "idle"
        self.history: list[WorkflowState] = ["idle"]
        self._reset_data()

    def _reset_data(self):
        self.target_days: list[TargetDay] = []
        self.conflicts: list[ConflictReport] = []
        self.policy: Optional[ResolutionPolicy] = None
        self.plan: Optional[ResolutionPlan] = None
        self.affected_parties: list[AffectedParty] = []
        self.custom_message: Optional[str] = None
        self.report: Optional[ApplyReport] = None

    def _transition(self, new_state: WorkflowState):
        logger.debug("Slot copy workflow %s -> %s", self.state, new_state)
        self.state = new_state
        self.history.append(new_state)

    def _require(self, *states: WorkflowState):
        if self.state not in states:
            raise WorkflowStateError(
                f"Cannot do that while {self.state}; expected one of {', '.join(states)}"
            )

    @property
    def available_policies(self) -> tuple[ResolutionPolicy, ...]:
        """The policy options, offered only while a conflict awaits a decision."""
        if self.state == "awaiting_policy_choice":
            return RESOLUTION_POLICIES
        return ()

    def select_days(self, target_days: list[TargetDay]) -> WorkflowState:
        """Run conflict detection for the chosen target days."""
        self._require("idle")
        if not target_days:
            raise SlotValidationError("Select at least one day to copy to")

        self._transition("detecting")
        try:
            conflicts = self.detector.detect_conflicts(
                self.proposed.slots,
                target_days,
                source_day=self.proposed.source_day
            )
        except SlotValidationError:
            self._transition("idle")
            raise

        self.target_days = list(target_days)
        self.conflicts = conflicts

        if conflicts:
            self._transition("has_conflict")
            self._transition("awaiting_policy_choice")
        else:
            self._transition("no_conflict")
            # Without conflicts every policy except cancel yields the same plan
            self._build_plan("allow_overlapping")
            self._transition("ready_to_apply")
        return self.state

    def choose_policy(self, policy: ResolutionPolicy) -> WorkflowState:
        """Resolve conflicts with replace, allow_overlapping or cancel."""
        self._require("awaiting_policy_choice")
        if policy not in RESOLUTION_POLICIES:
            raise SlotValidationError(f"Unknown resolution policy: {policy!r}")

        self._build_plan(policy)
        if policy == "cancel":
            self._transition("cancelled")
        else:
            self._transition("policy_chosen")
        return self.state

    def _build_plan(self, policy: ResolutionPolicy):
        self.policy = policy
        self.plan = plan_resolution(
            self.proposed.slots,
            self.target_days,
            self.conflicts,
            policy,
            timezone=self.detector.timezone
        )
        self.affected_parties = collect_affected_parties(
            self.plan,
            self.signup_index,
            self.invitation_index
        )

    def request_confirmation(self) -> WorkflowState:
        """Move to the final confirmation step."""
        self._require("ready_to_apply", "policy_chosen")
        self._transition("awaiting_confirmation")
        return self.state

    def confirmation_summary(self) -> Dict[str, Any]:
        """Counts shown on the confirmation screen."""
        plan = self.plan
        return {
            "target_days_count": len(self.target_days),
            "slots_to_copy_count": len(self.proposed.slots),
            "slots_to_delete_count": plan.delete_count if plan else 0,
            "users_to_notify_count": len(unique_user_ids(self.affected_parties)),
            "affected_parties": list(self.affected_parties),
            "is_replacing": self.policy == "replace",
        }

    def confirm(
        self,
        custom_message: Optional[str] = None,
        should_continue: Optional[Callable[[], bool]] = None
    ) -> ApplyReport:
        """Apply the plan day by day and record the per-day report."""
        self._require("awaiting_confirmation")
        self.custom_message = (custom_message or "").strip() or None

        self._transition("applying")
        try:
            self.report = self.applier.apply(
                self.plan,
                self.affected_parties,
                custom_message=self.custom_message,
                should_continue=should_continue
            )
        except Exception as e:
            # Which days finished is unknown, so every day is offered for retry
            logger.exception("Slot copy interrupted while applying")
            self.report = ApplyReport(outcomes=[
                DayOutcome(date=day_plan.date, status="failed", error=f"Interrupted: {e}")
                for day_plan in self.plan.days
            ])
            self._transition("failed")
            raise
        self._transition("applied" if self.report.all_applied else "failed")
        return self.report

    def dismiss(self) -> WorkflowState:
        """Abandon the workflow before anything has been applied."""
        if self.state not in _BEFORE_APPLY:
            raise WorkflowStateError(f"Cannot dismiss while {self.state}")
        self._reset_data()
        self._transition("cancelled")
        return self.state

    @property
    def failed_days(self) -> list[date]:
        if self.state != "failed" or self.report is None:
            return []
        return self.report.failed_days

    @property
    def succeeded_days(self) -> list[date]:
        if self.report is None:
            return []
        return self.report.succeeded_days

    def retry_failed(self, target_days: list[TargetDay]) -> WorkflowState:
        """
        Start over for the days that did not apply.

        Args:
            target_days: Freshly loaded TargetDays; each must be one of the failed days
        """
        self._require("failed")
        if not target_days:
            raise SlotValidationError("Select at least one failed day to retry")
        failed = set(self.failed_days)
        for target in target_days:
            if target.date not in failed:
                raise SlotValidationError(
                    f"{target.date.isoformat()} did not fail and cannot be retried",
                    day=target.date
                )

        self._reset_data()
        self._transition("idle")
        return self.select_days(target_days)
