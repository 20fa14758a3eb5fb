"""Markdown formatting for the slot copy screens."""

from datetime import tzinfo
from typing import Any, Dict, List, Optional

from models.entities import ApplyReport, ConflictReport, TimeSlot
from services.slot_time import localize


STATUS_ICONS = {
    "applied": "✅",
    "partially_applied": "⚠️",
    "failed": "❌",
    "skipped": "⏭️",
}

STATUS_LABELS = {
    "applied": "Applied",
    "partially_applied": "Partially applied",
    "failed": "Failed",
    "skipped": "Skipped",
}


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


class ResponseFormatter:
    """Formats slot copy summaries in a consistent, structured manner."""

    @staticmethod
    def format_slot_time(slot: TimeSlot, tz: tzinfo) -> str:
        """e.g. 'Monday, March 02, 2026 · 10:00 AM - 11:00 AM'"""
        start = localize(slot.start_time, tz)
        end = localize(slot.end_time, tz)
        return f"{start.strftime('%A, %B %d, %Y')} · {start.strftime('%I:%M %p')} - {end.strftime('%I:%M %p')}"

    @staticmethod
    def format_conflicts(reports: List[ConflictReport], tz: tzinfo) -> str:
        """Format the conflict warning shown before a policy is chosen."""
        total = sum(len(r.conflicting_existing_slots) for r in reports)
        lines = [
            "**⚠️ Conflicting Slots**",
            "",
            f"{_plural(total, 'slot')} with overlapping times detected on the selected days.",
            ""
        ]
        for report in reports:
            lines.append(f"**{report.target_day.date.strftime('%A, %B %d, %Y')}**")
            for slot in report.conflicting_existing_slots:
                where = f" ({slot.location})" if slot.location else ""
                lines.append(f"   • {ResponseFormatter.format_slot_time(slot, tz)}{where}")
            lines.append("")
        return "\n".join(lines).rstrip()

    @staticmethod
    def format_confirmation(summary: Dict[str, Any]) -> str:
        """Format the confirmation summary produced by SlotCopyWorkflow.confirmation_summary()."""
        lines = [
            "**📋 Confirm Slot Copy**",
            "",
            f"• **Target Days:** {_plural(summary['target_days_count'], 'day')}",
            f"• **Slots to Copy:** {_plural(summary['slots_to_copy_count'], 'slot')}",
        ]
        if summary.get("is_replacing") and summary["slots_to_delete_count"] > 0:
            lines.append(f"• **Slots to Delete:** {_plural(summary['slots_to_delete_count'], 'slot')}")
        if summary["users_to_notify_count"] > 0:
            lines.append(f"• **Users to Notify:** {_plural(summary['users_to_notify_count'], 'user')}")
            lines.append("")
            lines.append("⚠️ **Note:** Affected users will receive a notification about their cancelled slots.")
        return "\n".join(lines)

    @staticmethod
    def format_apply_report(report: ApplyReport) -> str:
        """One line per target day: created N, deleted M, notified K."""
        lines = ["**📅 Slot Copy Results**", ""]
        for outcome in report.outcomes:
            icon = STATUS_ICONS.get(outcome.status, "•")
            label = STATUS_LABELS.get(outcome.status, outcome.status)
            lines.append(
                f"{icon} **{outcome.date.strftime('%a, %b %d')}** · {label}: "
                f"created {len(outcome.created_slots)}, "
                f"deleted {len(outcome.deleted_slot_ids)}, "
                f"notified {len(outcome.notified_parties)}"
            )
            if outcome.status == "partially_applied":
                lines.append("   • Existing slots were removed but the new slots were not created.")
            if outcome.error:
                lines.append(f"   • Error: {outcome.error}")
            if outcome.notification_failures:
                lines.append(f"   • {_plural(outcome.notification_failures, 'notification')} could not be sent")

        if report.failed_days:
            lines.append("")
            lines.append(f"*{_plural(len(report.failed_days), 'day')} can be retried.*")
        return "\n".join(lines)

    @staticmethod
    def format_success(title: str, message: str, details: Optional[List[str]] = None) -> str:
        """Format a success message."""
        lines = [
            f"**✅ {title}**",
            "",
            message
        ]

        if details:
            lines.append("")
            lines.append("**Details:**")
            for detail in details:
                lines.append(f"• {detail}")

        return "\n".join(lines)

    @staticmethod
    def format_error(title: str, message: str, suggestions: Optional[List[str]] = None) -> str:
        """Format an error message."""
        lines = [
            f"**❌ {title}**",
            "",
            message
        ]

        if suggestions:
            lines.append("")
            lines.append("**Suggestions:**")
            for suggestion in suggestions:
                lines.append(f"• {suggestion}")

        return "\n".join(lines)
