"""Mock notification service for cancelled callback slots."""

import logging
from datetime import datetime, timezone, tzinfo
from typing import Optional, Union

from models.entities import AffectedParty, NotificationPayload
from models.errors import NotificationError
from services.slot_time import localize, resolve_timezone

logger = logging.getLogger(__name__)


class NotificationServiceMock:
    """Mock notification service that records messages instead of sending them."""

    def __init__(self, user_directory, timezone: Optional[Union[str, tzinfo]] = None):
        """
        Initialize notification service.

        Args:
            user_directory: Object with get_user(user_id) -> {"name", "email"} or None
            timezone: Zone used to format slot times in messages
        """
        self.user_directory = user_directory
        self.timezone = resolve_timezone(timezone)
        self.sent_notifications: list[dict] = []
        self._failing_users: set[str] = set()

    def fail_for_user(self, user_id: str):
        """Make sends to user_id raise NotificationError."""
        self._failing_users.add(user_id)

    def send_cancellation(
        self,
        party: AffectedParty,
        custom_message: Optional[str] = None
    ) -> dict:
        """
        Send a slot cancellation notice (mock).

        Returns:
            dict with notification details
        """
        if party.user_id in self._failing_users:
            raise NotificationError(f"Could not notify {party.user_id}")

        user = self.user_directory.get_user(party.user_id) if self.user_directory else None
        subject, body = self._generate_cancellation_content(party, user, custom_message)

        record = {
            "to": user["email"] if user else None,
            "user_id": party.user_id,
            "slot_id": party.slot_id,
            "relation_kind": party.relation_kind,
            "subject": subject,
            "body": body,
            "sent_at": datetime.now(timezone.utc)
        }
        self.sent_notifications.append(record)
        logger.debug("Recorded cancellation notice for %s (slot %s)", party.user_id, party.slot_id)
        return record

    def dispatch(self, payload: NotificationPayload) -> tuple[list[dict], list[AffectedParty]]:
        """Send one notice per party; returns (sent records, failed parties)."""
        sent, failed = [], []
        for party in payload.parties:
            try:
                sent.append(self.send_cancellation(party, payload.custom_message))
            except NotificationError as e:
                logger.warning("Notification failed: %s", e)
                failed.append(party)
        return sent, failed

    def _generate_cancellation_content(
        self,
        party: AffectedParty,
        user: Optional[dict],
        custom_message: Optional[str]
    ) -> tuple[str, str]:
        """Generate notification subject and body."""
        name = user["name"] if user else "there"

        if party.slot:
            local_start = localize(party.slot.start_time, self.timezone)
            when = local_start.strftime('%A, %B %d, %Y at %I:%M %p %Z')
        else:
            when = "your scheduled time"

        what = "callback invitation" if party.relation_kind == "callback_invitation" else "callback signup"
        subject = f"Callback Slot Cancelled: {when}"

        body = f"""Hi {name},

The callback slot on {when} has been rescheduled by the casting team, so your {what} for it has been cancelled.
"""
        if party.slot and party.slot.location:
            body += f"""
Location: {party.slot.location}
"""
        if custom_message:
            body += f"""
Message from the casting team:
{custom_message}
"""
        body += """
Please check the audition page for the updated schedule and sign up for a new slot.

Break a leg,
Casting Team
"""
        return subject, body.strip()

    def get_sent_notifications(self) -> list[dict]:
        """Get all recorded notifications."""
        return self.sent_notifications.copy()

    def clear_notifications(self):
        """Clear notification log (for testing/reset)."""
        self.sent_notifications = []
