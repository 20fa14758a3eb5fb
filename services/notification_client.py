"""HTTP client for the application's notification endpoint."""

import logging
import os
from typing import Any, Dict, List, Optional, Tuple

import httpx

from models.entities import AffectedParty, NotificationPayload
from models.errors import NotificationError

logger = logging.getLogger(__name__)


class NotificationClient:
    """Sends slot cancellation notices through the app's notification API."""

    def __init__(
        self,
        base_url: str = None,
        api_key: str = None,
        timeout: float = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """
        Initialize notification API client.

        Args:
            base_url: Endpoint URL (defaults to env var NOTIFICATION_API_URL)
            api_key: Bearer token (defaults to env var NOTIFICATION_API_KEY)
            timeout: Request timeout in seconds (defaults to env var NOTIFICATION_TIMEOUT)
            transport: Optional httpx transport, used by tests
        """
        self.base_url = base_url or os.getenv(
            "NOTIFICATION_API_URL",
            "http://localhost:3000/api/send-notification-email"
        )
        self.api_key = api_key if api_key is not None else os.getenv("NOTIFICATION_API_KEY", "")
        self.timeout = timeout or float(os.getenv("NOTIFICATION_TIMEOUT", "30"))
        self.transport = transport

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for API requests."""
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _build_body(self, party: AffectedParty, custom_message: Optional[str]) -> Dict[str, Any]:
        body = {
            "userId": party.user_id,
            "type": "callback_slot_cancelled",
            "relationKind": party.relation_kind,
            "slotId": party.slot_id,
            "customMessage": custom_message
        }
        if party.slot:
            body["startTime"] = party.slot.start_time.isoformat()
            body["endTime"] = party.slot.end_time.isoformat()
            body["location"] = party.slot.location
        return body

    def send_cancellation(
        self,
        party: AffectedParty,
        custom_message: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Post one cancellation notice.

        Returns:
            Parsed JSON response

        Raises:
            NotificationError: if the request fails or the API reports an error
        """
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(
                    self.base_url,
                    json=self._build_body(party, custom_message),
                    headers=self._get_headers()
                )
                response.raise_for_status()
                result = response.json()
        except httpx.HTTPError as e:
            logger.error("HTTP error notifying %s about slot %s: %s", party.user_id, party.slot_id, e)
            raise NotificationError(f"Failed to notify {party.user_id}: {e}") from e
        except ValueError as e:
            logger.error("Invalid JSON from notification API: %s", e)
            raise NotificationError(f"Invalid response notifying {party.user_id}") from e

        if not isinstance(result, dict):
            logger.error("Unexpected notification API response: %r", result)
            raise NotificationError(f"Invalid response notifying {party.user_id}")

        if not result.get("success", False):
            error_msg = result.get("error", "Unknown error")
            logger.error("Notification API error for %s: %s", party.user_id, error_msg)
            raise NotificationError(f"Notification API error: {error_msg}")

        return result

    def dispatch(self, payload: NotificationPayload) -> Tuple[List[Dict[str, Any]], List[AffectedParty]]:
        """Send one notice per party; returns (responses, failed parties)."""
        sent, failed = [], []
        for party in payload.parties:
            try:
                sent.append(self.send_cancellation(party, payload.custom_message))
            except NotificationError:
                failed.append(party)
        return sent, failed
