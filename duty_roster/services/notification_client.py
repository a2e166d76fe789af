# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Notification client — posts announcements to the team chat channel.
Handles the HTTP call with timeout & fault tolerance.
"""

from typing import Optional

import httpx

from duty_roster.core.config import settings
from duty_roster.core.logging import get_logger
from duty_roster.metrics.prometheus import ANNOUNCEMENTS_SENT

logger = get_logger(__name__)


class NotificationClient:
    """Fire-and-forget announcement sender for the duty channel."""

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._webhook_url = settings.CHANNEL_WEBHOOK_URL if webhook_url is None else webhook_url
        self._timeout = settings.NOTIFICATION_TIMEOUT if timeout is None else timeout

    def send_announcement(self, text: str, kind: str = "weekly") -> bool:
        """Send a channel message. Failures are logged but never raised."""
        if not self._webhook_url:
            logger.info("[MOCK CHANNEL] %s announcement:\n%s", kind, text)
            ANNOUNCEMENTS_SENT.labels(kind=kind, status="mock").inc()
            return True

        try:
            with httpx.Client(timeout=self._timeout) as client:
                resp = client.post(self._webhook_url, json={"text": text})
        except Exception as exc:
            ANNOUNCEMENTS_SENT.labels(kind=kind, status="failed").inc()
            logger.warning("Announcement delivery failed: %s", exc)
            return False

        if resp.status_code >= 300:
            ANNOUNCEMENTS_SENT.labels(kind=kind, status="failed").inc()
            logger.warning(
                "Channel returned %d for %s announcement", resp.status_code, kind,
            )
            return False

        ANNOUNCEMENTS_SENT.labels(kind=kind, status="sent").inc()
        logger.info(
            "Announcement sent: kind=%s, status=%d", kind, resp.status_code,
        )
        return True
