"""
Notification tracker - persists each delivery attempt and its outcome.

deliver() is the only path that creates notification rows. The row is created
pending right before the sender runs and is moved to sent or failed as soon as
the sender returns or raises.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from actionq.actions.errors import DeliveryError
from actionq.notifications.channels import ChannelRegistry
from actionq.notifications.models import Notification, NotificationStatus
from actionq.observability.logging import get_logger
from actionq.observability.telemetry import counter, log_event
from actionq.storage.repository import RecordStore

logger = get_logger(__name__)


class NotificationTracker:
    """Delivers notifications through registered channels and records the lifecycle."""

    def __init__(self, store: RecordStore, channels: ChannelRegistry):
        self.store = store
        self.channels = channels

    def deliver(
        self,
        record_id: int,
        channel: str,
        message: str,
        params: Mapping[str, Any] | None = None,
    ) -> Notification:
        """
        Deliver message about record_id over channel.

        Args:
            record_id: Subject record the notification concerns
            channel: Registered channel name (email, sms, webhook)
            message: Message body
            params: Channel parameters (to, url, subject, ...)

        Returns:
            The notification in 'sent' status

        Raises:
            UnsupportedChannelError: Unknown channel; no row is created
            PersistenceError: The pending row could not be created (nothing is
                sent), or the 'sent' status could not be recorded
            DeliveryError: The sender failed; the row is marked 'failed'

        Side Effects:
            - Inserts one notifications row and updates its status
            - Calls the channel transport (SMTP, HTTP)
        """
        sender = self.channels.get(channel)

        notification = self.store.create_notification(record_id, channel, message)
        counter("notification.created")

        try:
            sender.send(message, params or {})
        except DeliveryError as exc:
            exc.notification_id = notification.id
            self._record_failure(notification, exc)
            raise
        except Exception as exc:
            logger.exception("Sender for channel %s raised unexpectedly", channel)
            error = DeliveryError(
                f"{channel} delivery failed: {exc}",
                channel=channel,
                notification_id=notification.id,
            )
            self._record_failure(notification, error)
            raise error from exc

        sent = self.store.update_notification_status(notification.id, NotificationStatus.SENT)
        counter(f"notification.sent.{channel}")
        log_event(
            "notification.sent",
            notification_id=notification.id,
            record_id=record_id,
            channel=channel,
        )
        return sent

    def _record_failure(self, notification: Notification, error: DeliveryError) -> None:
        """Mark the row failed. A failure here is logged and never replaces error."""
        counter(f"notification.failed.{notification.channel}")
        log_event(
            "notification.failed",
            notification_id=notification.id,
            record_id=notification.record_id,
            channel=notification.channel,
        )
        try:
            self.store.update_notification_status(notification.id, NotificationStatus.FAILED)
        except Exception as update_error:
            counter("notification.status_update_failed")
            logger.error(
                "Failed to mark notification %s as failed (delivery error: %s): %s",
                notification.id,
                error.message,
                update_error,
            )
